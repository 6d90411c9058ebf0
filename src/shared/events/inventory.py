"""Cross-service contract for commands addressed to the inventory service.

The gateway publishes commands onto the inventory command stream. Each entry
carries the command pattern, a JSON ``data`` document, a correlation ``id``
and, for request/reply commands, the stream the reply is written to. Replies
are entries of the form ``{"id": <correlation id>, "response": <JSON>}``.
"""

import json
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, Field

COMMAND_STREAM = "inventory::commands"
EVENT_STREAM = "inventory::events"

ADD_ITEM = "add_item"
GET_INVENTORY = "get_inventory"
GET_ITEM_BY_BARCODE_OR_ID = "get_item_by_barcode_or_id"
ADJUST_STOCK = "adjust_stock"
UPDATE_ITEM = "update_item"


def _correlation_id() -> str:
    return str(uuid4())


class InventoryCommand(BaseModel):
    pattern: str
    data: dict[str, Any] = Field(default_factory=dict)
    id: str = Field(default_factory=_correlation_id)
    reply_to: str | None = None

    def to_fields(self) -> dict[str, str]:
        """Flat string fields for a stream entry."""
        fields = {"pattern": self.pattern, "data": json.dumps(self.data), "id": self.id}
        if self.reply_to:
            fields["reply_to"] = self.reply_to
        return fields

    @classmethod
    def from_fields(cls, fields: dict[str, str]) -> "InventoryCommand":
        """Parse a stream entry. Raises KeyError or ValueError for malformed entries."""
        return cls(
            pattern=fields["pattern"],
            data=json.loads(fields.get("data") or "{}"),
            id=fields.get("id") or _correlation_id(),
            reply_to=fields.get("reply_to") or None,
        )


def reply_fields(correlation_id: str, response: dict[str, Any]) -> dict[str, str]:
    return {"id": correlation_id, "response": json.dumps(response)}
