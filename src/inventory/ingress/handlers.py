"""Event ingress: maps inbound inventory commands to ledger calls.

Every handler validates its payload through the validation gate, delegates
to the InventoryLedger and returns the ledger's result verbatim as the reply
payload. Handlers hold no business logic.
"""

from typing import Any

from shared.events.inventory import (
    ADD_ITEM,
    ADJUST_STOCK,
    GET_INVENTORY,
    GET_ITEM_BY_BARCODE_OR_ID,
    UPDATE_ITEM,
)

from inventory.ledger.ledger import InventoryLedger
from inventory.ledger.refs import ByBarcode, ItemRef, parse_item_ref, record_id_ref
from inventory.ledger.results import ErrorKind, LedgerResult
from inventory.ledger.validation import validate_adjustment, validate_changes, validate_item, validate_store


class InvalidCommand(Exception):
    """Carries the validation message of a rejected command."""


def failure_reply(message: str) -> dict[str, Any]:
    return LedgerResult.fail(ErrorKind.VALIDATION, message).to_reply()


def _store_id(data: dict[str, Any]) -> str:
    result = validate_store({key: data[key] for key in ("store_id",) if key in data})
    if not result.success:
        raise InvalidCommand(result.message)
    return result.value.store_id


def _item_ref(data: dict[str, Any]) -> ItemRef:
    """Explicit ``barcode`` / ``id`` keys win over the untagged ``barcode_or_id``."""
    for key, tag in (("barcode", ByBarcode), ("id", record_id_ref), ("barcode_or_id", parse_item_ref)):
        if key not in data:
            continue
        value = data[key]
        if not isinstance(value, str) or not value:
            raise InvalidCommand(f"'{key}' must be a non-empty string")
        return tag(value)
    raise InvalidCommand("'barcode_or_id' is required")


def _event_id(data: dict[str, Any]) -> str | None:
    event_id = data.get("event_id")
    if event_id is not None and (not isinstance(event_id, str) or not event_id):
        raise InvalidCommand("'event_id' must be a non-empty string")
    return event_id


class EventIngress:
    def __init__(self, ledger: InventoryLedger):
        self.ledger = ledger
        self._handlers = {
            ADD_ITEM: self.add_item,
            GET_INVENTORY: self.get_inventory,
            GET_ITEM_BY_BARCODE_OR_ID: self.get_item_by_barcode_or_id,
            ADJUST_STOCK: self.adjust_stock,
            UPDATE_ITEM: self.update_item,
        }

    @property
    def patterns(self) -> list[str]:
        return list(self._handlers)

    def dispatch(self, pattern: str, data: Any) -> dict[str, Any]:
        handler = self._handlers.get(pattern)
        if handler is None:
            return failure_reply(f"Unknown command: {pattern}")
        if not isinstance(data, dict):
            return failure_reply("'data' must be an object")
        try:
            return handler(data)
        except InvalidCommand as exc:
            return failure_reply(str(exc))

    def add_item(self, data: dict[str, Any]) -> dict[str, Any]:
        store_id = _store_id(data)
        item = validate_item(data.get("item"), partial=True)
        if not item.success:
            raise InvalidCommand(item.message)

        result = self.ledger.add_item(store_id, item.value.model_dump(exclude_none=True), event_id=_event_id(data))
        return result.to_reply()

    def get_inventory(self, data: dict[str, Any]) -> dict[str, Any]:
        return self.ledger.get_inventory(_store_id(data)).to_reply()

    def get_item_by_barcode_or_id(self, data: dict[str, Any]) -> dict[str, Any]:
        store_id = _store_id(data)
        return self.ledger.get_item(store_id, _item_ref(data)).to_reply()

    def adjust_stock(self, data: dict[str, Any]) -> dict[str, Any]:
        store_id = _store_id(data)
        ref = _item_ref(data)
        adjustment = validate_adjustment({key: data[key] for key in ("delta",) if key in data})
        if not adjustment.success:
            raise InvalidCommand(adjustment.message)

        result = self.ledger.adjust_stock(store_id, ref, adjustment.value.delta, event_id=_event_id(data))
        return result.to_reply()

    def update_item(self, data: dict[str, Any]) -> dict[str, Any]:
        store_id = _store_id(data)
        ref = _item_ref(data)
        changes = validate_changes(data.get("changes"))
        if not changes.success:
            raise InvalidCommand(changes.message)

        result = self.ledger.update_item(store_id, ref, changes.value.model_dump(exclude_none=True))
        return result.to_reply()
