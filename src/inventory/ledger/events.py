"""Domain events raised by the InventoryLedger.

Events are versioned, immutable facts published after a mutation commits.
They are notifications for other services; the ledger's own state never
depends on them.
"""

from datetime import UTC, datetime
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field


def _now() -> datetime:
    return datetime.now(UTC)


class InventoryEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    event_type: ClassVar[str]

    store_id: str
    item_id: str
    barcode: str
    occurred_at: datetime = Field(default_factory=_now)


class ItemCreated(InventoryEvent):
    """A store received its first record for a barcode."""

    event_type: ClassVar[str] = "Inventory.ItemCreated.v1"

    name: str
    stock: int


class StockIncremented(InventoryEvent):
    """An add for a known barcode increased its stock."""

    event_type: ClassVar[str] = "Inventory.StockIncremented.v1"

    quantity: int
    new_stock: int


class StockAdjusted(InventoryEvent):
    """Stock was explicitly adjusted by a signed delta."""

    event_type: ClassVar[str] = "Inventory.StockAdjusted.v1"

    delta: int
    new_stock: int


class ItemUpdated(InventoryEvent):
    """Descriptive fields of an item changed."""

    event_type: ClassVar[str] = "Inventory.ItemUpdated.v1"

    changes: dict[str, Any]
