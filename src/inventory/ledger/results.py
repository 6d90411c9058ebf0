"""Result types returned by the validation gate and the ledger.

Neither layer raises for expected outcomes (invalid payload, unknown item,
storage fault); callers branch on ``success``.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from inventory.ledger.item import InventoryItem

ITEM_ADDED = "Item added successfully"
ITEM_UPDATED = "Item updated successfully"
ITEM_RETRIEVED = "Item retrieved successfully"
ITEMS_RETRIEVED = "Items retrieved successfully"
ITEM_NOT_FOUND = "Item not found"
STOCK_ADJUSTED = "Stock adjusted successfully"
DUPLICATE_EVENT = "Duplicate event ignored"


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    STORAGE = "storage"


class ValidationResult(BaseModel):
    success: bool
    message: str | None = None
    value: Any = Field(default=None, exclude=True)  # Parsed payload on success

    @classmethod
    def ok(cls, value) -> "ValidationResult":
        return cls(success=True, value=value)

    @classmethod
    def fail(cls, message: str) -> "ValidationResult":
        return cls(success=False, message=message)


class LedgerResult(BaseModel):
    success: bool
    message: str
    error: ErrorKind | None = None
    product: InventoryItem | None = None
    products: list[InventoryItem] | None = None

    @classmethod
    def ok(cls, message: str, **values) -> "LedgerResult":
        return cls(success=True, message=message, **values)

    @classmethod
    def fail(cls, error: ErrorKind, message: str) -> "LedgerResult":
        return cls(success=False, message=message, error=error)

    def to_reply(self) -> dict[str, Any]:
        """JSON-ready reply payload."""
        return self.model_dump(mode="json", exclude_none=True)
