"""InventoryItem: the store-local stock record for one barcode.

An item is created by the first add for its barcode in a store and is
mutated in place afterwards. Variants have no identity of their own; they
belong to their item and keep insertion order.
"""

from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, Field


class Variant(BaseModel):
    name: str
    price: float | None = None
    stock: int | None = None


class InventoryItem(BaseModel):
    """Persisted shape of an item in a store collection."""

    id: str
    barcode: str
    name: str
    description: str | None = None
    price: float
    stock: int
    supplier: str | None = None
    created_at: datetime
    updated_at: datetime
    variants: list[Variant] = Field(default_factory=list)

    @classmethod
    def create(
        cls,
        barcode,
        name,
        price,
        stock,
        description=None,
        supplier=None,
        variants=None,
    ):
        """Build a new record with a fresh identity and both timestamps set to now."""
        if stock < 0:
            raise ValueError("Stock cannot be created negative")

        now = datetime.now(UTC)
        return cls(
            id=str(uuid4()),
            barcode=barcode,
            name=name,
            description=description,
            price=price,
            stock=stock,
            supplier=supplier,
            created_at=now,
            updated_at=now,
            variants=[Variant.model_validate(variant) for variant in variants or []],
        )

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> "InventoryItem":
        return cls.model_validate(document)

    def to_document(self) -> dict[str, Any]:
        return self.model_dump()
