"""References to one item of a store: by barcode or by record id.

Callers that know what they hold pass ``ByBarcode`` or ``ByRecordId``
directly. Raw strings go through ``parse_item_ref``: a canonical hyphenated
UUID (the only shape record ids ever take) is a record id, anything else is
a barcode. Barcodes are digit-only, so the two never overlap.
"""

from dataclasses import dataclass
from typing import Any
from uuid import UUID


@dataclass(frozen=True)
class ByBarcode:
    barcode: str

    def criteria(self) -> dict[str, Any]:
        return {"barcode": self.barcode}


@dataclass(frozen=True)
class ByRecordId:
    record_id: str

    def criteria(self) -> dict[str, Any]:
        return {"id": self.record_id}


ItemRef = ByBarcode | ByRecordId


def record_id_ref(value: str) -> ByRecordId:
    """Record ids are stored lowercase; UUIDs compare case-insensitively."""
    return ByRecordId(value.lower())


def is_record_id(value) -> bool:
    if not isinstance(value, str):
        return False
    try:
        return str(UUID(value)) == value.lower()
    except ValueError:
        return False


def parse_item_ref(value) -> ItemRef:
    if isinstance(value, ByBarcode | ByRecordId):
        return value
    if is_record_id(value):
        return record_id_ref(value)
    return ByBarcode(value)
