"""Validation gate for store descriptors and item payloads.

Schemas are pydantic models. The first violation pydantic reports becomes a
single message naming the offending field. Validation never raises and never
mutates the payload it is given; on success the parsed model is carried in
``ValidationResult.value``.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr, ValidationError, field_validator
from pydantic_core import PydanticCustomError

from inventory.ledger.results import ValidationResult
from inventory.store.schema import MAX_STORE_ID_LENGTH

DIGITS = r"^\d+$"

# Stock columns are 32-bit integers on PostgreSQL
STOCK_LIMIT = 2**31 - 1

_MESSAGES = {
    "missing": "{field} is required",
    "string_type": "{field} must be a string",
    "string_pattern_mismatch": "{field} must be a string of numbers",
    "string_too_short": "{field} is not allowed to be empty",
    "string_too_long": "{field} must be at most {max_length} characters long",
    "float_type": "{field} must be a number",
    "float_parsing": "{field} must be a number",
    "int_type": "{field} must be an integer",
    "int_parsing": "{field} must be an integer",
    "int_from_float": "{field} must be an integer",
    "greater_than_equal": "{field} must be greater than or equal to {ge}",
    "less_than_equal": "{field} must be less than or equal to {le}",
    "list_type": "{field} must be an array",
    "model_type": "{field} must be an object",
    "model_attributes_type": "{field} must be an object",
    "extra_forbidden": "{field} is not allowed",
}


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------
class _Schema(BaseModel):
    model_config = ConfigDict(extra="forbid")

    @field_validator("price", mode="before", check_fields=False)
    @classmethod
    def price_is_not_a_bool(cls, value):
        # bool is an int subclass and would pass as 0/1
        if isinstance(value, bool):
            raise PydanticCustomError("float_type", "Input should be a valid number")
        return value


class StoreDescriptor(_Schema):
    store_id: StrictStr = Field(pattern=DIGITS, max_length=MAX_STORE_ID_LENGTH)


class VariantPayload(_Schema):
    name: StrictStr = Field(min_length=1)
    price: float | None = Field(default=None, ge=0)
    stock: StrictInt | None = Field(default=None, ge=-STOCK_LIMIT, le=STOCK_LIMIT)


class ItemPayload(_Schema):
    """A complete item, as required to create a store record."""

    barcode: StrictStr = Field(pattern=DIGITS)
    name: StrictStr = Field(min_length=1)
    description: StrictStr | None = None
    price: float = Field(ge=0)
    stock: StrictInt = Field(ge=0, le=STOCK_LIMIT)
    supplier: StrictStr | None = None
    variants: list[VariantPayload] = Field(default_factory=list)


class PartialItemPayload(_Schema):
    """An add whose target may already exist: only barcode and stock are required."""

    barcode: StrictStr = Field(pattern=DIGITS)
    name: StrictStr | None = Field(default=None, min_length=1)
    description: StrictStr | None = None
    price: float | None = Field(default=None, ge=0)
    stock: StrictInt = Field(ge=0, le=STOCK_LIMIT)
    supplier: StrictStr | None = None
    variants: list[VariantPayload] | None = None


class StockAdjustmentPayload(_Schema):
    delta: StrictInt = Field(ge=-STOCK_LIMIT, le=STOCK_LIMIT)


class ItemChanges(_Schema):
    """Fields an explicit update may set. Barcode, stock and timestamps are not among them."""

    name: StrictStr | None = Field(default=None, min_length=1)
    description: StrictStr | None = None
    price: float | None = Field(default=None, ge=0)
    supplier: StrictStr | None = None


# ---------------------------------------------------------------------------
# Error formatting
# ---------------------------------------------------------------------------
def _field_label(loc: tuple, root: str) -> str:
    label = ""
    for part in loc:
        if isinstance(part, int):
            label += f"[{part}]"
        else:
            label += f".{part}" if label else str(part)
    return f"'{label or root}'"


def _bound(value):
    """Render a constraint value the way the caller wrote it: 0, not 0.0."""
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def first_violation(exc: ValidationError, root: str) -> str:
    error = exc.errors()[0]
    field = _field_label(tuple(error["loc"]), root)
    template = _MESSAGES.get(error["type"])
    if template is None:
        return f"{field} {error['msg']}"
    ctx = {key: _bound(value) for key, value in (error.get("ctx") or {}).items()}
    return template.format(field=field, **ctx)


def _validate(schema: type[BaseModel], payload: Any, root: str) -> ValidationResult:
    try:
        return ValidationResult.ok(schema.model_validate(payload))
    except ValidationError as exc:
        return ValidationResult.fail(first_violation(exc, root))


# ---------------------------------------------------------------------------
# Gate
# ---------------------------------------------------------------------------
def validate_store(descriptor: Any) -> ValidationResult:
    return _validate(StoreDescriptor, descriptor, "store")


def validate_item(payload: Any, partial: bool = False) -> ValidationResult:
    return _validate(PartialItemPayload if partial else ItemPayload, payload, "item")


def validate_adjustment(payload: Any) -> ValidationResult:
    result = _validate(StockAdjustmentPayload, payload, "adjustment")
    if result.success and result.value.delta == 0:
        return ValidationResult.fail("'delta' must not be zero")
    return result


def validate_changes(changes: Any) -> ValidationResult:
    result = _validate(ItemChanges, changes, "changes")
    if result.success and not result.value.model_dump(exclude_none=True):
        return ValidationResult.fail("'changes' must contain at least one updatable field")
    return result
