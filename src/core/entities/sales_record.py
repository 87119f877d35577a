"""Sales transaction domain entity."""

from datetime import UTC, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator
from pydantic.alias_generators import to_camel

# numeric(10, 2)
PRICE_QUANTUM = Decimal("0.01")
MAX_PRICE = Decimal("99999999.99")

# SQLite INTEGER is a signed 64-bit value
INTEGER_MIN = -(2**63)
INTEGER_MAX = 2**63 - 1

INVOICE_NO_MAX_LENGTH = 20
STOCK_CODE_MAX_LENGTH = 20
DESCRIPTION_MAX_LENGTH = 255
COUNTRY_MAX_LENGTH = 100


def normalize_price(value: Any) -> Decimal:
    """Quantize a price to two decimal places (half-up)."""
    if isinstance(value, float):
        value = repr(value)
    try:
        price = Decimal(value)
    except (InvalidOperation, TypeError, ValueError) as e:
        raise ValueError(f"not a decimal number: {value!r}") from e
    if not price.is_finite():
        raise ValueError(f"not a finite number: {value!r}")
    if price.adjusted() > MAX_PRICE.adjusted():
        raise ValueError("unit price exceeds numeric(10, 2)")
    return price.quantize(PRICE_QUANTUM, rounding=ROUND_HALF_UP)


def _checked_price(value: Any) -> Decimal:
    price = normalize_price(value)
    if abs(price) > MAX_PRICE:
        raise ValueError("unit price exceeds numeric(10, 2)")
    return price


def to_naive_utc(value: datetime) -> datetime:
    """Drop the zone from a timestamp after shifting it to UTC."""
    if value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)


class SalesRecord(BaseModel):
    """
    One line of a retail invoice.

    The pair (invoice_no, stock_code) identifies a record.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    invoice_no: str = Field(..., min_length=1, max_length=INVOICE_NO_MAX_LENGTH)
    stock_code: str = Field(..., min_length=1, max_length=STOCK_CODE_MAX_LENGTH)
    description: str | None = Field(default=None, max_length=DESCRIPTION_MAX_LENGTH)
    quantity: int = Field(..., ge=INTEGER_MIN, le=INTEGER_MAX)
    invoice_date: datetime
    unit_price: Decimal
    customer_id: int | None = Field(default=None, ge=INTEGER_MIN, le=INTEGER_MAX)
    country: str = Field(..., min_length=1, max_length=COUNTRY_MAX_LENGTH)

    @field_validator("unit_price", mode="before")
    @classmethod
    def quantize_price(cls, v: Any) -> Decimal:
        return _checked_price(v)

    @field_validator("invoice_date")
    @classmethod
    def strip_timezone(cls, v: datetime) -> datetime:
        return to_naive_utc(v)

    @field_serializer("unit_price")
    def serialize_price(self, v: Decimal) -> str:
        return f"{v:.2f}"

    @field_serializer("invoice_date")
    def serialize_date(self, v: datetime) -> str:
        return v.isoformat()

    def to_api(self) -> dict[str, Any]:
        """Serialize with camelCase keys for API responses."""
        return self.model_dump(mode="json", by_alias=True)


class SalesRecordChanges(BaseModel):
    """
    Partial update of a sales record.

    Only fields that were explicitly set are written; the key fields
    cannot be changed.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    description: str | None = Field(default=None, max_length=DESCRIPTION_MAX_LENGTH)
    quantity: int | None = Field(default=None, ge=INTEGER_MIN, le=INTEGER_MAX)
    invoice_date: datetime | None = None
    unit_price: Decimal | None = None
    customer_id: int | None = Field(default=None, ge=INTEGER_MIN, le=INTEGER_MAX)
    country: str | None = Field(default=None, min_length=1, max_length=COUNTRY_MAX_LENGTH)

    @field_validator("unit_price", mode="before")
    @classmethod
    def quantize_price(cls, v: Any) -> Decimal | None:
        if v is None:
            return None
        return _checked_price(v)

    @field_validator("invoice_date")
    @classmethod
    def strip_timezone(cls, v: datetime | None) -> datetime | None:
        return to_naive_utc(v) if v is not None else None

    @property
    def changed_fields(self) -> dict[str, Any]:
        """Explicitly set fields, keyed by attribute name."""
        return self.model_dump(exclude_unset=True)
