"""Request parsing for the sales API.

Query strings and JSON bodies arrive loosely typed. Every coercion here
either yields a value of the right type, falls back to a documented
default, or raises ValidationError; nothing unparsed reaches a query.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from src.core.entities.sales_query import SalesFilter
from src.core.entities.sales_record import (
    INTEGER_MAX,
    INTEGER_MIN,
    SalesRecord,
    SalesRecordChanges,
    normalize_price,
    to_naive_utc,
)
from src.core.exceptions import EmptyUpdateError, MissingFieldsError, ValidationError

REQUIRED_FIELDS = ["invoiceNo", "stockCode", "quantity", "invoiceDate", "unitPrice", "country"]

UPDATABLE_FIELDS = ["description", "quantity", "invoiceDate", "unitPrice", "customerId", "country"]


def is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def parse_timestamp(value: Any, field: str) -> datetime:
    """Parse an ISO-8601 date or timestamp into naive UTC."""
    if isinstance(value, datetime):
        return to_naive_utc(value)
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(field, f"{field} must be an ISO 8601 date or timestamp", value)
    try:
        parsed = datetime.fromisoformat(value.strip())
    except ValueError:
        raise ValidationError(field, f"{field} must be an ISO 8601 date or timestamp", value)
    return to_naive_utc(parsed)


def _to_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def parse_integer(value: Any, field: str) -> int:
    """Parse a 64-bit integer from an int, an integral float, or a numeric string."""
    number = _to_int(value)
    if number is None:
        raise ValidationError(field, f"{field} must be an integer", value)
    if not INTEGER_MIN <= number <= INTEGER_MAX:
        raise ValidationError(field, f"{field} is out of range", value)
    return number


def parse_price(value: Any, field: str = "unitPrice") -> str:
    """Parse a price and normalize it to a two-decimal string."""
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise ValidationError(field, f"{field} must be a number", value)
    try:
        return f"{normalize_price(value.strip() if isinstance(value, str) else value):.2f}"
    except ValueError:
        raise ValidationError(field, f"{field} must be a number", value)


def parse_text(value: Any, field: str) -> str:
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        raise ValidationError(field, f"{field} must be a string", value)
    return str(value)


def parse_optional_customer(value: Any) -> int | None:
    """Blank means no known customer."""
    if is_blank(value):
        return None
    return parse_integer(value, "customerId")


def _require_object(payload: Any) -> dict[str, Any]:
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValidationError("body", "Request body must be a JSON object")
    return payload


def _build(model: type[BaseModel], data: dict[str, Any]) -> Any:
    """Instantiate a domain model, reporting constraint failures as ValidationError."""
    try:
        return model(**data)
    except PydanticValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first["loc"]) or "body"
        raise ValidationError(field, f"{field}: {first['msg']}")


def parse_create_payload(payload: Any) -> SalesRecord:
    """Validate a create body and build the record to insert."""
    body = _require_object(payload)

    missing = [name for name in REQUIRED_FIELDS if is_blank(body.get(name))]
    if missing:
        raise MissingFieldsError(REQUIRED_FIELDS, missing)

    data = {
        "invoiceNo": parse_text(body["invoiceNo"], "invoiceNo"),
        "stockCode": parse_text(body["stockCode"], "stockCode"),
        "description": None if is_blank(body.get("description")) else parse_text(body["description"], "description"),
        "quantity": parse_integer(body["quantity"], "quantity"),
        "invoiceDate": parse_timestamp(body["invoiceDate"], "invoiceDate"),
        "unitPrice": parse_price(body["unitPrice"]),
        "customerId": parse_optional_customer(body.get("customerId")),
        "country": parse_text(body["country"], "country"),
    }
    return _build(SalesRecord, data)


def parse_update_payload(payload: Any) -> SalesRecordChanges:
    """
    Validate an update body.

    Only keys present in the body are changed. Key fields are ignored.

    Raises:
        EmptyUpdateError: if no updatable field is present
        ValidationError: if a present field fails to parse
    """
    body = _require_object(payload)
    present = [name for name in UPDATABLE_FIELDS if name in body]
    if not present:
        raise EmptyUpdateError()

    data: dict[str, Any] = {}
    for name in present:
        value = body[name]
        if name == "description":
            data[name] = None if value is None else parse_text(value, name)
        elif name == "customerId":
            data[name] = parse_optional_customer(value)
        elif is_blank(value):
            raise ValidationError(name, f"{name} cannot be empty", value)
        elif name == "quantity":
            data[name] = parse_integer(value, name)
        elif name == "invoiceDate":
            data[name] = parse_timestamp(value, name)
        elif name == "unitPrice":
            data[name] = parse_price(value)
        else:
            data[name] = parse_text(value, name)

    return _build(SalesRecordChanges, data)


def parse_sales_filter(
    country: str | None = None,
    customer_id: str | None = None,
    start_date: str | None = None,
    end_date: str | None = None,
) -> SalesFilter:
    """Build a filter from query parameters. Blank parameters are skipped."""
    return SalesFilter(
        country=None if is_blank(country) else country,
        customer_id=None if is_blank(customer_id) else parse_integer(customer_id, "customerId"),
        start_date=None if is_blank(start_date) else parse_timestamp(start_date, "startDate"),
        end_date=None if is_blank(end_date) else parse_timestamp(end_date, "endDate"),
    )
