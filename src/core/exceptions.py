"""
Domain exceptions for the sales API.

Each exception carries a machine-readable code; the API layer maps
exception types to HTTP status codes.
"""

from typing import Any


class SalesAPIError(Exception):
    """Base exception for all sales API errors."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}


# Storage Exceptions
class StorageError(SalesAPIError):
    """Base exception for storage operations."""

    pass


class SalesRecordNotFoundError(StorageError):
    """No row matches the composite key."""

    def __init__(self, invoice_no: str, stock_code: str):
        super().__init__(
            "Sales record not found",
            code="SALES_RECORD_NOT_FOUND",
            details={"invoice_no": invoice_no, "stock_code": stock_code},
        )


class DuplicateSalesRecordError(StorageError):
    """A row with the same (invoice_no, stock_code) already exists."""

    def __init__(self, invoice_no: str, stock_code: str):
        super().__init__(
            "Sales record with this invoice number and stock code already exists",
            code="DUPLICATE_SALES_RECORD",
            details={"invoice_no": invoice_no, "stock_code": stock_code},
        )


class DatabaseError(StorageError):
    """Database operation failed."""

    def __init__(self, operation: str, error: str):
        super().__init__(
            f"Database error during {operation}: {error}",
            code="DATABASE_ERROR",
            details={"operation": operation, "error": error},
        )
        self.operation = operation
        self.error = error


# Validation Exceptions
class ValidationError(SalesAPIError):
    """Input validation failed."""

    def __init__(self, field: str, message: str, value: Any = None):
        super().__init__(
            message,
            code="VALIDATION_ERROR",
            details={
                "field": field,
                "value": str(value)[:100] if value is not None else None,
            },
        )
        self.field = field


class MissingFieldsError(ValidationError):
    """One or more required fields are absent or blank."""

    def __init__(self, required: list[str], missing: list[str]):
        super().__init__(
            field=",".join(missing),
            message=f"Missing required fields: {', '.join(required)}",
        )
        self.details["missing"] = missing


class EmptyUpdateError(ValidationError):
    """Update request carried no updatable field."""

    def __init__(self) -> None:
        super().__init__(field="body", message="No fields provided for update")
        self.code = "EMPTY_UPDATE"

