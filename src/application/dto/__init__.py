"""Data Transfer Objects for API contracts."""

from src.application.dto.requests import (
    parse_create_payload,
    parse_sales_filter,
    parse_update_payload,
)
from src.application.dto.responses import (
    ApiEnvelope,
    HealthResponse,
    ProviderHealthResponse,
    error_response,
    success_response,
)

__all__ = [
    # Request parsing
    "parse_create_payload",
    "parse_update_payload",
    "parse_sales_filter",
    # Responses
    "ApiEnvelope",
    "HealthResponse",
    "ProviderHealthResponse",
    "success_response",
    "error_response",
]
