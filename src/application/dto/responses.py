"""Response DTOs for API endpoints.

Every sales endpoint answers with the same envelope:
{success, data?, message?, error?, pagination?}; unset keys are omitted.
"""

from typing import Any

from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from src.core.entities.sales_query import Pagination


class ApiEnvelope(BaseModel):
    """Uniform success/error wrapper."""

    success: bool = Field(..., description="Whether the operation succeeded")
    data: Any = Field(default=None, description="Operation payload")
    message: str | None = Field(default=None, description="Human-readable outcome")
    error: str | None = Field(default=None, description="Underlying error detail")
    pagination: Pagination | None = Field(default=None, description="Listing window")

    def to_content(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_unset=True)


def success_response(
    data: Any = None,
    *,
    message: str | None = None,
    pagination: Pagination | None = None,
    status_code: int = 200,
) -> JSONResponse:
    """Wrap a payload in a success envelope."""
    fields: dict[str, Any] = {"success": True}
    if data is not None:
        fields["data"] = data
    if message is not None:
        fields["message"] = message
    if pagination is not None:
        fields["pagination"] = pagination
    return JSONResponse(status_code=status_code, content=ApiEnvelope(**fields).to_content())


def error_response(
    message: str,
    *,
    status_code: int,
    error: str | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """Wrap a failure in an error envelope."""
    fields: dict[str, Any] = {"success": False, "message": message}
    if error is not None:
        fields["error"] = error
    return JSONResponse(
        status_code=status_code,
        content=ApiEnvelope(**fields).to_content(),
        headers=headers,
    )


class ProviderHealthResponse(BaseModel):
    """Provider health status."""

    name: str
    available: bool
    latency_ms: float | None = None
    error: str | None = None


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str = "1.0.0"
    uptime_seconds: float
    database: ProviderHealthResponse | None = None
