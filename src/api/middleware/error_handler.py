"""
Error handling middleware.

Maps domain exceptions to HTTP status codes and renders every failure
in the standard envelope: {success: false, message, error?}.
"""

import traceback
from collections.abc import Awaitable, Callable

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from src.application.dto.responses import error_response
from src.config import get_logger
from src.core.exceptions import (
    DatabaseError,
    DuplicateSalesRecordError,
    SalesAPIError,
    SalesRecordNotFoundError,
    StorageError,
    ValidationError,
)

logger = get_logger(__name__)


# Checked in order; subclasses come before their bases
EXCEPTION_STATUS_MAP: dict[type[Exception], int] = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    SalesRecordNotFoundError: status.HTTP_404_NOT_FOUND,
    DuplicateSalesRecordError: status.HTTP_400_BAD_REQUEST,
    DatabaseError: status.HTTP_500_INTERNAL_SERVER_ERROR,
    StorageError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def status_for(exc: Exception) -> int:
    for exc_type, code in EXCEPTION_STATUS_MAP.items():
        if isinstance(exc, exc_type):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def render_exception(request: Request, exc: Exception) -> JSONResponse:
    """Convert an exception to an envelope response and log it."""
    status_code = status_for(exc)
    error_code = exc.code if isinstance(exc, SalesAPIError) else exc.__class__.__name__

    log = logger.error if status_code >= 500 else logger.warning
    log(
        "request_error",
        request_id=getattr(request.state, "request_id", None),
        path=request.url.path,
        error_type=error_code,
        error=str(exc),
        details=exc.details if isinstance(exc, SalesAPIError) else None,
        traceback=traceback.format_exc() if status_code >= 500 else None,
    )

    if isinstance(exc, DatabaseError):
        # Driver detail is attached for diagnostics
        return error_response(f"Failed to {exc.operation}", status_code=status_code, error=exc.error)
    if isinstance(exc, SalesAPIError):
        return error_response(exc.message, status_code=status_code)
    return error_response("Internal server error", status_code=status_code, error=str(exc))


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    Global error handling middleware.

    Last line of defence for exceptions no handler claimed.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            return render_exception(request, e)


def setup_exception_handlers(app: FastAPI) -> None:
    """Set up FastAPI exception handlers."""

    @app.exception_handler(SalesAPIError)
    async def domain_exception_handler(request: Request, exc: SalesAPIError) -> JSONResponse:
        """Handle domain exceptions raised by routes and stores."""
        return render_exception(request, exc)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        """Handle malformed requests (bad JSON, wrong parameter types)."""
        errors = []
        for error in exc.errors():
            loc = " -> ".join(str(part) for part in error["loc"])
            errors.append(f"{loc}: {error['msg']}")

        return error_response(
            "Request validation failed",
            status_code=status.HTTP_400_BAD_REQUEST,
            error="; ".join(errors),
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
        """Wrap routing errors (404, 405) in the envelope."""
        return error_response(
            str(exc.detail) if exc.detail else "An error occurred",
            status_code=exc.status_code,
            headers=getattr(exc, "headers", None),
        )
