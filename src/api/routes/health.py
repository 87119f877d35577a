"""
Health probes.

/api/health answers as long as the process is up. /api/health/db also
round-trips a query through the connection pool and reports 503 when
the database cannot be reached.
"""

import time

from fastapi import APIRouter, Depends, Request, Response, status

from src.api.dependencies import get_app_settings
from src.application.dto.responses import HealthResponse, ProviderHealthResponse
from src.config import Settings

router = APIRouter(prefix="/api/health", tags=["health"])

_started = time.monotonic()


def _uptime() -> float:
    return round(time.monotonic() - _started, 3)


@router.get("", response_model=HealthResponse)
async def health_check(settings: Settings = Depends(get_app_settings)) -> HealthResponse:
    """Liveness: service version and uptime."""
    return HealthResponse(
        status="healthy",
        version=settings.app_version,
        uptime_seconds=_uptime(),
    )


@router.get("/db", response_model=HealthResponse)
async def db_health(
    request: Request,
    response: Response,
    settings: Settings = Depends(get_app_settings),
) -> HealthResponse:
    """Readiness: SQLite reachability and query latency."""
    pool = getattr(request.app.state, "pool", None)

    if pool is None:
        database = ProviderHealthResponse(
            name="sqlite", available=False, error="connection pool is not initialized"
        )
    else:
        try:
            database = ProviderHealthResponse(
                name="sqlite", available=True, latency_ms=round(await pool.ping(), 3)
            )
        except Exception as e:
            database = ProviderHealthResponse(name="sqlite", available=False, error=str(e))

    if not database.available:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return HealthResponse(
        status="healthy" if database.available else "unhealthy",
        version=settings.app_version,
        uptime_seconds=_uptime(),
        database=database,
    )
