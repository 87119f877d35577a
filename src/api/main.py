"""
FastAPI application factory.

The lifespan migrates the schema and opens the connection pool; the
pool lives on app.state and reaches handlers through dependencies.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api.middleware import (
    ErrorHandlerMiddleware,
    LoggingMiddleware,
    setup_exception_handlers,
)
from src.api.routes import health_router, sales_router
from src.config import Settings, configure_logging, get_logger, get_settings
from src.infrastructure.storage.sqlite import ConnectionPool
from src.infrastructure.storage.sqlite.migrations import run_migrations

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open the database on startup and release it on shutdown."""
    settings = get_settings()
    configure_logging()

    logger.info(
        "application_starting",
        host=settings.api.host,
        port=settings.api.port,
        db_path=str(settings.storage.db_path),
    )

    try:
        results = await run_migrations(settings.storage.db_path)
        failed = [r.version for r in results if not r.success or r.checks]
        if failed:
            raise RuntimeError(f"migrations failed: {', '.join(failed)}")
    except Exception as e:
        logger.error("database_init_failed", error=str(e))
        raise

    pool = ConnectionPool.from_settings(settings)
    await pool.initialize()
    app.state.pool = pool
    logger.info("application_started", migrations_applied=len(results))

    try:
        yield
    finally:
        logger.info("application_stopping")
        app.state.pool = None
        await pool.close()


def _add_middleware(app: FastAPI, settings: Settings) -> None:
    # Starlette runs the last-added middleware outermost
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(ErrorHandlerMiddleware)

    if settings.api.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.api.cors_origins,
            allow_credentials=True,
            allow_methods=["GET", "POST", "PUT", "DELETE"],
            allow_headers=["*"],
        )


def create_app() -> FastAPI:
    """
    Create and configure FastAPI application.

    Returns:
        Configured FastAPI instance
    """
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="CRUD and analytics over retail sales transactions",
        version=settings.app_version,
        docs_url="/docs" if settings.api.debug else None,
        redoc_url="/redoc" if settings.api.debug else None,
        lifespan=lifespan,
    )
    app.state.pool = None

    _add_middleware(app, settings)
    setup_exception_handlers(app)

    app.include_router(health_router)
    app.include_router(sales_router, prefix=settings.api.sales_prefix)

    @app.get("/", include_in_schema=False)
    async def root() -> dict[str, str]:
        return {
            "name": settings.app_name,
            "version": settings.app_version,
            "sales": settings.api.sales_prefix,
            "health": "/api/health",
        }

    # Plain liveness probe for container orchestrators
    @app.get("/health", include_in_schema=False)
    async def root_health() -> dict[str, str]:
        return {"status": "healthy", "version": settings.app_version}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "src.api.main:app",
        host=settings.api.host,
        port=settings.api.port,
        reload=settings.api.debug,
    )
