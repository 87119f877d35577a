"""
Dependency injection for FastAPI.

The connection pool is created once by the application lifespan and
kept on app.state; stores are built around it per request.
"""

from fastapi import Depends, Request

from src.config import Settings, get_settings
from src.core.exceptions import DatabaseError
from src.core.interfaces import ISalesStore
from src.infrastructure.storage.sqlite import ConnectionPool, SQLiteSalesStore


def get_app_settings() -> Settings:
    """Get application settings."""
    return get_settings()


def get_pool(request: Request) -> ConnectionPool:
    """Get the connection pool opened at startup."""
    pool: ConnectionPool | None = getattr(request.app.state, "pool", None)
    if pool is None:
        raise DatabaseError("connect to database", "connection pool is not initialized")
    return pool


def get_sales_store(pool: ConnectionPool = Depends(get_pool)) -> ISalesStore:
    """Get a sales store bound to the application pool."""
    return SQLiteSalesStore(pool)
