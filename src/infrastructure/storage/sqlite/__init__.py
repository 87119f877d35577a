"""SQLite (aiosqlite) storage for sales records."""

from src.infrastructure.storage.sqlite.connection import ConnectionPool
from src.infrastructure.storage.sqlite.sales_store import SQLiteSalesStore

__all__ = ["ConnectionPool", "SQLiteSalesStore"]
