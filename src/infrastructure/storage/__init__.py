"""Sales record storage backends."""

from src.infrastructure.storage.sqlite import ConnectionPool, SQLiteSalesStore

__all__ = ["ConnectionPool", "SQLiteSalesStore"]
