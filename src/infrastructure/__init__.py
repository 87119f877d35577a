"""Adapters for the core ports; currently SQLite storage only."""

from src.infrastructure import storage

__all__ = ["storage"]
