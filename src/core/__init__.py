"""Sales domain: records, query objects, the storage port and errors."""

from src.core import entities, exceptions, interfaces

__all__ = ["entities", "exceptions", "interfaces"]
