"""Ports implemented by the infrastructure layer."""

from src.core.interfaces.sales_store import ISalesStore

__all__ = ["ISalesStore"]
