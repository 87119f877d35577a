"""Core domain entities."""

from src.core.entities.sales_query import (
    LIST_DEFAULT_LIMIT,
    LIST_MAX_LIMIT,
    TOP_PRODUCTS_DEFAULT_LIMIT,
    TOP_PRODUCTS_MAX_LIMIT,
    PageSpec,
    Pagination,
    ProductSales,
    SalesFilter,
    SalesSummary,
    SortField,
    SortOrder,
    SortSpec,
)
from src.core.entities.sales_record import SalesRecord, SalesRecordChanges

__all__ = [
    # Record
    "SalesRecord",
    "SalesRecordChanges",
    # Query objects
    "SalesFilter",
    "SortField",
    "SortOrder",
    "SortSpec",
    "PageSpec",
    "Pagination",
    # Aggregates
    "SalesSummary",
    "ProductSales",
    # Limits
    "LIST_DEFAULT_LIMIT",
    "LIST_MAX_LIMIT",
    "TOP_PRODUCTS_DEFAULT_LIMIT",
    "TOP_PRODUCTS_MAX_LIMIT",
]
