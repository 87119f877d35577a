"""Abstract interface for sales record storage."""

from abc import ABC, abstractmethod

from src.core.entities.sales_query import (
    PageSpec,
    ProductSales,
    SalesFilter,
    SalesSummary,
    SortSpec,
)
from src.core.entities.sales_record import SalesRecord, SalesRecordChanges


class ISalesStore(ABC):
    """
    Interface for sales record persistence.

    Key-based operations return None when no row matches; duplicates
    raise DuplicateSalesRecordError, other driver failures DatabaseError.
    """

    @abstractmethod
    async def list_records(
        self, filters: SalesFilter, sort: SortSpec, page: PageSpec
    ) -> list[SalesRecord]:
        """Filtered, sorted page of records."""
        pass

    @abstractmethod
    async def count_records(self, filters: SalesFilter) -> int:
        """Number of records matching the filter."""
        pass

    @abstractmethod
    async def get_record(self, invoice_no: str, stock_code: str) -> SalesRecord | None:
        """Get a record by composite key."""
        pass

    @abstractmethod
    async def create_record(self, record: SalesRecord) -> SalesRecord:
        """Insert a record and return the stored row."""
        pass

    @abstractmethod
    async def update_record(
        self, invoice_no: str, stock_code: str, changes: SalesRecordChanges
    ) -> SalesRecord | None:
        """Apply a partial update and return the updated row."""
        pass

    @abstractmethod
    async def delete_record(self, invoice_no: str, stock_code: str) -> SalesRecord | None:
        """Delete a record and return the removed row."""
        pass

    @abstractmethod
    async def summarize(self, filters: SalesFilter) -> SalesSummary:
        """Aggregate totals over matching records."""
        pass

    @abstractmethod
    async def top_products(self, filters: SalesFilter, limit: int) -> list[ProductSales]:
        """Best-selling products by total quantity."""
        pass
