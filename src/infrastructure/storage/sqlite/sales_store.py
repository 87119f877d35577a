"""SQLite implementation of sales record storage."""

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime

import aiosqlite

from src.config import get_logger
from src.core.entities.sales_query import (
    PageSpec,
    ProductSales,
    SalesFilter,
    SalesSummary,
    SortSpec,
)
from src.core.entities.sales_record import SalesRecord, SalesRecordChanges
from src.core.exceptions import DatabaseError, DuplicateSalesRecordError
from src.core.interfaces.sales_store import ISalesStore
from src.infrastructure.storage.sqlite import query_builder as qb
from src.infrastructure.storage.sqlite.connection import ConnectionPool

logger = get_logger(__name__)


@contextmanager
def _database_errors(operation: str) -> Iterator[None]:
    """Re-raise driver errors as DatabaseError tagged with the operation."""
    try:
        yield
    except aiosqlite.Error as e:
        logger.error("sales_store_failed", operation=operation, error=str(e))
        raise DatabaseError(operation, str(e)) from e


def _is_unique_violation(exc: aiosqlite.IntegrityError) -> bool:
    return "UNIQUE constraint failed" in str(exc)


class SQLiteSalesStore(ISalesStore):
    """SQLite implementation of sales record storage."""

    def __init__(self, pool: ConnectionPool):
        self._pool = pool

    async def list_records(
        self, filters: SalesFilter, sort: SortSpec, page: PageSpec
    ) -> list[SalesRecord]:
        """Filtered, sorted page of records."""
        stmt = qb.select_page(filters, sort, page)
        with _database_errors("fetch sales records"):
            async with self._pool.acquire() as conn:
                cursor = await conn.execute(stmt.sql, stmt.params)
                rows = await cursor.fetchall()
        return [self._row_to_record(row) for row in rows]

    async def count_records(self, filters: SalesFilter) -> int:
        """Number of records matching the filter."""
        stmt = qb.select_count(filters)
        with _database_errors("fetch sales records"):
            async with self._pool.acquire() as conn:
                cursor = await conn.execute(stmt.sql, stmt.params)
                row = await cursor.fetchone()
        return int(row["total"]) if row else 0

    async def get_record(self, invoice_no: str, stock_code: str) -> SalesRecord | None:
        """Get a record by composite key."""
        stmt = qb.select_by_key(invoice_no, stock_code)
        with _database_errors("fetch sales record"):
            async with self._pool.acquire() as conn:
                cursor = await conn.execute(stmt.sql, stmt.params)
                row = await cursor.fetchone()
        if row is None:
            return None
        return self._row_to_record(row)

    async def create_record(self, record: SalesRecord) -> SalesRecord:
        """Insert a record and return the stored row."""
        stmt = qb.insert_record(record.model_dump())
        try:
            async with self._pool.transaction() as conn:
                cursor = await conn.execute(stmt.sql, stmt.params)
                rows = await cursor.fetchall()
        except aiosqlite.IntegrityError as e:
            if _is_unique_violation(e):
                logger.warning(
                    "sales_record_duplicate",
                    invoice_no=record.invoice_no,
                    stock_code=record.stock_code,
                )
                raise DuplicateSalesRecordError(record.invoice_no, record.stock_code) from e
            logger.error("sales_store_failed", operation="create sales record", error=str(e))
            raise DatabaseError("create sales record", str(e)) from e
        except aiosqlite.Error as e:
            logger.error("sales_store_failed", operation="create sales record", error=str(e))
            raise DatabaseError("create sales record", str(e)) from e

        created = self._row_to_record(rows[0])
        logger.info(
            "sales_record_created",
            invoice_no=created.invoice_no,
            stock_code=created.stock_code,
            quantity=created.quantity,
        )
        return created

    async def update_record(
        self, invoice_no: str, stock_code: str, changes: SalesRecordChanges
    ) -> SalesRecord | None:
        """Apply a partial update and return the updated row."""
        stmt = qb.update_by_key(invoice_no, stock_code, changes.changed_fields)
        with _database_errors("update sales record"):
            async with self._pool.transaction() as conn:
                cursor = await conn.execute(stmt.sql, stmt.params)
                rows = await cursor.fetchall()

        if not rows:
            return None

        logger.info(
            "sales_record_updated",
            invoice_no=invoice_no,
            stock_code=stock_code,
            fields=sorted(changes.model_fields_set),
            rows=len(rows),
        )
        return self._row_to_record(rows[0])

    async def delete_record(self, invoice_no: str, stock_code: str) -> SalesRecord | None:
        """Delete a record and return the removed row."""
        stmt = qb.delete_by_key(invoice_no, stock_code)
        with _database_errors("delete sales record"):
            async with self._pool.transaction() as conn:
                cursor = await conn.execute(stmt.sql, stmt.params)
                rows = await cursor.fetchall()

        if not rows:
            return None

        logger.info(
            "sales_record_deleted",
            invoice_no=invoice_no,
            stock_code=stock_code,
            rows=len(rows),
        )
        return self._row_to_record(rows[0])

    async def summarize(self, filters: SalesFilter) -> SalesSummary:
        """Aggregate totals over matching records."""
        stmt = qb.select_summary(filters)
        with _database_errors("fetch sales analytics"):
            async with self._pool.acquire() as conn:
                cursor = await conn.execute(stmt.sql, stmt.params)
                row = await cursor.fetchone()

        if row is None:
            return SalesSummary()

        return SalesSummary(
            total_sales=round(float(row["total_sales"] or 0), 2),
            total_quantity=int(row["total_quantity"] or 0),
            total_orders=int(row["total_orders"] or 0),
            average_order_value=round(float(row["average_order_value"] or 0), 2),
        )

    async def top_products(self, filters: SalesFilter, limit: int) -> list[ProductSales]:
        """Best-selling products by total quantity."""
        stmt = qb.select_top_products(filters, limit)
        with _database_errors("fetch top products"):
            async with self._pool.acquire() as conn:
                cursor = await conn.execute(stmt.sql, stmt.params)
                rows = await cursor.fetchall()

        return [
            ProductSales(
                stock_code=row["stock_code"],
                description=row["description"],
                total_quantity=int(row["total_quantity"] or 0),
                total_revenue=round(float(row["total_revenue"] or 0), 2),
                average_price=round(float(row["average_price"] or 0), 2),
            )
            for row in rows
        ]

    @staticmethod
    def _row_to_record(row: aiosqlite.Row) -> SalesRecord:
        """Convert a database row to a SalesRecord entity."""
        return SalesRecord(
            invoice_no=row["invoice_no"],
            stock_code=row["stock_code"],
            description=row["description"],
            quantity=int(row["quantity"]),
            invoice_date=datetime.fromisoformat(row["invoice_date"]),
            unit_price=row["unit_price"],
            customer_id=row["customer_id"],
            country=row["country"],
        )
