"""
SQL construction for the sales_data table.

Every statement is built from fixed SQL text plus bound parameters.
Column names only ever come from the mappings below, never from
request input.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any

from src.core.entities.sales_query import PageSpec, SalesFilter, SortField, SortOrder, SortSpec

TABLE = "sales_data"

COLUMNS: tuple[str, ...] = (
    "invoice_no",
    "stock_code",
    "description",
    "quantity",
    "invoice_date",
    "unit_price",
    "customer_id",
    "country",
)

SORT_COLUMNS: dict[SortField, str] = {
    SortField.INVOICE_DATE: "invoice_date",
    SortField.UNIT_PRICE: "unit_price",
    SortField.QUANTITY: "quantity",
    SortField.INVOICE_NO: "invoice_no",
    SortField.STOCK_CODE: "stock_code",
    SortField.CUSTOMER_ID: "customer_id",
    SortField.COUNTRY: "country",
}

# Attribute name -> column for partial updates. Key columns are absent.
UPDATABLE_COLUMNS: dict[str, str] = {
    "description": "description",
    "quantity": "quantity",
    "invoice_date": "invoice_date",
    "unit_price": "unit_price",
    "customer_id": "customer_id",
    "country": "country",
}

_SELECT_COLUMNS = ", ".join(COLUMNS)
_KEY_PREDICATE = "invoice_no = ? AND stock_code = ?"


@dataclass(frozen=True)
class Statement:
    """SQL text with its positional parameters."""

    sql: str
    params: tuple[Any, ...] = field(default_factory=tuple)


def to_db_timestamp(value: datetime) -> str:
    """
    Fixed-width ISO text so that string comparison orders chronologically.
    """
    return value.isoformat(timespec="microseconds")


def to_db_value(value: Any) -> Any:
    """Adapt Python values the sqlite3 driver does not handle natively."""
    if isinstance(value, datetime):
        return to_db_timestamp(value)
    if isinstance(value, Decimal):
        return str(value)
    return value


def build_where(filters: SalesFilter) -> Statement:
    """Conjunctive WHERE clause; empty when no filter is set."""
    if filters.is_empty:
        return Statement("")

    conditions: list[str] = []
    params: list[Any] = []

    if filters.country is not None:
        conditions.append("country = ?")
        params.append(filters.country)

    if filters.customer_id is not None:
        conditions.append("customer_id = ?")
        params.append(filters.customer_id)

    if filters.start_date is not None:
        conditions.append("invoice_date >= ?")
        params.append(to_db_timestamp(filters.start_date))

    if filters.end_date is not None:
        conditions.append("invoice_date <= ?")
        params.append(to_db_timestamp(filters.end_date))

    return Statement("WHERE " + " AND ".join(conditions), tuple(params))


def build_order_by(sort: SortSpec) -> str:
    column = SORT_COLUMNS.get(sort.field, SORT_COLUMNS[SortField.INVOICE_DATE])
    direction = "ASC" if sort.order is SortOrder.ASC else "DESC"
    # Key columns break ties so that pages do not overlap
    return f"ORDER BY {column} {direction}, invoice_no ASC, stock_code ASC"


def select_page(filters: SalesFilter, sort: SortSpec, page: PageSpec) -> Statement:
    where = build_where(filters)
    sql = (
        f"SELECT {_SELECT_COLUMNS} FROM {TABLE} {where.sql} "
        f"{build_order_by(sort)} LIMIT ? OFFSET ?"
    )
    return Statement(sql, where.params + (page.limit, page.offset))


def select_count(filters: SalesFilter) -> Statement:
    where = build_where(filters)
    return Statement(f"SELECT COUNT(*) AS total FROM {TABLE} {where.sql}", where.params)


def select_by_key(invoice_no: str, stock_code: str) -> Statement:
    return Statement(
        f"SELECT {_SELECT_COLUMNS} FROM {TABLE} WHERE {_KEY_PREDICATE} LIMIT 1",
        (invoice_no, stock_code),
    )


def insert_record(values: dict[str, Any]) -> Statement:
    placeholders = ", ".join("?" for _ in COLUMNS)
    return Statement(
        f"INSERT INTO {TABLE} ({_SELECT_COLUMNS}) VALUES ({placeholders}) "
        f"RETURNING {_SELECT_COLUMNS}",
        tuple(to_db_value(values.get(column)) for column in COLUMNS),
    )


def update_by_key(invoice_no: str, stock_code: str, changes: dict[str, Any]) -> Statement:
    """
    UPDATE ... SET for the given attributes only.

    Raises:
        ValueError: if changes is empty or names a non-updatable attribute
    """
    if not changes:
        raise ValueError("update requires at least one column")

    assignments: list[str] = []
    params: list[Any] = []
    for name, value in changes.items():
        column = UPDATABLE_COLUMNS.get(name)
        if column is None:
            raise ValueError(f"column is not updatable: {name}")
        assignments.append(f"{column} = ?")
        params.append(to_db_value(value))

    return Statement(
        f"UPDATE {TABLE} SET {', '.join(assignments)} WHERE {_KEY_PREDICATE} "
        f"RETURNING {_SELECT_COLUMNS}",
        tuple(params) + (invoice_no, stock_code),
    )


def delete_by_key(invoice_no: str, stock_code: str) -> Statement:
    return Statement(
        f"DELETE FROM {TABLE} WHERE {_KEY_PREDICATE} RETURNING {_SELECT_COLUMNS}",
        (invoice_no, stock_code),
    )


def select_summary(filters: SalesFilter) -> Statement:
    where = build_where(filters)
    sql = f"""
        SELECT
            COALESCE(SUM(quantity * unit_price), 0) AS total_sales,
            COALESCE(SUM(quantity), 0) AS total_quantity,
            COUNT(*) AS total_orders,
            COALESCE(AVG(quantity * unit_price), 0) AS average_order_value
        FROM {TABLE} {where.sql}
    """
    return Statement(sql, where.params)


def select_top_products(filters: SalesFilter, limit: int) -> Statement:
    where = build_where(filters)
    sql = f"""
        SELECT
            stock_code,
            description,
            COALESCE(SUM(quantity), 0) AS total_quantity,
            COALESCE(SUM(quantity * unit_price), 0) AS total_revenue,
            COALESCE(AVG(unit_price), 0) AS average_price
        FROM {TABLE} {where.sql}
        GROUP BY stock_code, description
        ORDER BY total_quantity DESC, stock_code ASC
        LIMIT ?
    """
    return Statement(sql, where.params + (limit,))
