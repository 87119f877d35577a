"""
Query value objects for sales listings and analytics.

Filters, sort and pagination are parsed from loosely typed request
parameters into these immutable objects; the storage layer turns them
into SQL.
"""

import math
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from src.core.entities.sales_record import INTEGER_MAX

LIST_DEFAULT_LIMIT = 50
LIST_MAX_LIMIT = 1000
TOP_PRODUCTS_DEFAULT_LIMIT = 10
TOP_PRODUCTS_MAX_LIMIT = 100


class SortField(str, Enum):
    """Sortable record fields, keyed by their API name."""

    INVOICE_DATE = "invoiceDate"
    UNIT_PRICE = "unitPrice"
    QUANTITY = "quantity"
    INVOICE_NO = "invoiceNo"
    STOCK_CODE = "stockCode"
    CUSTOMER_ID = "customerId"
    COUNTRY = "country"


class SortOrder(str, Enum):
    """Sort direction."""

    ASC = "asc"
    DESC = "desc"


def parse_int_or_default(value: str | int | None, default: int) -> int:
    """Parse an integer, returning the default when absent or unparseable."""
    if value is None:
        return default
    try:
        return int(str(value).strip())
    except ValueError:
        return default


def clamp(value: int, minimum: int, maximum: int) -> int:
    return max(minimum, min(maximum, value))


@dataclass(frozen=True)
class SalesFilter:
    """Conjunctive filter over sales records. Unset fields match everything."""

    country: str | None = None
    customer_id: int | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None

    @property
    def is_empty(self) -> bool:
        return (
            self.country is None
            and self.customer_id is None
            and self.start_date is None
            and self.end_date is None
        )


@dataclass(frozen=True)
class SortSpec:
    """Ordering of a listing."""

    field: SortField = SortField.INVOICE_DATE
    order: SortOrder = SortOrder.DESC

    @classmethod
    def from_params(cls, sort_by: str | None, sort_order: str | None) -> "SortSpec":
        """
        Build a sort spec from raw parameters.

        Unknown fields fall back to invoice date. Only the exact string
        "asc" sorts ascending; anything else sorts descending.
        """
        try:
            field = SortField(sort_by) if sort_by else SortField.INVOICE_DATE
        except ValueError:
            field = SortField.INVOICE_DATE
        order = SortOrder.ASC if sort_order == SortOrder.ASC.value else SortOrder.DESC
        return cls(field=field, order=order)


@dataclass(frozen=True)
class PageSpec:
    """A page window: 1-based page number and page size."""

    page: int = 1
    limit: int = LIST_DEFAULT_LIMIT

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    @classmethod
    def from_params(
        cls,
        page: str | int | None,
        limit: str | int | None,
        default_limit: int = LIST_DEFAULT_LIMIT,
        max_limit: int = LIST_MAX_LIMIT,
    ) -> "PageSpec":
        """Parse and clamp raw page parameters."""
        limit_num = clamp(parse_int_or_default(limit, default_limit), 1, max_limit)
        # OFFSET must stay within a 64-bit integer
        page_num = clamp(parse_int_or_default(page, 1), 1, INTEGER_MAX // limit_num)
        return cls(page=page_num, limit=limit_num)

    def total_pages(self, total: int) -> int:
        return math.ceil(total / self.limit)


class Pagination(BaseModel):
    """Pagination block of a listing response."""

    page: int
    limit: int
    total: int
    total_pages: int

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    @classmethod
    def build(cls, page: PageSpec, total: int) -> "Pagination":
        return cls(
            page=page.page,
            limit=page.limit,
            total=total,
            total_pages=page.total_pages(total),
        )


class SalesSummary(BaseModel):
    """Aggregate totals over a filtered set of records."""

    total_sales: float = 0.0
    total_quantity: int = 0
    total_orders: int = 0
    average_order_value: float = 0.0

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ProductSales(BaseModel):
    """Per-product aggregate used by the top-products ranking."""

    stock_code: str
    description: str | None = None
    total_quantity: int = 0
    total_revenue: float = 0.0
    average_price: float = 0.0

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
