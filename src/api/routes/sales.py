"""Sales record endpoints: CRUD by composite key plus analytics."""

import asyncio
from typing import Any

from fastapi import APIRouter, Body, Depends, Query, status
from fastapi.responses import JSONResponse

from src.api.dependencies import get_sales_store
from src.application.dto.requests import (
    parse_create_payload,
    parse_sales_filter,
    parse_update_payload,
)
from src.application.dto.responses import ApiEnvelope, success_response
from src.core.entities.sales_query import (
    TOP_PRODUCTS_DEFAULT_LIMIT,
    TOP_PRODUCTS_MAX_LIMIT,
    PageSpec,
    Pagination,
    SortSpec,
    clamp,
    parse_int_or_default,
)
from src.core.exceptions import SalesRecordNotFoundError
from src.core.interfaces import ISalesStore

router = APIRouter(tags=["sales"])

ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    400: {"model": ApiEnvelope},
    500: {"model": ApiEnvelope},
}
KEYED_ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    **ERROR_RESPONSES,
    404: {"model": ApiEnvelope},
}


# Analytics routes are registered before /{invoice_no}/{stock_code}
@router.get(
    "/analytics/summary",
    response_model=ApiEnvelope,
    responses=ERROR_RESPONSES,
)
async def sales_summary(
    start_date: str | None = Query(default=None, alias="startDate"),
    end_date: str | None = Query(default=None, alias="endDate"),
    country: str | None = Query(default=None),
    store: ISalesStore = Depends(get_sales_store),
) -> JSONResponse:
    """Total revenue, quantity, order count and average order value."""
    filters = parse_sales_filter(country=country, start_date=start_date, end_date=end_date)
    summary = await store.summarize(filters)
    return success_response(summary.model_dump(by_alias=True))


@router.get(
    "/analytics/top-products",
    response_model=ApiEnvelope,
    responses=ERROR_RESPONSES,
)
async def top_products(
    limit: str | None = Query(default=None),
    start_date: str | None = Query(default=None, alias="startDate"),
    end_date: str | None = Query(default=None, alias="endDate"),
    store: ISalesStore = Depends(get_sales_store),
) -> JSONResponse:
    """Products ranked by total quantity sold."""
    filters = parse_sales_filter(start_date=start_date, end_date=end_date)
    limit_num = clamp(
        parse_int_or_default(limit, TOP_PRODUCTS_DEFAULT_LIMIT), 1, TOP_PRODUCTS_MAX_LIMIT
    )
    products = await store.top_products(filters, limit_num)
    return success_response([p.model_dump(by_alias=True) for p in products])


@router.get("/", response_model=ApiEnvelope, responses=ERROR_RESPONSES)
async def list_sales_records(
    country: str | None = Query(default=None),
    customer_id: str | None = Query(default=None, alias="customerId"),
    start_date: str | None = Query(default=None, alias="startDate"),
    end_date: str | None = Query(default=None, alias="endDate"),
    sort_by: str | None = Query(default="invoiceDate", alias="sortBy"),
    sort_order: str | None = Query(default="desc", alias="sortOrder"),
    page: str | None = Query(default=None),
    limit: str | None = Query(default=None),
    store: ISalesStore = Depends(get_sales_store),
) -> JSONResponse:
    """
    List sales records.

    The page query and the count query share one filter and run
    concurrently.
    """
    filters = parse_sales_filter(
        country=country,
        customer_id=customer_id,
        start_date=start_date,
        end_date=end_date,
    )
    sort = SortSpec.from_params(sort_by, sort_order)
    window = PageSpec.from_params(page, limit)

    records, total = await asyncio.gather(
        store.list_records(filters, sort, window),
        store.count_records(filters),
    )

    return success_response(
        [record.to_api() for record in records],
        pagination=Pagination.build(window, total),
    )


@router.get(
    "/{invoice_no}/{stock_code}",
    response_model=ApiEnvelope,
    responses=KEYED_ERROR_RESPONSES,
)
async def get_sales_record(
    invoice_no: str,
    stock_code: str,
    store: ISalesStore = Depends(get_sales_store),
) -> JSONResponse:
    """Get a sales record by invoice number and stock code."""
    record = await store.get_record(invoice_no, stock_code)
    if record is None:
        raise SalesRecordNotFoundError(invoice_no, stock_code)
    return success_response(record.to_api())


@router.post(
    "/",
    response_model=ApiEnvelope,
    status_code=status.HTTP_201_CREATED,
    responses=ERROR_RESPONSES,
)
async def create_sales_record(
    payload: Any = Body(default=None),
    store: ISalesStore = Depends(get_sales_store),
) -> JSONResponse:
    """Create a sales record."""
    record = parse_create_payload(payload)
    created = await store.create_record(record)
    return success_response(
        created.to_api(),
        message="Sales record created successfully",
        status_code=status.HTTP_201_CREATED,
    )


@router.put(
    "/{invoice_no}/{stock_code}",
    response_model=ApiEnvelope,
    responses=KEYED_ERROR_RESPONSES,
)
async def update_sales_record(
    invoice_no: str,
    stock_code: str,
    payload: Any = Body(default=None),
    store: ISalesStore = Depends(get_sales_store),
) -> JSONResponse:
    """Partially update a sales record; only fields present in the body change."""
    changes = parse_update_payload(payload)
    updated = await store.update_record(invoice_no, stock_code, changes)
    if updated is None:
        raise SalesRecordNotFoundError(invoice_no, stock_code)
    return success_response(updated.to_api(), message="Sales record updated successfully")


@router.delete(
    "/{invoice_no}/{stock_code}",
    response_model=ApiEnvelope,
    responses=KEYED_ERROR_RESPONSES,
)
async def delete_sales_record(
    invoice_no: str,
    stock_code: str,
    store: ISalesStore = Depends(get_sales_store),
) -> JSONResponse:
    """Delete a sales record and echo it back."""
    deleted = await store.delete_record(invoice_no, stock_code)
    if deleted is None:
        raise SalesRecordNotFoundError(invoice_no, stock_code)
    return success_response(deleted.to_api(), message="Sales record deleted successfully")
