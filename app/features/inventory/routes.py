"""Inventory API routes: materialized view refresh and query engine reads."""

import time
from datetime import date

from fastapi import APIRouter, Depends, Query

from app.core.config import get_settings
from app.core.database import Storage, get_storage
from app.core.exceptions import NotFoundError
from app.core.logging import get_logger
from app.features.data_platform.schemas import CurrentViewRowRead
from app.features.inventory.schemas import (
    InventoryPageResponse,
    LowStockResponse,
    PaginatedQuery,
    RefreshViewResponse,
    SearchResponse,
    SearchResult,
)
from app.features.inventory.service import (
    get_page,
    get_paginated,
    low_stock,
    parse_filters,
    parse_sort,
    search,
    top_movers,
)
from app.features.inventory.view import refresh_view
from app.features.metrics.schemas import CurrentViewStats
from app.features.metrics.service import current_view_stats
from app.features.snapshots.service import has_snapshot, latest_snapshot_date
from app.shared.schemas import PaginatedResponse

logger = get_logger(__name__)

router = APIRouter(prefix="/inventory", tags=["inventory"])


@router.post(
    "/refresh-view",
    response_model=RefreshViewResponse,
    summary="Rebuild the current inventory view",
    description="""
Rebuild the current view from the snapshot of `as_of_date` (default: the latest
snapshot date), its product attributes and the same-day change records.

The delete and re-insert run in one transaction; concurrent readers never see
an empty or partially populated view.
""",
)
async def post_refresh_view(
    as_of_date: date | None = Query(None, description="Snapshot date the view reflects"),
    storage: Storage = Depends(get_storage),
) -> RefreshViewResponse:
    """Rebuild the current view.

    Raises:
        NotFoundError: If there is no snapshot to build the view from.
    """
    start_time = time.perf_counter()

    async with storage.transaction("refresh_view") as db:
        if as_of_date is None:
            as_of_date = await latest_snapshot_date(db)
        if as_of_date is None or not await has_snapshot(db, as_of_date):
            raise NotFoundError(
                message="No snapshot available to build the current view from",
                details={"as_of_date": str(as_of_date) if as_of_date else None},
            )
        rows = await refresh_view(db, as_of_date)

    duration_ms = (time.perf_counter() - start_time) * 1000
    return RefreshViewResponse(as_of_date=as_of_date, rows=rows, duration_ms=round(duration_ms, 2))


@router.get(
    "/paginated",
    response_model=PaginatedResponse[CurrentViewRowRead],
    summary="Paginated, filtered and sorted current inventory",
    description="""
Read one page of the current view.

- `sort`: JSON, e.g. `{"column": "quantity", "direction": "desc"}`
  (`{"colId": ..., "sort": ...}` is accepted too). Default: sku ascending.
- `filter`: JSON mapping of column to condition, e.g.
  `{"quantity": {"type": "greaterThan", "value": "100"}}`. Types: `contains`,
  `equals`, `greaterThan`. Conditions are ANDed.
- `search`: case-insensitive substring matched against sku, title and upc.

Unknown columns and malformed descriptors are rejected with 422 naming the
offending field. `total` counts the filtered set.
""",
)
async def get_paginated_inventory(
    page: int = Query(1, ge=1, description="Page number (1-indexed)"),
    limit: int | None = Query(None, ge=1, description="Rows per page (default from settings)"),
    sort: str | None = Query(None, description="JSON-encoded sort descriptor"),
    filter_text: str | None = Query(
        None, alias="filter", description="JSON-encoded column filters"
    ),
    search_text: str | None = Query(None, alias="search", description="Free-text search"),
    storage: Storage = Depends(get_storage),
) -> PaginatedResponse[CurrentViewRowRead]:
    """Read one page of the current view."""
    start_time = time.perf_counter()
    if limit is None:
        limit = get_settings().inventory_default_page_size

    query = PaginatedQuery(
        page=page,
        limit=limit,
        sort=parse_sort(sort),
        filters=parse_filters(filter_text),
        search=search_text or None,
    )
    async with storage.snapshot() as db:
        result = await get_paginated(db, query)

    duration_ms = round((time.perf_counter() - start_time) * 1000, 2)
    if duration_ms > get_settings().slow_request_ms:
        logger.warning(
            "inventory.slow_query",
            duration_ms=duration_ms,
            page=page,
            limit=limit,
            sort=sort,
            filter=filter_text,
            search=search_text,
        )
    return result


@router.get(
    "/current",
    response_model=InventoryPageResponse,
    summary="Current inventory by offset",
)
async def get_current_inventory(
    limit: int | None = Query(None, ge=1, description="Rows to return (default: max page size)"),
    offset: int = Query(0, ge=0, description="Rows to skip"),
    storage: Storage = Depends(get_storage),
) -> InventoryPageResponse:
    """Read the current view ordered by sku."""
    if limit is None:
        limit = get_settings().inventory_max_page_size
    async with storage.snapshot() as db:
        return await get_page(db, limit=limit, offset=offset)


@router.get(
    "/search",
    response_model=SearchResponse,
    summary="Autocomplete search",
)
async def search_inventory(
    q: str = Query("", description="SKU prefix or title fragment"),
    limit: int | None = Query(None, ge=1, le=100),
    storage: Storage = Depends(get_storage),
) -> SearchResponse:
    """Search by sku prefix or title substring; short queries return nothing."""
    if limit is None:
        limit = get_settings().inventory_search_default_limit
    async with storage.snapshot() as db:
        rows = await search(db, q, limit)
        return SearchResponse(results=[SearchResult.model_validate(row) for row in rows])


@router.get(
    "/top-movers",
    response_model=list[CurrentViewRowRead],
    summary="Largest movements of the view's date",
)
async def get_top_movers(
    limit: int | None = Query(None, ge=1, le=1000),
    storage: Storage = Depends(get_storage),
) -> list[CurrentViewRowRead]:
    """Rows with absolute_change > 0, largest first."""
    if limit is None:
        limit = get_settings().inventory_top_movers_default_limit
    async with storage.snapshot() as db:
        rows = await top_movers(db, limit)
        return [CurrentViewRowRead.model_validate(row) for row in rows]


@router.get(
    "/low-stock",
    response_model=LowStockResponse,
    summary="Low stock alert list",
)
async def get_low_stock(
    threshold: int | None = Query(None, ge=1, description="Upper bound of low stock"),
    storage: Storage = Depends(get_storage),
) -> LowStockResponse:
    """Rows with 0 < quantity <= threshold, lowest quantity first."""
    if threshold is None:
        threshold = get_settings().inventory_low_stock_default_threshold
    async with storage.snapshot() as db:
        rows = await low_stock(db, threshold)
        items = [CurrentViewRowRead.model_validate(row) for row in rows]
    return LowStockResponse(items=items, count=len(items), threshold=threshold)


@router.get(
    "/stats",
    response_model=CurrentViewStats,
    summary="Dashboard statistics of the current view",
)
async def get_stats(
    threshold: int | None = Query(None, ge=1, description="Upper bound of low stock"),
    storage: Storage = Depends(get_storage),
) -> CurrentViewStats:
    """Totals, stock alerts and movement counts of the current view."""
    async with storage.snapshot() as db:
        return await current_view_stats(db, threshold)
