"""Inventory feature: materialized current view and its query engine."""

from app.features.inventory.routes import router
from app.features.inventory.schemas import (
    FilterCondition,
    FilterType,
    InventoryColumn,
    InventoryPageResponse,
    LowStockResponse,
    PaginatedQuery,
    SearchResponse,
    SortDirection,
    SortSpec,
)
from app.features.inventory.service import (
    build_filter_clause,
    build_order_by,
    get_page,
    get_paginated,
    low_stock,
    parse_filters,
    parse_sort,
    resolve_column,
    search,
    top_movers,
)
from app.features.inventory.view import refresh_view

__all__ = [
    "FilterCondition",
    "FilterType",
    "InventoryColumn",
    "InventoryPageResponse",
    "LowStockResponse",
    "PaginatedQuery",
    "SearchResponse",
    "SortDirection",
    "SortSpec",
    "build_filter_clause",
    "build_order_by",
    "get_page",
    "get_paginated",
    "low_stock",
    "parse_filters",
    "parse_sort",
    "refresh_view",
    "resolve_column",
    "router",
    "search",
    "top_movers",
]
