"""Pydantic schemas for the current inventory view and its query engine."""

from datetime import date as date_type
from enum import Enum

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, StrictFloat, StrictInt, StrictStr

from app.core.config import get_settings
from app.features.data_platform.schemas import CurrentViewRowRead

# =============================================================================
# Enums
# =============================================================================


class InventoryColumn(str, Enum):
    """Columns of the current view that may be sorted or filtered on.

    Any column name outside this set is rejected before a query is built.
    """

    SKU = "sku"
    TITLE = "title"
    UPC = "upc"
    CATEGORY1 = "category1"
    CATEGORY2 = "category2"
    QUANTITY = "quantity"
    ESTIMATED_COST = "estimated_cost"
    QUANTITY_CHANGE = "quantity_change"
    ABSOLUTE_CHANGE = "absolute_change"
    PERCENT_CHANGE = "percent_change"
    LAST_UPDATED = "last_updated"


class FilterType(str, Enum):
    """Supported column filter operators."""

    CONTAINS = "contains"
    EQUALS = "equals"
    GREATER_THAN = "greaterThan"


class SortDirection(str, Enum):
    """Sort direction."""

    ASC = "asc"
    DESC = "desc"


# =============================================================================
# Query Schemas
# =============================================================================


class FilterCondition(BaseModel):
    """One column filter, e.g. ``{"type": "greaterThan", "value": "100"}``.

    The grid-style key ``filter`` is accepted for ``value``.
    """

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    type: FilterType
    value: StrictStr | StrictInt | StrictFloat = Field(
        ...,
        validation_alias=AliasChoices("value", "filter"),
        description="Value compared against the column",
    )


class SortSpec(BaseModel):
    """Sort order, e.g. ``{"column": "quantity", "direction": "desc"}``.

    The grid-style keys ``colId`` and ``sort`` are accepted as well.
    """

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    column: str = Field(..., validation_alias=AliasChoices("column", "colId"))
    direction: SortDirection = Field(
        SortDirection.ASC,
        validation_alias=AliasChoices("direction", "sort"),
    )


class PaginatedQuery(BaseModel):
    """Options of a paginated read over the current view."""

    page: int = Field(1, ge=1, description="Page number (1-indexed)")
    limit: int = Field(
        default_factory=lambda: get_settings().inventory_default_page_size,
        ge=1,
        description="Rows per page",
    )
    sort: SortSpec | None = Field(None, description="Sort order; defaults to sku ascending")
    filters: dict[str, FilterCondition] = Field(
        default_factory=dict, description="Column filters, ANDed together"
    )
    search: str | None = Field(
        None, description="Case-insensitive substring matched against sku, title and upc"
    )

    @property
    def offset(self) -> int:
        """Calculate SQL offset from page number."""
        return (self.page - 1) * self.limit


# =============================================================================
# Response Schemas
# =============================================================================


class InventoryPageResponse(BaseModel):
    """Offset-based page of the current view (GET /inventory/current)."""

    data: list[CurrentViewRowRead]
    total: int = Field(..., ge=0)
    limit: int = Field(..., ge=1)
    offset: int = Field(..., ge=0)


class SearchResult(BaseModel):
    """Compact search hit."""

    model_config = ConfigDict(from_attributes=True)

    sku: str
    title: str
    quantity: int
    category1: str


class SearchResponse(BaseModel):
    """Response body for GET /inventory/search."""

    results: list[SearchResult]


class LowStockResponse(BaseModel):
    """Response body for GET /inventory/low-stock."""

    items: list[CurrentViewRowRead]
    count: int = Field(..., ge=0)
    threshold: int = Field(..., ge=1)


class RefreshViewResponse(BaseModel):
    """Response body for POST /inventory/refresh-view."""

    as_of_date: date_type
    rows: int = Field(..., ge=0, description="Rows written to the current view")
    duration_ms: float = Field(..., ge=0)
