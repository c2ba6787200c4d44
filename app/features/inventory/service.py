"""Query engine over the materialized current view.

Caller-supplied column names are resolved through the ``InventoryColumn``
allow-list before any predicate or ORDER BY is built. Unknown columns and
values that cannot be compared with a column are rejected with a
``ValidationError`` naming the offending field.
"""

import datetime
import math
from collections.abc import Sequence

import pydantic
from sqlalchemy import ColumnElement, String, cast, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import InstrumentedAttribute

from app.core.config import get_settings
from app.core.exceptions import ValidationError
from app.core.logging import get_logger
from app.features.data_platform.models import CurrentViewRow
from app.features.data_platform.schemas import CurrentViewRowRead
from app.features.inventory.schemas import (
    FilterCondition,
    FilterType,
    InventoryColumn,
    InventoryPageResponse,
    PaginatedQuery,
    SortDirection,
    SortSpec,
)
from app.shared.schemas import PaginatedResponse, PaginationParams
from app.shared.utils import paginate_response

logger = get_logger(__name__)

NUMERIC_COLUMNS = frozenset(
    {
        InventoryColumn.QUANTITY,
        InventoryColumn.ESTIMATED_COST,
        InventoryColumn.QUANTITY_CHANGE,
        InventoryColumn.ABSOLUTE_CHANGE,
    }
)

TEXT_COLUMNS = frozenset(
    {
        InventoryColumn.SKU,
        InventoryColumn.TITLE,
        InventoryColumn.UPC,
        InventoryColumn.CATEGORY1,
        InventoryColumn.CATEGORY2,
        InventoryColumn.PERCENT_CHANGE,
    }
)

_FILTERS_ADAPTER = pydantic.TypeAdapter(dict[str, FilterCondition])


# =============================================================================
# Descriptor parsing and validation
# =============================================================================


def _invalid(message: str, field: str, value: object, **extra: object) -> ValidationError:
    return ValidationError(
        message=message,
        details={"field": field, "value": value, **extra},
    )


def parse_sort(raw: str | None) -> SortSpec | None:
    """Parse a JSON-encoded sort descriptor.

    Args:
        raw: e.g. '{"column": "quantity", "direction": "desc"}'. Blank means none.

    Returns:
        Parsed SortSpec, or None when no sort was given.

    Raises:
        ValidationError: If the descriptor is not valid JSON of the expected shape.
    """
    if raw is None or not raw.strip():
        return None
    try:
        return SortSpec.model_validate_json(raw)
    except pydantic.ValidationError as e:
        raise _invalid(
            "Malformed sort descriptor",
            "sort",
            raw,
            errors=[err["msg"] for err in e.errors()],
        ) from e


def parse_filters(raw: str | None) -> dict[str, FilterCondition]:
    """Parse a JSON-encoded filter mapping.

    Args:
        raw: e.g. '{"quantity": {"type": "greaterThan", "value": "100"}}'.
            Blank means no filter.

    Returns:
        Mapping of column name to condition.

    Raises:
        ValidationError: If the mapping is not valid JSON of the expected shape.
    """
    if raw is None or not raw.strip():
        return {}
    try:
        return _FILTERS_ADAPTER.validate_json(raw)
    except pydantic.ValidationError as e:
        raise _invalid(
            "Malformed filter descriptor",
            "filter",
            raw,
            errors=[err["msg"] for err in e.errors()],
        ) from e


def resolve_column(name: str, field: str) -> InventoryColumn:
    """Resolve a caller-supplied column name against the allow-list.

    Args:
        name: Column name as sent by the caller.
        field: Request field the name came from (used in the error).

    Raises:
        ValidationError: If the column is not queryable.
    """
    try:
        return InventoryColumn(name)
    except ValueError:
        raise _invalid(
            f"Unknown column '{name}'",
            field,
            name,
            allowed=[column.value for column in InventoryColumn],
        ) from None


def _attribute(column: InventoryColumn) -> InstrumentedAttribute[object]:
    attribute: InstrumentedAttribute[object] = getattr(CurrentViewRow, column.value)
    return attribute


def _comparable_value(
    column: InventoryColumn,
    value: str | int | float,
    field: str,
) -> str | int | float | datetime.date:
    """Coerce a filter value to the type of its column."""
    if column in NUMERIC_COLUMNS:
        try:
            number = float(value)
        except ValueError:
            raise _invalid(
                f"Column '{column.value}' needs a numeric value", field, value
            ) from None
        if not math.isfinite(number):
            raise _invalid(f"Column '{column.value}' needs a finite value", field, value)
        return int(number) if number.is_integer() else number

    if column is InventoryColumn.LAST_UPDATED:
        try:
            return datetime.date.fromisoformat(str(value).strip())
        except ValueError:
            raise _invalid(
                f"Column '{column.value}' needs an ISO date (YYYY-MM-DD)", field, value
            ) from None

    return str(value)


def build_filter_clause(name: str, condition: FilterCondition) -> ColumnElement[bool] | None:
    """Build the predicate of one column filter.

    Args:
        name: Column name as sent by the caller.
        condition: Filter operator and value.

    Returns:
        SQL predicate, or None for an empty ``contains`` (matches everything).

    Raises:
        ValidationError: If the column is unknown or the value does not fit it.
    """
    field = f"filter.{name}"
    column = resolve_column(name, field)
    attribute = _attribute(column)

    if condition.type is FilterType.CONTAINS:
        text = str(condition.value)
        if not text:
            return None
        target = attribute if column in TEXT_COLUMNS else cast(attribute, String)
        return target.icontains(text, autoescape=True)

    value = _comparable_value(column, condition.value, field)
    if condition.type is FilterType.EQUALS:
        return attribute == value
    return attribute > value


def build_search_clause(search: str) -> ColumnElement[bool]:
    """Case-insensitive substring match ORed across sku, title and upc."""
    return or_(
        CurrentViewRow.sku.icontains(search, autoescape=True),
        CurrentViewRow.title.icontains(search, autoescape=True),
        CurrentViewRow.upc.icontains(search, autoescape=True),
    )


def build_order_by(sort: SortSpec | None) -> list[ColumnElement[object]]:
    """ORDER BY clauses for a sort spec; sku is always the final tie-breaker."""
    if sort is None:
        return [CurrentViewRow.sku.asc()]

    column = resolve_column(sort.column, "sort.column")
    attribute = _attribute(column)
    order = [attribute.desc() if sort.direction is SortDirection.DESC else attribute.asc()]
    if column is not InventoryColumn.SKU:
        order.append(CurrentViewRow.sku.asc())
    return order


# =============================================================================
# Reads
# =============================================================================


async def get_paginated(
    db: AsyncSession,
    query: PaginatedQuery,
) -> PaginatedResponse[CurrentViewRowRead]:
    """Read one filtered, sorted page of the current view.

    The total is counted with the same predicate as the page, before
    LIMIT/OFFSET, so it reflects the filtered set.

    Args:
        db: Async database session (run inside one read snapshot).
        query: Page, sort, filters and search.

    Returns:
        Page of rows with total and page count.

    Raises:
        ValidationError: If a column is not queryable, a value does not fit
            its column, or the page size exceeds the configured maximum.
    """
    max_page_size = get_settings().inventory_max_page_size
    if query.limit > max_page_size:
        raise _invalid(
            f"limit must be <= {max_page_size}", "limit", query.limit, maximum=max_page_size
        )

    conditions: list[ColumnElement[bool]] = []
    if query.search:
        conditions.append(build_search_clause(query.search))
    for name, condition in query.filters.items():
        clause = build_filter_clause(name, condition)
        if clause is not None:
            conditions.append(clause)
    order_by = build_order_by(query.sort)

    base = select(CurrentViewRow).where(*conditions)
    count_stmt = select(func.count()).select_from(base.subquery())
    total = (await db.execute(count_stmt)).scalar_one()

    page_stmt = base.order_by(*order_by).limit(query.limit).offset(query.offset)
    rows = (await db.execute(page_stmt)).scalars().all()

    logger.debug(
        "inventory.paginated_read",
        page=query.page,
        limit=query.limit,
        filters=sorted(query.filters),
        search=bool(query.search),
        total=total,
    )

    return paginate_response(
        [CurrentViewRowRead.model_validate(row) for row in rows],
        total,
        PaginationParams(page=query.page, limit=query.limit),
    )


async def get_page(db: AsyncSession, limit: int, offset: int) -> InventoryPageResponse:
    """Read the current view by offset, ordered by sku."""
    total = (await db.execute(select(func.count()).select_from(CurrentViewRow))).scalar_one()
    stmt = select(CurrentViewRow).order_by(CurrentViewRow.sku).limit(limit).offset(offset)
    rows = (await db.execute(stmt)).scalars().all()
    return InventoryPageResponse(
        data=[CurrentViewRowRead.model_validate(row) for row in rows],
        total=total,
        limit=limit,
        offset=offset,
    )


async def search(db: AsyncSession, q: str, limit: int) -> Sequence[CurrentViewRow]:
    """Autocomplete search: sku prefix OR title substring.

    Queries shorter than the configured minimum length return no results.
    """
    q = q.strip()
    if len(q) < get_settings().inventory_search_min_length:
        return []

    stmt = (
        select(CurrentViewRow)
        .where(
            or_(
                CurrentViewRow.sku.istartswith(q, autoescape=True),
                CurrentViewRow.title.icontains(q, autoescape=True),
            )
        )
        .order_by(CurrentViewRow.sku)
        .limit(limit)
    )
    return (await db.execute(stmt)).scalars().all()


async def top_movers(db: AsyncSession, limit: int) -> Sequence[CurrentViewRow]:
    """Rows that moved on the view's date, largest movement first."""
    stmt = (
        select(CurrentViewRow)
        .where(CurrentViewRow.absolute_change > 0)
        .order_by(CurrentViewRow.absolute_change.desc(), CurrentViewRow.sku)
        .limit(limit)
    )
    return (await db.execute(stmt)).scalars().all()


async def low_stock(db: AsyncSession, threshold: int) -> Sequence[CurrentViewRow]:
    """Rows with 0 < quantity <= threshold, lowest quantity first."""
    stmt = (
        select(CurrentViewRow)
        .where(CurrentViewRow.quantity > 0, CurrentViewRow.quantity <= threshold)
        .order_by(CurrentViewRow.quantity.asc(), CurrentViewRow.sku)
    )
    return (await db.execute(stmt)).scalars().all()
