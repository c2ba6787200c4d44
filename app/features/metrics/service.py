"""Metrics aggregator: per-date summary statistics and current-view stats."""

import datetime
from collections.abc import Sequence

from sqlalchemy import ColumnElement, and_, case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.database import upsert_insert
from app.core.exceptions import NotFoundError, ValidationError
from app.core.logging import get_logger
from app.features.data_platform.models import (
    ChangeRecord,
    CurrentViewRow,
    DailyMetrics,
    SnapshotRecord,
)
from app.features.metrics.schemas import CurrentViewStats

logger = get_logger(__name__)


def _count_where(condition: ColumnElement[bool]) -> ColumnElement[int]:
    return func.coalesce(func.sum(case((condition, 1), else_=0)), 0)


async def compute_metrics_daily(
    db: AsyncSession,
    metrics_date: datetime.date,
    low_stock_threshold: int | None = None,
) -> DailyMetrics:
    """Recompute and store the metrics row of a date.

    Snapshot totals come from SnapshotRecord(date); movement totals come from
    ChangeRecord(date). The stored row is overwritten, never accumulated.

    Args:
        db: Async database session bound to a write transaction.
        metrics_date: Date to aggregate.
        low_stock_threshold: Upper bound of "low stock" (defaults to settings).

    Returns:
        The stored metrics row.
    """
    threshold = low_stock_threshold
    if threshold is None:
        threshold = get_settings().metrics_low_stock_threshold
    quantity = SnapshotRecord.quantity

    snapshot_stmt = select(
        func.count().label("total_products"),
        func.coalesce(func.sum(quantity * SnapshotRecord.estimated_cost), 0.0).label("total_value"),
        _count_where(quantity == 0).label("out_of_stock"),
        _count_where(and_(quantity > 0, quantity <= threshold)).label("low_stock"),
    ).where(SnapshotRecord.date == metrics_date)
    snapshot_totals = (await db.execute(snapshot_stmt)).one()

    change_stmt = select(
        _count_where(ChangeRecord.quantity_change > 0).label("increases"),
        _count_where(ChangeRecord.quantity_change < 0).label("decreases"),
        func.coalesce(func.sum(ChangeRecord.quantity_change), 0).label("net_change_units"),
        func.coalesce(func.sum(ChangeRecord.absolute_change), 0).label("total_abs_change_units"),
        func.coalesce(
            func.sum(ChangeRecord.absolute_change * ChangeRecord.estimated_cost), 0.0
        ).label("total_abs_change_usd"),
    ).where(ChangeRecord.date == metrics_date)
    change_totals = (await db.execute(change_stmt)).one()

    values = {
        "date": metrics_date,
        "total_products": int(snapshot_totals.total_products),
        "total_value": float(snapshot_totals.total_value),
        "out_of_stock": int(snapshot_totals.out_of_stock),
        "low_stock": int(snapshot_totals.low_stock),
        "increases": int(change_totals.increases),
        "decreases": int(change_totals.decreases),
        "net_change_units": int(change_totals.net_change_units),
        "total_abs_change_units": int(change_totals.total_abs_change_units),
        "total_abs_change_usd": float(change_totals.total_abs_change_usd),
    }

    insert_stmt = upsert_insert(db, DailyMetrics).values(**values)
    await db.execute(
        insert_stmt.on_conflict_do_update(
            index_elements=["date"],
            set_={
                **{key: getattr(insert_stmt.excluded, key) for key in values if key != "date"},
                "generated_at": func.now(),
            },
        )
    )

    logger.info(
        "metrics.daily_computed",
        date=str(metrics_date),
        low_stock_threshold=threshold,
        total_products=values["total_products"],
        increases=values["increases"],
        decreases=values["decreases"],
    )

    stmt = (
        select(DailyMetrics)
        .where(DailyMetrics.date == metrics_date)
        .execution_options(populate_existing=True)
    )
    return (await db.execute(stmt)).scalar_one()


async def get_daily_metrics(db: AsyncSession, metrics_date: datetime.date) -> DailyMetrics:
    """Get the stored metrics row of a date.

    Raises:
        NotFoundError: If metrics were never computed for the date.
    """
    metrics = await db.get(DailyMetrics, metrics_date)
    if metrics is None:
        raise NotFoundError(
            message=f"No metrics computed for {metrics_date}",
            details={"date": str(metrics_date)},
        )
    return metrics


async def list_daily_metrics(
    db: AsyncSession,
    start_date: datetime.date,
    end_date: datetime.date,
) -> Sequence[DailyMetrics]:
    """List stored metrics rows within an inclusive date range.

    Raises:
        ValidationError: If start_date is after end_date.
    """
    if start_date > end_date:
        raise ValidationError(
            message="start_date must be on or before end_date",
            details={
                "field": "start_date",
                "start_date": str(start_date),
                "end_date": str(end_date),
            },
        )
    stmt = (
        select(DailyMetrics)
        .where(DailyMetrics.date.between(start_date, end_date))
        .order_by(DailyMetrics.date)
    )
    result = await db.execute(stmt)
    return result.scalars().all()


async def current_view_stats(
    db: AsyncSession,
    low_stock_threshold: int | None = None,
) -> CurrentViewStats:
    """Aggregate dashboard statistics over the current view.

    Args:
        db: Async database session.
        low_stock_threshold: Upper bound of "low stock" (defaults to settings).

    Returns:
        Totals, stock alerts and movement counts of the current view.
    """
    threshold = low_stock_threshold
    if threshold is None:
        threshold = get_settings().inventory_low_stock_default_threshold
    quantity = CurrentViewRow.quantity

    stmt = select(
        func.count().label("total_products"),
        func.coalesce(func.sum(quantity * CurrentViewRow.estimated_cost), 0.0).label("total_value"),
        _count_where(quantity == 0).label("out_of_stock"),
        _count_where(and_(quantity > 0, quantity <= threshold)).label("low_stock"),
        _count_where(CurrentViewRow.absolute_change > 0).label("changed_today"),
    )
    row = (await db.execute(stmt)).one()

    total_products = int(row.total_products)
    total_value = float(row.total_value)
    return CurrentViewStats(
        totalProducts=total_products,
        totalValue=total_value,
        outOfStock=int(row.out_of_stock),
        lowStock=int(row.low_stock),
        changedToday=int(row.changed_today),
        avgValue=total_value / total_products if total_products else 0.0,
    )
