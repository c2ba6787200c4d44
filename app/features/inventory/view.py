"""Materialized current inventory view.

The view is a pure function of (snapshot@D, products, changes@D) for one
explicit date D: every refresh deletes all rows and re-inserts them from the
source tables inside the caller's write transaction. Readers on PostgreSQL
keep seeing the previous committed table until the refresh commits.
"""

import datetime

from sqlalchemy import Date, and_, delete, func, insert, literal, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.logging import get_logger
from app.features.data_platform.models import (
    ChangeRecord,
    CurrentViewRow,
    Product,
    SnapshotRecord,
)

logger = get_logger(__name__)

VIEW_COLUMNS = (
    "sku",
    "title",
    "upc",
    "category1",
    "category2",
    "quantity",
    "estimated_cost",
    "quantity_change",
    "absolute_change",
    "percent_change",
    "last_updated",
)


async def refresh_view(db: AsyncSession, as_of_date: datetime.date) -> int:
    """Rebuild the current view from the snapshot of ``as_of_date``.

    Args:
        db: Async database session bound to a write transaction.
        as_of_date: Snapshot date the view reflects.

    Returns:
        Number of rows in the rebuilt view (one per SKU of the snapshot).
    """
    logger.info("inventory.view_refresh_started", as_of_date=str(as_of_date))

    source = (
        select(
            SnapshotRecord.sku,
            func.coalesce(Product.title, ""),
            func.coalesce(Product.upc, ""),
            func.coalesce(Product.category1, ""),
            func.coalesce(Product.category2, ""),
            SnapshotRecord.quantity,
            SnapshotRecord.estimated_cost,
            func.coalesce(ChangeRecord.quantity_change, 0),
            func.coalesce(ChangeRecord.absolute_change, 0),
            func.coalesce(ChangeRecord.percent_change, "N/A"),
            literal(as_of_date, Date),
        )
        .select_from(SnapshotRecord)
        .outerjoin(Product, Product.sku == SnapshotRecord.sku)
        .outerjoin(
            ChangeRecord,
            and_(ChangeRecord.sku == SnapshotRecord.sku, ChangeRecord.date == as_of_date),
        )
        .where(SnapshotRecord.date == as_of_date)
    )

    await db.execute(delete(CurrentViewRow))
    await db.execute(insert(CurrentViewRow.__table__).from_select(list(VIEW_COLUMNS), source))

    rows = (await db.execute(select(func.count()).select_from(CurrentViewRow))).scalar_one()

    logger.info("inventory.view_refresh_completed", as_of_date=str(as_of_date), rows=rows)
    return rows
