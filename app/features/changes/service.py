"""Delta engine: day-over-day change records between two snapshot dates.

The SKU universe of a comparison is the union of both dates' SKUs. Each side
is resolved with an independent dict lookup, so a SKU missing on one side
counts as quantity 0 there (new listing or delisting). SKUs that did not move
are never persisted.
"""

import datetime
from collections import defaultdict
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from itertools import batched
from typing import Any

from sqlalchemy import delete, insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.exceptions import ValidationError
from app.core.logging import get_logger
from app.features.changes.schemas import CategoryChangeSummary, ChangeSummary, MoverSummary
from app.features.data_platform.models import ChangeRecord, Product
from app.features.snapshots.service import SnapshotValue, load_snapshot

logger = get_logger(__name__)

UNCATEGORIZED = "Uncategorized"


@dataclass(frozen=True)
class ProductAttributes:
    """Product attributes denormalized onto change records."""

    title: str = ""
    upc: str = ""
    category1: str = ""
    category2: str = ""


def format_percent_change(yesterday_qty: int, quantity_change: int) -> str:
    """Format the relative change against the previous quantity.

    Args:
        yesterday_qty: Quantity on the previous date.
        quantity_change: today_qty - yesterday_qty.

    Returns:
        "N/A" when there was no previous stock, else e.g. "50.00%".
    """
    if yesterday_qty == 0:
        return "N/A"
    return f"{quantity_change / yesterday_qty * 100:.2f}%"


def build_change_records(
    change_date: datetime.date,
    previous: Mapping[str, SnapshotValue],
    current: Mapping[str, SnapshotValue],
    products: Mapping[str, ProductAttributes],
) -> list[dict[str, Any]]:
    """Compute change records for SKUs that moved between two snapshots.

    Args:
        change_date: Date of the later snapshot.
        previous: Snapshot of the earlier date keyed by SKU.
        current: Snapshot of ``change_date`` keyed by SKU.
        products: Product attributes keyed by SKU; missing SKUs get empty strings.

    Returns:
        Insert values for ``ChangeRecord``, ordered by absolute_change desc then sku.
    """
    records: list[dict[str, Any]] = []

    for sku in previous.keys() | current.keys():
        before = previous.get(sku)
        after = current.get(sku)

        yesterday_qty = before.quantity if before else 0
        today_qty = after.quantity if after else 0
        quantity_change = today_qty - yesterday_qty
        absolute_change = abs(quantity_change)
        if absolute_change == 0:
            continue

        if after is not None:
            estimated_cost = after.estimated_cost
        elif before is not None:
            estimated_cost = before.estimated_cost
        else:
            estimated_cost = 0.0

        attributes = products.get(sku, ProductAttributes())
        records.append(
            {
                "date": change_date,
                "sku": sku,
                "title": attributes.title,
                "upc": attributes.upc,
                "category1": attributes.category1,
                "category2": attributes.category2,
                "yesterday_qty": yesterday_qty,
                "today_qty": today_qty,
                "quantity_change": quantity_change,
                "absolute_change": absolute_change,
                "percent_change": format_percent_change(yesterday_qty, quantity_change),
                "change_type": "increase" if quantity_change > 0 else "decrease",
                "estimated_cost": estimated_cost,
                "total_value": today_qty * estimated_cost,
            }
        )

    records.sort(key=lambda r: (-r["absolute_change"], r["sku"]))
    return records


async def load_product_attributes(
    db: AsyncSession,
    skus: Iterable[str],
) -> dict[str, ProductAttributes]:
    """Load product attributes for a set of SKUs (null attributes become '')."""
    attributes: dict[str, ProductAttributes] = {}
    batch_size = get_settings().ingest_batch_size

    for chunk in batched(sorted(set(skus)), batch_size):
        stmt = select(
            Product.sku,
            Product.title,
            Product.upc,
            Product.category1,
            Product.category2,
        ).where(Product.sku.in_(chunk))
        result = await db.execute(stmt)
        for row in result:
            attributes[row.sku] = ProductAttributes(
                title=row.title or "",
                upc=row.upc or "",
                category1=row.category1 or "",
                category2=row.category2 or "",
            )

    return attributes


async def compute_deltas(
    db: AsyncSession,
    change_date: datetime.date,
    previous_date: datetime.date | None,
) -> list[dict[str, Any]]:
    """Recompute the change records of ``change_date`` against ``previous_date``.

    Existing records for ``change_date`` are deleted and replaced inside the
    caller's transaction, so repeated runs converge to the same rows.

    Args:
        db: Async database session bound to a write transaction.
        change_date: Date of the later snapshot.
        previous_date: Date to compare against. None means there is nothing to
            compare with, and no records are produced.

    Returns:
        The change records written.

    Raises:
        ValidationError: If previous_date is not before change_date.
    """
    if previous_date is None:
        logger.info("changes.deltas_skipped", date=str(change_date), reason="no_previous_date")
        return []

    if previous_date >= change_date:
        raise ValidationError(
            message="previous_date must be earlier than the change date",
            details={
                "field": "previous_date",
                "value": str(previous_date),
                "date": str(change_date),
            },
        )

    logger.info(
        "changes.deltas_started",
        date=str(change_date),
        previous_date=str(previous_date),
    )

    previous = await load_snapshot(db, previous_date)
    current = await load_snapshot(db, change_date)
    products = await load_product_attributes(db, previous.keys() | current.keys())
    records = build_change_records(change_date, previous, current, products)

    await db.execute(delete(ChangeRecord).where(ChangeRecord.date == change_date))
    for chunk in batched(records, get_settings().ingest_batch_size):
        await db.execute(insert(ChangeRecord), list(chunk))

    logger.info(
        "changes.deltas_completed",
        date=str(change_date),
        previous_date=str(previous_date),
        previous_skus=len(previous),
        current_skus=len(current),
        changed=len(records),
    )
    return records


async def list_changes(
    db: AsyncSession,
    change_date: datetime.date,
    limit: int | None = None,
) -> Sequence[ChangeRecord]:
    """List change records of a date, largest movement first."""
    stmt = (
        select(ChangeRecord)
        .where(ChangeRecord.date == change_date)
        .order_by(ChangeRecord.absolute_change.desc(), ChangeRecord.sku)
    )
    if limit is not None:
        stmt = stmt.limit(limit)
    result = await db.execute(stmt)
    return result.scalars().all()


def _mover(record: ChangeRecord) -> MoverSummary:
    return MoverSummary(
        sku=record.sku,
        title=record.title,
        quantity_change=record.quantity_change,
        absolute_change=record.absolute_change,
    )


async def summarize_changes(db: AsyncSession, change_date: datetime.date) -> ChangeSummary:
    """Summarize the movement of a date.

    Args:
        db: Async database session.
        change_date: Date to summarize.

    Returns:
        Totals, top movers and a per-category breakdown.
    """
    changes = await list_changes(db, change_date)
    increases = [c for c in changes if c.quantity_change > 0]
    decreases = [c for c in changes if c.quantity_change < 0]

    categories: dict[str, dict[str, int]] = defaultdict(
        lambda: {"total_changes": 0, "absolute_change": 0, "increases": 0, "decreases": 0}
    )
    for change in changes:
        bucket = categories[change.category1 or UNCATEGORIZED]
        bucket["total_changes"] += 1
        bucket["absolute_change"] += change.absolute_change
        bucket["increases" if change.quantity_change > 0 else "decreases"] += 1

    by_category = [
        CategoryChangeSummary(category=name, **counts)
        for name, counts in sorted(
            categories.items(), key=lambda item: (-item[1]["total_changes"], item[0])
        )
    ]

    return ChangeSummary(
        date=change_date,
        total_products_changed=len(changes),
        total_absolute_change=sum(c.absolute_change for c in changes),
        net_change=sum(c.quantity_change for c in changes),
        increases=len(increases),
        decreases=len(decreases),
        top_movers=[_mover(c) for c in changes[:10]],
        top_increases=[_mover(c) for c in increases[:5]],
        top_decreases=[_mover(c) for c in decreases[:5]],
        by_category=by_category,
    )
