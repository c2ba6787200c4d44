"""Snapshot store: product master upserts and per-date snapshot ingest."""

from __future__ import annotations

import datetime
from collections.abc import Iterable
from dataclasses import dataclass, field
from itertools import batched
from typing import Any

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.database import upsert_insert
from app.core.exceptions import ParseError, TransactionError
from app.core.logging import get_logger
from app.features.data_platform.models import Product, SnapshotRecord
from app.features.snapshots.parsers import normalize_text, parse_cost, parse_quantity
from app.features.snapshots.schemas import ExportRow, IngestRowError

logger = get_logger(__name__)


@dataclass(frozen=True)
class SnapshotValue:
    """Quantity and cost of one SKU on one snapshot date."""

    quantity: int
    estimated_cost: float


@dataclass
class IngestResult:
    """Result of a snapshot ingest."""

    date: datetime.date
    saved: int = 0
    skipped: int = 0
    duplicates: int = 0
    errors: list[IngestRowError] = field(  # pyright: ignore[reportUnknownVariableType]
        default_factory=list
    )


def _product_values(row: ExportRow, row_index: int | None = None) -> dict[str, Any]:
    """Normalize product attributes of a row.

    Raises:
        ParseError: If the row has no SKU.
    """
    sku = normalize_text(row.sku)
    if sku is None:
        raise ParseError("Row has an empty SKU", row_index=row_index)
    return {
        "sku": sku,
        "title": normalize_text(row.title) or "Unknown",
        "upc": normalize_text(row.upc),
        "category1": normalize_text(row.category1),
        "category2": normalize_text(row.category2),
    }


async def _upsert_products(db: AsyncSession, values: list[dict[str, Any]]) -> None:
    """Insert-or-update product rows; null upc/categories keep stored values."""
    if not values:
        return

    insert_stmt = upsert_insert(db, Product).values(values)
    upsert_stmt = insert_stmt.on_conflict_do_update(
        index_elements=["sku"],
        set_={
            "title": insert_stmt.excluded.title,
            "upc": func.coalesce(insert_stmt.excluded.upc, Product.upc),
            "category1": func.coalesce(insert_stmt.excluded.category1, Product.category1),
            "category2": func.coalesce(insert_stmt.excluded.category2, Product.category2),
            "updated_at": func.now(),
        },
    )
    await db.execute(upsert_stmt)


async def upsert_product(db: AsyncSession, row: ExportRow) -> str:
    """Insert or update one product from an export row.

    Title is always overwritten. Blank upc/category values are treated as null
    and preserve whatever is already stored.

    Args:
        db: Async database session (caller owns the transaction).
        row: Export row.

    Returns:
        The normalized SKU.

    Raises:
        ParseError: If the row has an empty SKU.
    """
    values = _product_values(row)
    await _upsert_products(db, [values])
    return str(values["sku"])


async def ingest_snapshot(
    db: AsyncSession,
    snapshot_date: datetime.date,
    rows: Iterable[ExportRow],
) -> IngestResult:
    """Replace the snapshot for a date with the given export rows.

    Must run inside a single write transaction: existing rows for the date are
    deleted first, so re-ingesting identical rows converges to the same state.
    Rows with a blank SKU are skipped and counted. When a SKU appears more than
    once, the last row wins.

    Args:
        db: Async database session bound to a write transaction.
        snapshot_date: Date the export represents.
        rows: Raw export rows.

    Returns:
        IngestResult with saved/skipped counters.

    Raises:
        TransactionError: If the database fails; the caller's transaction must
            then be rolled back, leaving no rows of the date behind.
    """
    settings = get_settings()
    result = IngestResult(date=snapshot_date)
    prepared: dict[str, tuple[dict[str, Any], dict[str, Any]]] = {}

    for idx, row in enumerate(rows):
        try:
            product = _product_values(row, row_index=idx)
        except ParseError as e:
            result.skipped += 1
            result.errors.append(
                IngestRowError(
                    row_index=idx,
                    sku=row.sku,
                    error_code="EMPTY_SKU",
                    error_message=str(e),
                )
            )
            continue

        sku = product["sku"]
        if sku in prepared:
            result.duplicates += 1
        prepared[sku] = (
            product,
            {
                "date": snapshot_date,
                "sku": sku,
                "quantity": parse_quantity(row.quantity),
                "estimated_cost": parse_cost(row.estimated_cost),
            },
        )

    logger.info(
        "snapshots.ingest_started",
        date=str(snapshot_date),
        rows=len(prepared) + result.skipped + result.duplicates,
        skipped=result.skipped,
    )

    try:
        await db.execute(delete(SnapshotRecord).where(SnapshotRecord.date == snapshot_date))

        for chunk in batched(prepared.values(), settings.ingest_batch_size):
            await _upsert_products(db, [product for product, _ in chunk])

            insert_stmt = upsert_insert(db, SnapshotRecord).values(
                [snapshot for _, snapshot in chunk]
            )
            await db.execute(
                insert_stmt.on_conflict_do_update(
                    index_elements=["date", "sku"],
                    set_={
                        "quantity": insert_stmt.excluded.quantity,
                        "estimated_cost": insert_stmt.excluded.estimated_cost,
                    },
                )
            )
            result.saved += len(chunk)
    except SQLAlchemyError as e:
        logger.error(
            "snapshots.ingest_failed",
            date=str(snapshot_date),
            saved=result.saved,
            skipped=result.skipped,
            error=str(e),
            error_type=type(e).__name__,
        )
        raise TransactionError(
            message=f"Snapshot ingest for {snapshot_date} failed and was rolled back",
            details={
                "operation": "ingest_snapshot",
                "date": str(snapshot_date),
                "saved": result.saved,
                "skipped": result.skipped,
                "error": str(e),
            },
        ) from e

    logger.info(
        "snapshots.ingest_completed",
        date=str(snapshot_date),
        saved=result.saved,
        skipped=result.skipped,
        duplicates=result.duplicates,
    )
    return result


async def load_snapshot(
    db: AsyncSession,
    snapshot_date: datetime.date,
) -> dict[str, SnapshotValue]:
    """Load all snapshot rows of a date keyed by SKU."""
    stmt = select(
        SnapshotRecord.sku,
        SnapshotRecord.quantity,
        SnapshotRecord.estimated_cost,
    ).where(SnapshotRecord.date == snapshot_date)
    result = await db.execute(stmt)
    return {
        row.sku: SnapshotValue(quantity=row.quantity, estimated_cost=row.estimated_cost)
        for row in result
    }


async def list_snapshot_dates(db: AsyncSession) -> list[datetime.date]:
    """List distinct snapshot dates in ascending order."""
    stmt = select(SnapshotRecord.date).distinct().order_by(SnapshotRecord.date)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def latest_snapshot_date(db: AsyncSession) -> datetime.date | None:
    """Most recent snapshot date, or None when the store is empty."""
    result = await db.execute(select(func.max(SnapshotRecord.date)))
    return result.scalar_one_or_none()


async def previous_snapshot_date(
    db: AsyncSession,
    snapshot_date: datetime.date,
) -> datetime.date | None:
    """Latest snapshot date strictly before ``snapshot_date``."""
    stmt = select(func.max(SnapshotRecord.date)).where(SnapshotRecord.date < snapshot_date)
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def has_snapshot(db: AsyncSession, snapshot_date: datetime.date) -> bool:
    """Whether any snapshot row exists for ``snapshot_date``."""
    stmt = select(SnapshotRecord.sku).where(SnapshotRecord.date == snapshot_date).limit(1)
    result = await db.execute(stmt)
    return result.first() is not None


async def next_snapshot_date(
    db: AsyncSession,
    snapshot_date: datetime.date,
) -> datetime.date | None:
    """Earliest snapshot date strictly after ``snapshot_date``."""
    stmt = select(func.min(SnapshotRecord.date)).where(SnapshotRecord.date > snapshot_date)
    result = await db.execute(stmt)
    return result.scalar_one_or_none()
