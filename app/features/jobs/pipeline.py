"""Snapshot pipeline orchestration.

Each step runs in its own exclusive write transaction, in dependency order:
ingest, deltas, current view, metrics. A failing step rolls back only its own
writes; the steps already committed stay in place and the pipeline stops.
"""

import datetime
import time
from collections.abc import Iterable
from typing import Any

from app.core.database import Storage
from app.core.logging import get_logger
from app.features.changes.service import compute_deltas
from app.features.inventory.view import refresh_view
from app.features.metrics.service import compute_metrics_daily
from app.features.snapshots.schemas import ExportRow
from app.features.snapshots.service import (
    ingest_snapshot,
    latest_snapshot_date,
    list_snapshot_dates,
    next_snapshot_date,
    previous_snapshot_date,
)

logger = get_logger(__name__)


async def refresh_latest_view(storage: Storage) -> datetime.date | None:
    """Rebuild the current view for the latest snapshot date.

    Returns:
        The date the view now reflects, or None when the store is empty.
    """
    async with storage.transaction("refresh_view") as db:
        as_of_date = await latest_snapshot_date(db)
        if as_of_date is None:
            return None
        await refresh_view(db, as_of_date)
        return as_of_date


async def run_snapshot_pipeline(
    storage: Storage,
    snapshot_date: datetime.date,
    rows: Iterable[ExportRow],
) -> dict[str, Any]:
    """Ingest one export and bring every derived table up to date.

    When a later snapshot already exists (backfill), its change records and
    metrics are recomputed as well, since they compared against an older date.

    Args:
        storage: Storage handle.
        snapshot_date: Date the export represents.
        rows: Raw export rows.

    Returns:
        Summary of every step.

    Raises:
        TransactionError: If a step fails; earlier steps stay committed.
    """
    start_time = time.perf_counter()
    logger.info("pipeline.run_started", date=str(snapshot_date))

    async with storage.transaction("ingest_snapshot") as db:
        ingest = await ingest_snapshot(db, snapshot_date, rows)

    async with storage.transaction("compute_deltas") as db:
        previous_date = await previous_snapshot_date(db, snapshot_date)
        changes = await compute_deltas(db, snapshot_date, previous_date)
        following_date = await next_snapshot_date(db, snapshot_date)
        if following_date is not None:
            await compute_deltas(db, following_date, snapshot_date)

    view_date = await refresh_latest_view(storage)

    async with storage.transaction("compute_metrics") as db:
        metrics = await compute_metrics_daily(db, snapshot_date)
        if following_date is not None:
            await compute_metrics_daily(db, following_date)

    duration_ms = (time.perf_counter() - start_time) * 1000
    summary: dict[str, Any] = {
        "date": snapshot_date.isoformat(),
        "saved": ingest.saved,
        "skipped": ingest.skipped,
        "duplicates": ingest.duplicates,
        "previous_date": previous_date.isoformat() if previous_date else None,
        "changes": len(changes),
        "recomputed_date": following_date.isoformat() if following_date else None,
        "view_date": view_date.isoformat() if view_date else None,
        "total_products": metrics.total_products,
        "duration_ms": round(duration_ms, 2),
    }
    logger.info("pipeline.run_completed", **summary)
    return summary


async def rebuild_history(storage: Storage) -> dict[str, Any]:
    """Recompute change records and metrics of every stored date, oldest first.

    Each date is recomputed in its own transaction against the date stored
    before it. The current view is refreshed once at the end.

    Returns:
        Number of dates processed and change records written.
    """
    start_time = time.perf_counter()

    async with storage.snapshot() as db:
        dates = await list_snapshot_dates(db)

    logger.info("pipeline.rebuild_started", dates=len(dates))

    total_changes = 0
    previous_date: datetime.date | None = None
    for snapshot_date in dates:
        async with storage.transaction("rebuild_date") as db:
            changes = await compute_deltas(db, snapshot_date, previous_date)
            await compute_metrics_daily(db, snapshot_date)
        total_changes += len(changes)
        previous_date = snapshot_date

    view_date = await refresh_latest_view(storage)

    summary: dict[str, Any] = {
        "dates": len(dates),
        "first_date": dates[0].isoformat() if dates else None,
        "last_date": dates[-1].isoformat() if dates else None,
        "changes": total_changes,
        "view_date": view_date.isoformat() if view_date else None,
        "duration_ms": round((time.perf_counter() - start_time) * 1000, 2),
    }
    logger.info("pipeline.rebuild_completed", **summary)
    return summary
