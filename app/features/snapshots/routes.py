"""Snapshot API routes for per-date export ingest."""

import time
from datetime import date

from fastapi import APIRouter, Depends, status

from app.core.config import get_settings
from app.core.database import Storage, get_storage
from app.core.exceptions import ValidationError
from app.core.logging import get_logger
from app.features.snapshots.schemas import (
    SnapshotDatesResponse,
    SnapshotIngestRequest,
    SnapshotIngestResponse,
)
from app.features.snapshots.service import (
    ingest_snapshot,
    latest_snapshot_date,
    list_snapshot_dates,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/snapshots", tags=["snapshots"])


@router.post(
    "/{snapshot_date}",
    response_model=SnapshotIngestResponse,
    status_code=status.HTTP_200_OK,
    summary="Ingest the inventory export for a date",
    description="""
Replace the snapshot for `snapshot_date` with the posted export rows.

Products are upserted by SKU: the title is always overwritten, while blank
UPC/category values keep what is already stored.

**Idempotency:** Existing rows for the date are deleted first, so posting the
same export twice yields the same stored state.

**Atomicity:** The whole ingest runs in one transaction. A database failure
leaves no rows of the date behind and returns a `TRANSACTION_ERROR` problem
with the saved/skipped counters reached before the failure.
""",
)
async def post_snapshot(
    snapshot_date: date,
    request: SnapshotIngestRequest,
    storage: Storage = Depends(get_storage),
) -> SnapshotIngestResponse:
    """Ingest an export for one snapshot date.

    Args:
        snapshot_date: Date the export represents.
        request: Export rows.
        storage: Storage handle from dependency.

    Returns:
        Ingest counters and skipped-row details.

    Raises:
        ValidationError: If more rows are posted than the configured maximum.
    """
    start_time = time.perf_counter()

    max_rows = get_settings().ingest_max_rows
    if len(request.rows) > max_rows:
        raise ValidationError(
            message=f"At most {max_rows} rows may be ingested per request",
            details={"field": "rows", "value": len(request.rows), "maximum": max_rows},
        )

    logger.info(
        "snapshots.request_received",
        date=str(snapshot_date),
        row_count=len(request.rows),
    )

    async with storage.transaction("ingest_snapshot") as db:
        result = await ingest_snapshot(db, snapshot_date, request.rows)

    duration_ms = (time.perf_counter() - start_time) * 1000

    logger.info(
        "snapshots.request_completed",
        date=str(snapshot_date),
        saved=result.saved,
        skipped=result.skipped,
        duration_ms=round(duration_ms, 2),
    )

    return SnapshotIngestResponse(
        date=snapshot_date,
        saved=result.saved,
        skipped=result.skipped,
        duplicates=result.duplicates,
        total_processed=len(request.rows),
        errors=result.errors,
        duration_ms=round(duration_ms, 2),
    )


@router.get(
    "/dates",
    response_model=SnapshotDatesResponse,
    summary="List snapshot dates",
)
async def get_snapshot_dates(
    storage: Storage = Depends(get_storage),
) -> SnapshotDatesResponse:
    """List all snapshot dates in ascending order."""
    async with storage.snapshot() as db:
        dates = await list_snapshot_dates(db)
        latest = await latest_snapshot_date(db)
    return SnapshotDatesResponse(dates=dates, latest=latest)
