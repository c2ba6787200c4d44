"""Delta engine API routes."""

import time
from datetime import date

from fastapi import APIRouter, Depends, Query

from app.core.database import Storage, get_storage
from app.core.exceptions import NotFoundError
from app.core.logging import get_logger
from app.features.changes.schemas import (
    ChangeListResponse,
    ChangeSummary,
    ComputeDeltasResponse,
)
from app.features.changes.service import compute_deltas, list_changes, summarize_changes
from app.features.data_platform.schemas import ChangeRecordRead
from app.features.snapshots.service import has_snapshot, previous_snapshot_date

logger = get_logger(__name__)

router = APIRouter(prefix="/changes", tags=["changes"])


@router.post(
    "/{change_date}/compute",
    response_model=ComputeDeltasResponse,
    summary="Compute day-over-day changes for a date",
    description="""
Recompute the change records of `change_date` against `previous_date`.

When `previous_date` is omitted, the latest snapshot date before `change_date`
is used. If there is none, nothing is computed and `changed` is 0.

Existing records for the date are replaced in the same transaction, so the
call is idempotent.
""",
)
async def post_compute_deltas(
    change_date: date,
    previous_date: date | None = Query(None, description="Snapshot date to compare against"),
    storage: Storage = Depends(get_storage),
) -> ComputeDeltasResponse:
    """Compute deltas for one date.

    Raises:
        NotFoundError: If no snapshot exists for ``change_date``.
    """
    start_time = time.perf_counter()

    async with storage.transaction("compute_deltas") as db:
        if not await has_snapshot(db, change_date):
            raise NotFoundError(
                message=f"No snapshot stored for {change_date}",
                details={"date": str(change_date)},
            )
        if previous_date is None:
            previous_date = await previous_snapshot_date(db, change_date)
        records = await compute_deltas(db, change_date, previous_date)

    duration_ms = (time.perf_counter() - start_time) * 1000
    return ComputeDeltasResponse(
        date=change_date,
        previous_date=previous_date,
        changed=len(records),
        duration_ms=round(duration_ms, 2),
    )


@router.get(
    "/{change_date}",
    response_model=ChangeListResponse,
    summary="List change records of a date",
)
async def get_changes(
    change_date: date,
    limit: int | None = Query(None, ge=1, le=10000, description="Maximum records to return"),
    storage: Storage = Depends(get_storage),
) -> ChangeListResponse:
    """List change records of a date, largest movement first."""
    async with storage.snapshot() as db:
        changes = await list_changes(db, change_date, limit=limit)

    return ChangeListResponse(
        date=change_date,
        count=len(changes),
        changes=[ChangeRecordRead.model_validate(c) for c in changes],
    )


@router.get(
    "/{change_date}/summary",
    response_model=ChangeSummary,
    summary="Summarize movement of a date",
)
async def get_change_summary(
    change_date: date,
    storage: Storage = Depends(get_storage),
) -> ChangeSummary:
    """Totals, top movers and per-category breakdown of a date."""
    async with storage.snapshot() as db:
        return await summarize_changes(db, change_date)
