"""History retention: delete dated rows older than a cutoff."""

import datetime
from typing import Any

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.logging import get_logger
from app.features.data_platform.models import ChangeRecord, DailyMetrics, SnapshotRecord
from app.features.jobs.models import Job, JobStatus
from app.features.snapshots.service import latest_snapshot_date

logger = get_logger(__name__)


async def apply_retention(
    db: AsyncSession,
    cutoff: datetime.date,
    job_cutoff: datetime.datetime | None = None,
) -> dict[str, Any]:
    """Delete snapshot, change and metrics rows dated before ``cutoff``.

    The latest snapshot date is never deleted, so the current view always has
    a source. Products are kept. Must run in its own write transaction.

    Args:
        db: Async database session bound to a write transaction.
        cutoff: Rows with ``date < cutoff`` are deleted.
        job_cutoff: When given, finished jobs completed before it are deleted too.

    Returns:
        Effective cutoff and number of rows deleted per table.
    """
    latest = await latest_snapshot_date(db)
    if latest is not None and latest < cutoff:
        cutoff = latest

    deleted: dict[str, int] = {}
    for name, model in (
        ("snapshots", SnapshotRecord),
        ("changes", ChangeRecord),
        ("metrics", DailyMetrics),
    ):
        result = await db.execute(delete(model).where(model.date < cutoff))
        deleted[name] = result.rowcount  # type: ignore[attr-defined]

    if job_cutoff is not None:
        result = await db.execute(
            delete(Job).where(
                Job.status.in_([JobStatus.COMPLETED.value, JobStatus.FAILED.value]),
                Job.completed_at < job_cutoff,
            )
        )
        deleted["jobs"] = result.rowcount  # type: ignore[attr-defined]

    logger.info("retention.applied", cutoff=str(cutoff), **deleted)
    return {"cutoff": cutoff.isoformat(), "deleted": deleted}
