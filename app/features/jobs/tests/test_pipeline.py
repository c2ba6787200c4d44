"""Tests for pipeline orchestration and retention."""

from datetime import UTC, date, datetime, timedelta
from unittest.mock import patch

import pytest
from sqlalchemy import func, select

from app.core.exceptions import TransactionError
from app.features.changes.service import list_changes
from app.features.data_platform.models import (
    ChangeRecord,
    CurrentViewRow,
    DailyMetrics,
    SnapshotRecord,
)
from app.features.jobs.models import Job, JobStatus, JobType
from app.features.jobs.pipeline import rebuild_history, run_snapshot_pipeline
from app.features.jobs.retention import apply_retention
from app.features.metrics.service import get_daily_metrics
from app.features.snapshots.schemas import ExportRow

DAY_1 = date(2025, 8, 7)
DAY_2 = date(2025, 8, 8)
DAY_3 = date(2025, 8, 9)


def _rows(values: dict[str, int]) -> list[ExportRow]:
    return [
        ExportRow(sku=sku, title=sku.lower(), quantity=quantity, estimated_cost=1.0)
        for sku, quantity in values.items()
    ]


async def _count(storage, model, **where):
    async with storage.snapshot() as db:
        stmt = select(func.count()).select_from(model)
        for column, value in where.items():
            stmt = stmt.where(getattr(model, column) == value)
        return (await db.execute(stmt)).scalar_one()


class TestRunSnapshotPipeline:
    """Tests for run_snapshot_pipeline."""

    @pytest.mark.asyncio
    async def test_first_date_has_no_changes(self, storage):
        summary = await run_snapshot_pipeline(storage, DAY_1, _rows({"A": 10, "B": 5}))

        assert summary["saved"] == 2
        assert summary["previous_date"] is None
        assert summary["changes"] == 0
        assert summary["view_date"] == DAY_1.isoformat()
        assert summary["total_products"] == 2
        assert await _count(storage, CurrentViewRow) == 2

    @pytest.mark.asyncio
    async def test_second_date_updates_every_derived_table(self, storage):
        await run_snapshot_pipeline(storage, DAY_1, _rows({"A": 10, "B": 5}))
        summary = await run_snapshot_pipeline(storage, DAY_2, _rows({"A": 15, "C": 3}))

        assert summary["previous_date"] == DAY_1.isoformat()
        assert summary["changes"] == 3

        async with storage.snapshot() as db:
            changes = {c.sku: c.quantity_change for c in await list_changes(db, DAY_2)}
            metrics = await get_daily_metrics(db, DAY_2)
            view_stmt = select(CurrentViewRow.last_updated).distinct()
            view_dates = (await db.execute(view_stmt)).scalars().all()

        assert changes == {"A": 5, "B": -5, "C": 3}
        assert metrics.increases == 2
        assert metrics.decreases == 1
        assert view_dates == [DAY_2]

    @pytest.mark.asyncio
    async def test_backfill_recomputes_following_date(self, storage):
        """Ingesting an older date re-bases the next date's changes on it."""
        await run_snapshot_pipeline(storage, DAY_1, _rows({"A": 10}))
        await run_snapshot_pipeline(storage, DAY_3, _rows({"A": 30}))

        summary = await run_snapshot_pipeline(storage, DAY_2, _rows({"A": 25}))

        assert summary["recomputed_date"] == DAY_3.isoformat()
        assert summary["view_date"] == DAY_3.isoformat()
        async with storage.snapshot() as db:
            day_3_changes = await list_changes(db, DAY_3)

        assert [(c.yesterday_qty, c.today_qty) for c in day_3_changes] == [(25, 30)]

    @pytest.mark.asyncio
    async def test_failed_step_keeps_earlier_steps(self, storage):
        """A failing metrics step leaves the committed ingest in place."""
        with patch(
            "app.features.jobs.pipeline.compute_metrics_daily",
            side_effect=TransactionError(details={"operation": "compute_metrics"}),
        ):
            with pytest.raises(TransactionError):
                await run_snapshot_pipeline(storage, DAY_1, _rows({"A": 10}))

        assert await _count(storage, SnapshotRecord, date=DAY_1) == 1
        assert await _count(storage, DailyMetrics) == 0


class TestRebuildHistory:
    """Tests for rebuild_history."""

    @pytest.mark.asyncio
    async def test_rebuild_recomputes_every_date(self, storage, seed_snapshot):
        await seed_snapshot(DAY_1, {"A": (10, 1.0)})
        await seed_snapshot(DAY_2, {"A": (12, 1.0), "B": (4, 1.0)})
        await seed_snapshot(DAY_3, {"A": (12, 1.0)})

        summary = await rebuild_history(storage)

        assert summary["dates"] == 3
        assert summary["changes"] == 3
        assert summary["view_date"] == DAY_3.isoformat()
        assert await _count(storage, ChangeRecord, date=DAY_1) == 0
        assert await _count(storage, ChangeRecord, date=DAY_2) == 2
        assert await _count(storage, ChangeRecord, date=DAY_3) == 1
        assert await _count(storage, DailyMetrics) == 3

    @pytest.mark.asyncio
    async def test_rebuild_empty_store(self, storage):
        summary = await rebuild_history(storage)

        assert summary["dates"] == 0
        assert summary["view_date"] is None


class TestApplyRetention:
    """Tests for apply_retention."""

    @pytest.mark.asyncio
    async def test_deletes_rows_before_cutoff(self, storage):
        for day, qty in ((DAY_1, 1), (DAY_2, 2), (DAY_3, 3)):
            await run_snapshot_pipeline(storage, day, _rows({"A": qty}))

        async with storage.transaction("apply_retention") as db:
            result = await apply_retention(db, DAY_2)

        assert result["cutoff"] == DAY_2.isoformat()
        assert result["deleted"]["snapshots"] == 1
        assert await _count(storage, SnapshotRecord, date=DAY_1) == 0
        assert await _count(storage, SnapshotRecord, date=DAY_2) == 1
        assert await _count(storage, DailyMetrics, date=DAY_1) == 0
        assert await _count(storage, ChangeRecord, date=DAY_2) == 1

    @pytest.mark.asyncio
    async def test_latest_date_is_kept(self, storage):
        await run_snapshot_pipeline(storage, DAY_1, _rows({"A": 1}))
        await run_snapshot_pipeline(storage, DAY_2, _rows({"A": 2}))

        async with storage.transaction("apply_retention") as db:
            result = await apply_retention(db, DAY_3 + timedelta(days=30))

        assert result["cutoff"] == DAY_2.isoformat()
        assert await _count(storage, SnapshotRecord, date=DAY_2) == 1

    @pytest.mark.asyncio
    async def test_finished_jobs_before_job_cutoff_are_deleted(self, storage):
        old = datetime(2025, 1, 1, tzinfo=UTC)
        async with storage.transaction("seed_jobs") as db:
            db.add_all(
                [
                    Job(
                        job_id="a" * 32,
                        job_type=JobType.REBUILD.value,
                        status=JobStatus.COMPLETED.value,
                        params={},
                        completed_at=old,
                    ),
                    Job(
                        job_id="b" * 32,
                        job_type=JobType.REBUILD.value,
                        status=JobStatus.PENDING.value,
                        params={},
                    ),
                ]
            )

        async with storage.transaction("apply_retention") as db:
            result = await apply_retention(db, DAY_1, job_cutoff=datetime(2025, 6, 1, tzinfo=UTC))

        assert result["deleted"]["jobs"] == 1
        assert await _count(storage, Job) == 1
