"""Service layer for job operations.

Jobs are created pending inside a request and executed afterwards as a
background task. Execution opens its own storage scopes; status updates and
pipeline steps are separate transactions, so a failing step never loses the
record of the failure.
"""

from __future__ import annotations

import uuid
from datetime import UTC, date, datetime, timedelta
from typing import Any

import pydantic
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.database import Storage
from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.core.logging import get_logger, job_id_ctx
from app.features.changes.service import compute_deltas
from app.features.inventory.view import refresh_view
from app.features.jobs.models import (
    VALID_JOB_TRANSITIONS,
    Job,
    JobStatus,
    JobType,
)
from app.features.jobs.pipeline import rebuild_history, refresh_latest_view, run_snapshot_pipeline
from app.features.jobs.retention import apply_retention
from app.features.jobs.schemas import (
    JOB_PARAMS_MODELS,
    ComputeDeltasJobParams,
    ComputeMetricsJobParams,
    IngestJobParams,
    JobCreate,
    JobListResponse,
    JobResponse,
    RefreshViewJobParams,
    RetentionJobParams,
)
from app.features.metrics.service import compute_metrics_daily
from app.features.snapshots.reader import read_export_csv
from app.features.snapshots.service import has_snapshot, previous_snapshot_date

logger = get_logger(__name__)


def _require_snapshot_exists(found: bool, snapshot_date: date) -> None:
    if not found:
        raise NotFoundError(
            message=f"No snapshot stored for {snapshot_date}",
            details={"date": str(snapshot_date)},
        )


class JobService:
    """Service for creating, executing and tracking background jobs."""

    def __init__(self) -> None:
        """Initialize job service."""
        self.settings = get_settings()

    def validate_params(self, job_create: JobCreate) -> dict[str, Any]:
        """Validate job params against the schema of the job type.

        Returns:
            Normalized params (JSON-compatible).

        Raises:
            ValidationError: If the params do not fit the job type.
        """
        params_model = JOB_PARAMS_MODELS[job_create.job_type]
        try:
            params = params_model.model_validate(job_create.params)
        except pydantic.ValidationError as e:
            raise ValidationError(
                message=f"Invalid params for job type '{job_create.job_type.value}'",
                details={
                    "field": "params",
                    "job_type": job_create.job_type.value,
                    "errors": [
                        {"loc": ".".join(str(p) for p in err["loc"]), "msg": err["msg"]}
                        for err in e.errors()
                    ],
                },
            ) from e
        return params.model_dump(mode="json")

    async def create_job(
        self,
        db: AsyncSession,
        job_create: JobCreate,
    ) -> JobResponse:
        """Create a pending job.

        Args:
            db: Database session bound to a write transaction.
            job_create: Job creation request.

        Returns:
            The pending job.

        Raises:
            ValidationError: If the params do not fit the job type.
        """
        params = self.validate_params(job_create)

        job = Job(
            job_id=uuid.uuid4().hex,
            job_type=job_create.job_type.value,
            status=JobStatus.PENDING.value,
            params=params,
        )
        db.add(job)
        await db.flush()
        await db.refresh(job)

        logger.info(
            "jobs.job_created",
            job_id=job.job_id,
            job_type=job.job_type,
        )
        return self._to_response(job)

    async def get_job(
        self,
        db: AsyncSession,
        job_id: str,
    ) -> JobResponse:
        """Get job by ID.

        Raises:
            NotFoundError: If no job has this ID.
        """
        job = await self._load(db, job_id)
        return self._to_response(job)

    async def list_jobs(
        self,
        db: AsyncSession,
        page: int = 1,
        page_size: int = 20,
        job_type: JobType | None = None,
        status: JobStatus | None = None,
    ) -> JobListResponse:
        """List jobs with pagination and filtering, newest first.

        Args:
            db: Database session.
            page: Page number (1-indexed).
            page_size: Number of jobs per page.
            job_type: Filter by job type (optional).
            status: Filter by status (optional).

        Returns:
            Paginated list of jobs.
        """
        stmt = select(Job)
        if job_type is not None:
            stmt = stmt.where(Job.job_type == job_type.value)
        if status is not None:
            stmt = stmt.where(Job.status == status.value)

        count_stmt = select(func.count()).select_from(stmt.subquery())
        total = (await db.execute(count_stmt)).scalar_one()

        offset = (page - 1) * page_size
        stmt = stmt.order_by(Job.created_at.desc(), Job.id.desc()).offset(offset).limit(page_size)
        jobs = (await db.execute(stmt)).scalars().all()

        return JobListResponse(
            jobs=[self._to_response(job) for job in jobs],
            total=total,
            page=page,
            page_size=page_size,
        )

    async def execute_job(self, storage: Storage, job_id: str) -> None:
        """Run a pending job to completion, recording its outcome.

        Intended to run as a background task after the creating request has
        committed. Failures are recorded on the job, not raised.

        Args:
            storage: Storage handle.
            job_id: Job to execute.
        """
        token = job_id_ctx.set(job_id)
        try:
            async with storage.transaction("job_start") as db:
                job = await self._load(db, job_id)
                self._transition(job, JobStatus.RUNNING)
                job.started_at = datetime.now(UTC)
                job_type = JobType(job.job_type)
                params = dict(job.params)

            logger.info("jobs.job_started", job_type=job_type.value)

            try:
                result = await self._dispatch(storage, job_type, params)
            except Exception as e:
                async with storage.transaction("job_finish") as db:
                    job = await self._load(db, job_id)
                    self._transition(job, JobStatus.FAILED)
                    job.error_message = str(e)[:2000]
                    job.error_type = type(e).__name__
                    job.completed_at = datetime.now(UTC)

                logger.error(
                    "jobs.job_failed",
                    job_type=job_type.value,
                    error=str(e),
                    error_type=type(e).__name__,
                    exc_info=True,
                )
                return

            async with storage.transaction("job_finish") as db:
                job = await self._load(db, job_id)
                self._transition(job, JobStatus.COMPLETED)
                job.result = result
                job.completed_at = datetime.now(UTC)

            logger.info("jobs.job_completed", job_type=job_type.value)
        finally:
            job_id_ctx.reset(token)

    async def _dispatch(
        self,
        storage: Storage,
        job_type: JobType,
        params: dict[str, Any],
    ) -> dict[str, Any]:
        if job_type == JobType.INGEST:
            return await self._execute_ingest(storage, IngestJobParams.model_validate(params))
        if job_type == JobType.COMPUTE_DELTAS:
            return await self._execute_compute_deltas(
                storage, ComputeDeltasJobParams.model_validate(params)
            )
        if job_type == JobType.REFRESH_VIEW:
            return await self._execute_refresh_view(
                storage, RefreshViewJobParams.model_validate(params)
            )
        if job_type == JobType.COMPUTE_METRICS:
            return await self._execute_compute_metrics(
                storage, ComputeMetricsJobParams.model_validate(params)
            )
        if job_type == JobType.REBUILD:
            return await rebuild_history(storage)
        if job_type == JobType.RETENTION:
            return await self._execute_retention(
                storage, RetentionJobParams.model_validate(params)
            )
        msg = f"Unknown job type: {job_type}"
        raise ValueError(msg)

    async def _execute_ingest(
        self,
        storage: Storage,
        params: IngestJobParams,
    ) -> dict[str, Any]:
        rows = read_export_csv(params.path)
        return await run_snapshot_pipeline(storage, params.date, rows)

    async def _execute_compute_deltas(
        self,
        storage: Storage,
        params: ComputeDeltasJobParams,
    ) -> dict[str, Any]:
        async with storage.transaction("compute_deltas") as db:
            _require_snapshot_exists(await has_snapshot(db, params.date), params.date)
            previous_date = params.previous_date or await previous_snapshot_date(db, params.date)
            records = await compute_deltas(db, params.date, previous_date)
        return {
            "date": params.date.isoformat(),
            "previous_date": previous_date.isoformat() if previous_date else None,
            "changes": len(records),
        }

    async def _execute_refresh_view(
        self,
        storage: Storage,
        params: RefreshViewJobParams,
    ) -> dict[str, Any]:
        if params.as_of_date is None:
            view_date = await refresh_latest_view(storage)
            return {"as_of_date": view_date.isoformat() if view_date else None}

        async with storage.transaction("refresh_view") as db:
            _require_snapshot_exists(await has_snapshot(db, params.as_of_date), params.as_of_date)
            rows = await refresh_view(db, params.as_of_date)
        return {"as_of_date": params.as_of_date.isoformat(), "rows": rows}

    async def _execute_compute_metrics(
        self,
        storage: Storage,
        params: ComputeMetricsJobParams,
    ) -> dict[str, Any]:
        async with storage.transaction("compute_metrics") as db:
            _require_snapshot_exists(await has_snapshot(db, params.date), params.date)
            metrics = await compute_metrics_daily(db, params.date, params.low_stock_threshold)
            return {
                "date": params.date.isoformat(),
                "total_products": metrics.total_products,
                "total_value": metrics.total_value,
                "out_of_stock": metrics.out_of_stock,
                "low_stock": metrics.low_stock,
            }

    async def _execute_retention(
        self,
        storage: Storage,
        params: RetentionJobParams,
    ) -> dict[str, Any]:
        retention_days = params.retention_days or self.settings.retention_days
        now = datetime.now(UTC)
        cutoff = now.date() - timedelta(days=retention_days)
        job_cutoff = now - timedelta(days=self.settings.jobs_retention_days)

        async with storage.transaction("apply_retention") as db:
            return await apply_retention(db, cutoff, job_cutoff)

    async def _load(self, db: AsyncSession, job_id: str) -> Job:
        stmt = select(Job).where(Job.job_id == job_id)
        job = (await db.execute(stmt)).scalar_one_or_none()
        if job is None:
            raise NotFoundError(
                message=f"Job not found: {job_id}",
                details={"job_id": job_id},
            )
        return job

    def _transition(self, job: Job, target: JobStatus) -> None:
        """Move a job to ``target``, enforcing the lifecycle.

        Raises:
            ConflictError: If the transition is not allowed.
        """
        current = JobStatus(job.status)
        if target not in VALID_JOB_TRANSITIONS[current]:
            raise ConflictError(
                message=f"Cannot move job from '{current.value}' to '{target.value}'",
                details={"job_id": job.job_id, "status": current.value},
            )
        job.status = target.value

    def _to_response(self, job: Job) -> JobResponse:
        """Convert Job model to response schema."""
        return JobResponse(
            job_id=job.job_id,
            job_type=JobType(job.job_type),
            status=JobStatus(job.status),
            params=job.params,
            result=job.result,
            error_message=job.error_message,
            error_type=job.error_type,
            started_at=job.started_at,
            completed_at=job.completed_at,
            created_at=job.created_at,
            updated_at=job.updated_at,
        )
