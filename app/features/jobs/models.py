"""Job ORM model for background pipeline runs.

A job records one request to run an ingest pipeline, a single pipeline step,
a history rebuild or a retention pass, together with its outcome.
"""

from __future__ import annotations

import datetime
from enum import Enum
from typing import Any

from sqlalchemy import (
    JSON,
    CheckConstraint,
    DateTime,
    Index,
    Integer,
    String,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base
from app.shared.models import TimestampMixin

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")


class JobType(str, Enum):
    """Types of jobs that can be executed.

    - INGEST: Read an export file and run the full snapshot pipeline
    - COMPUTE_DELTAS: Recompute change records of one date
    - REFRESH_VIEW: Rebuild the materialized current view
    - COMPUTE_METRICS: Recompute the metrics row of one date
    - REBUILD: Recompute deltas and metrics for every stored date
    - RETENTION: Delete history older than the retention window
    """

    INGEST = "ingest"
    COMPUTE_DELTAS = "compute_deltas"
    REFRESH_VIEW = "refresh_view"
    COMPUTE_METRICS = "compute_metrics"
    REBUILD = "rebuild"
    RETENTION = "retention"


class JobStatus(str, Enum):
    """Job lifecycle states.

    State transitions:
    - PENDING -> RUNNING -> COMPLETED | FAILED
    """

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


VALID_JOB_TRANSITIONS: dict[JobStatus, set[JobStatus]] = {
    JobStatus.PENDING: {JobStatus.RUNNING},
    JobStatus.RUNNING: {JobStatus.COMPLETED, JobStatus.FAILED},
    JobStatus.COMPLETED: set(),  # Terminal state
    JobStatus.FAILED: set(),  # Terminal state
}


class Job(TimestampMixin, Base):
    """Background job tracking model.

    Attributes:
        id: Primary key.
        job_id: Unique external identifier (UUID hex, 32 chars).
        job_type: Type of job.
        status: Current lifecycle state.
        params: Validated job parameters.
        result: Job result (null until completed).
        error_message: Error details if status=FAILED.
        error_type: Exception class name if status=FAILED.
        started_at: When job execution started.
        completed_at: When job finished (success or failure).
    """

    __tablename__ = "job"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    job_id: Mapped[str] = mapped_column(String(32), unique=True, index=True)
    job_type: Mapped[str] = mapped_column(String(20), index=True)
    status: Mapped[str] = mapped_column(String(20), default=JobStatus.PENDING.value, index=True)

    params: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False)

    result: Mapped[dict[str, Any] | None] = mapped_column(JSONType, nullable=True)
    error_message: Mapped[str | None] = mapped_column(String(2000), nullable=True)
    error_type: Mapped[str | None] = mapped_column(String(100), nullable=True)

    started_at: Mapped[datetime.datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    completed_at: Mapped[datetime.datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    __table_args__ = (
        Index("ix_job_type_status", "job_type", "status"),
        CheckConstraint(
            "status IN ('pending', 'running', 'completed', 'failed')",
            name="ck_job_valid_status",
        ),
        CheckConstraint(
            "job_type IN ('ingest', 'compute_deltas', 'refresh_view', "
            "'compute_metrics', 'rebuild', 'retention')",
            name="ck_job_valid_type",
        ),
    )
