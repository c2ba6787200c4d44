"""Pydantic schemas for job endpoints."""

import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from app.features.jobs.models import JobStatus, JobType

# =============================================================================
# Job Params Schemas
# =============================================================================


class IngestJobParams(BaseModel):
    """Params of an ``ingest`` job."""

    model_config = ConfigDict(extra="forbid")

    date: datetime.date = Field(
        ..., description="Snapshot date the export belongs to (YYYY-MM-DD)."
    )
    path: str = Field(..., min_length=1, description="Server-side path of the export CSV.")


class ComputeDeltasJobParams(BaseModel):
    """Params of a ``compute_deltas`` job."""

    model_config = ConfigDict(extra="forbid")

    date: datetime.date
    previous_date: datetime.date | None = Field(
        None, description="Defaults to the latest snapshot date before `date`."
    )


class RefreshViewJobParams(BaseModel):
    """Params of a ``refresh_view`` job."""

    model_config = ConfigDict(extra="forbid")

    as_of_date: datetime.date | None = Field(
        None, description="Defaults to the latest snapshot date."
    )


class ComputeMetricsJobParams(BaseModel):
    """Params of a ``compute_metrics`` job."""

    model_config = ConfigDict(extra="forbid")

    date: datetime.date
    low_stock_threshold: int | None = Field(None, ge=1)


class RebuildJobParams(BaseModel):
    """Params of a ``rebuild`` job (none)."""

    model_config = ConfigDict(extra="forbid")


class RetentionJobParams(BaseModel):
    """Params of a ``retention`` job."""

    model_config = ConfigDict(extra="forbid")

    retention_days: int | None = Field(
        None, ge=1, description="Days of history to keep; defaults to the configured value."
    )


JOB_PARAMS_MODELS: dict[JobType, type[BaseModel]] = {
    JobType.INGEST: IngestJobParams,
    JobType.COMPUTE_DELTAS: ComputeDeltasJobParams,
    JobType.REFRESH_VIEW: RefreshViewJobParams,
    JobType.COMPUTE_METRICS: ComputeMetricsJobParams,
    JobType.REBUILD: RebuildJobParams,
    JobType.RETENTION: RetentionJobParams,
}

# =============================================================================
# Job Create Schema
# =============================================================================


class JobCreate(BaseModel):
    """Request schema for creating a new job.

    **Job Types and Params**:

    - **ingest**: `date`, `path` (export CSV readable by the server)
    - **compute_deltas**: `date`, optional `previous_date`
    - **refresh_view**: optional `as_of_date`
    - **compute_metrics**: `date`, optional `low_stock_threshold`
    - **rebuild**: no params
    - **retention**: optional `retention_days`
    """

    job_type: JobType = Field(..., description="Type of job to execute.")
    params: dict[str, Any] = Field(
        default_factory=dict,
        description="Job-specific parameters. See job type documentation.",
    )


# =============================================================================
# Job Response Schemas
# =============================================================================


class JobResponse(BaseModel):
    """Response schema for a single job."""

    model_config = ConfigDict(from_attributes=True)

    job_id: str = Field(..., description="Unique job identifier (32-char hex).")
    job_type: JobType
    status: JobStatus = Field(
        ..., description="Current job status: 'pending', 'running', 'completed' or 'failed'."
    )
    params: dict[str, Any] = Field(..., description="Validated job parameters.")
    result: dict[str, Any] | None = Field(None, description="Job result (null until completed).")
    error_message: str | None = None
    error_type: str | None = None
    started_at: datetime.datetime | None = None
    completed_at: datetime.datetime | None = None
    created_at: datetime.datetime
    updated_at: datetime.datetime


class JobListResponse(BaseModel):
    """Paginated list of jobs, newest first."""

    jobs: list[JobResponse]
    total: int = Field(..., ge=0)
    page: int = Field(..., ge=1)
    page_size: int = Field(..., ge=1)
