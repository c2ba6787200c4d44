"""Jobs module: background pipeline runs, history rebuild and retention."""

from app.features.jobs.models import Job, JobStatus, JobType
from app.features.jobs.pipeline import rebuild_history, refresh_latest_view, run_snapshot_pipeline
from app.features.jobs.retention import apply_retention
from app.features.jobs.routes import router
from app.features.jobs.schemas import (
    JobCreate,
    JobListResponse,
    JobResponse,
)
from app.features.jobs.service import JobService

__all__ = [
    "Job",
    "JobCreate",
    "JobListResponse",
    "JobResponse",
    "JobService",
    "JobStatus",
    "JobType",
    "apply_retention",
    "rebuild_history",
    "refresh_latest_view",
    "router",
    "run_snapshot_pipeline",
]
