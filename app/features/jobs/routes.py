"""API routes for background jobs.

Jobs run the snapshot pipeline, single pipeline steps, a history rebuild or a
retention pass outside the request that created them.
"""

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status

from app.core.database import Storage, get_storage
from app.core.logging import get_logger
from app.features.jobs.models import JobStatus, JobType
from app.features.jobs.schemas import (
    JobCreate,
    JobListResponse,
    JobResponse,
)
from app.features.jobs.service import JobService

logger = get_logger(__name__)

router = APIRouter(prefix="/jobs", tags=["jobs"])


# =============================================================================
# Job Creation
# =============================================================================


@router.post(
    "",
    response_model=JobResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Create a job",
    description="""
Create a job and schedule it for execution after the response is sent.

The response is the job in `pending` state; poll `GET /jobs/{job_id}` for the
outcome. Params are validated against the job type before the job is stored.

Example:
```json
{
  "job_type": "ingest",
  "params": {"date": "2025-08-09", "path": "exports/2025-08-09.csv"}
}
```
""",
)
async def create_job(
    job_create: JobCreate,
    background_tasks: BackgroundTasks,
    storage: Storage = Depends(get_storage),
) -> JobResponse:
    """Create a pending job and schedule its execution.

    Raises:
        ValidationError: If the params do not fit the job type.
    """
    service = JobService()
    async with storage.transaction("create_job") as db:
        job = await service.create_job(db=db, job_create=job_create)

    background_tasks.add_task(service.execute_job, storage, job.job_id)
    return job


# =============================================================================
# Job Listing
# =============================================================================


@router.get(
    "",
    response_model=JobListResponse,
    summary="List jobs",
    description="""
List jobs newest first, with pagination and optional filtering by
`job_type` and `status`.
""",
)
async def list_jobs(
    storage: Storage = Depends(get_storage),
    page: int = Query(1, ge=1, description="Page number (1-indexed)"),
    page_size: int = Query(20, ge=1, le=100, description="Jobs per page (max 100)"),
    job_type: JobType | None = Query(None, description="Filter by job type"),
    status: JobStatus | None = Query(None, description="Filter by status"),
) -> JobListResponse:
    """List jobs with pagination and filtering."""
    service = JobService()
    async with storage.snapshot() as db:
        return await service.list_jobs(
            db=db,
            page=page,
            page_size=page_size,
            job_type=job_type,
            status=status,
        )


# =============================================================================
# Single Job Operations
# =============================================================================


@router.get(
    "/{job_id}",
    response_model=JobResponse,
    summary="Get job by ID",
)
async def get_job(
    job_id: str,
    storage: Storage = Depends(get_storage),
) -> JobResponse:
    """Get job details by ID.

    Raises:
        NotFoundError: If job not found.
    """
    service = JobService()
    async with storage.snapshot() as db:
        return await service.get_job(db=db, job_id=job_id)
