"""Metrics API routes."""

from datetime import date

from fastapi import APIRouter, Depends, Query

from app.core.database import Storage, get_storage
from app.core.exceptions import NotFoundError
from app.core.logging import get_logger
from app.features.data_platform.schemas import DailyMetricsRead
from app.features.metrics.schemas import DailyMetricsListResponse
from app.features.metrics.service import (
    compute_metrics_daily,
    get_daily_metrics,
    list_daily_metrics,
)
from app.features.snapshots.service import has_snapshot

logger = get_logger(__name__)

router = APIRouter(prefix="/metrics", tags=["metrics"])


@router.get(
    "/daily/{metrics_date}",
    response_model=DailyMetricsRead,
    summary="Get daily metrics",
)
async def get_daily(
    metrics_date: date,
    storage: Storage = Depends(get_storage),
) -> DailyMetricsRead:
    """Get the stored metrics row of a date (404 when never computed)."""
    async with storage.snapshot() as db:
        metrics = await get_daily_metrics(db, metrics_date)
        return DailyMetricsRead.model_validate(metrics)


@router.get(
    "/daily",
    response_model=DailyMetricsListResponse,
    summary="List daily metrics in a date range",
)
async def list_daily(
    start_date: date = Query(..., description="First date (inclusive)"),
    end_date: date = Query(..., description="Last date (inclusive)"),
    storage: Storage = Depends(get_storage),
) -> DailyMetricsListResponse:
    """List stored metrics rows between two dates."""
    async with storage.snapshot() as db:
        rows = await list_daily_metrics(db, start_date, end_date)
        return DailyMetricsListResponse(
            start_date=start_date,
            end_date=end_date,
            metrics=[DailyMetricsRead.model_validate(row) for row in rows],
        )


@router.post(
    "/daily/{metrics_date}/compute",
    response_model=DailyMetricsRead,
    summary="Recompute daily metrics",
    description="""
Recompute the metrics row of `metrics_date` from its snapshot and change
records. The stored row is overwritten, so repeated calls are idempotent.
""",
)
async def compute_daily(
    metrics_date: date,
    low_stock_threshold: int | None = Query(
        None, ge=1, description="Upper bound of low stock; defaults to the configured value"
    ),
    storage: Storage = Depends(get_storage),
) -> DailyMetricsRead:
    """Recompute metrics for one date.

    Raises:
        NotFoundError: If no snapshot exists for ``metrics_date``.
    """
    async with storage.transaction("compute_metrics") as db:
        if not await has_snapshot(db, metrics_date):
            raise NotFoundError(
                message=f"No snapshot stored for {metrics_date}",
                details={"date": str(metrics_date)},
            )
        metrics = await compute_metrics_daily(db, metrics_date, low_stock_threshold)
        return DailyMetricsRead.model_validate(metrics)
