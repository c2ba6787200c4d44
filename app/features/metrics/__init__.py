"""Metrics aggregator feature: per-date summary statistics."""

from app.features.metrics.routes import router
from app.features.metrics.schemas import CurrentViewStats, DailyMetricsListResponse
from app.features.metrics.service import (
    compute_metrics_daily,
    current_view_stats,
    get_daily_metrics,
    list_daily_metrics,
)

__all__ = [
    "CurrentViewStats",
    "DailyMetricsListResponse",
    "compute_metrics_daily",
    "current_view_stats",
    "get_daily_metrics",
    "list_daily_metrics",
    "router",
]
