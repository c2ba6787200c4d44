"""Pydantic schemas for metrics endpoints."""

from datetime import date as date_type

from pydantic import BaseModel, Field

from app.features.data_platform.schemas import DailyMetricsRead


class DailyMetricsListResponse(BaseModel):
    """Response body for GET /metrics/daily."""

    start_date: date_type
    end_date: date_type
    metrics: list[DailyMetricsRead] = Field(..., description="One row per computed date, ascending")


class CurrentViewStats(BaseModel):
    """Dashboard statistics over the current inventory view."""

    totalProducts: int = Field(..., ge=0, description="Rows in the current view")  # noqa: N815
    totalValue: float = Field(..., ge=0, description="Sum of quantity * cost")  # noqa: N815
    outOfStock: int = Field(..., ge=0, description="Rows with quantity == 0")  # noqa: N815
    lowStock: int = Field(..., ge=0, description="Rows with 0 < quantity <= limit")  # noqa: N815
    changedToday: int = Field(..., ge=0, description="Rows with absolute_change > 0")  # noqa: N815
    avgValue: float = Field(..., ge=0, description="totalValue / totalProducts")  # noqa: N815
