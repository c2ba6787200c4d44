"""Pydantic read schemas for data platform records.

Shared by the snapshot, change, inventory and metrics slices for API output.
"""

from datetime import date as date_type
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

# ============================================================================
# PRODUCT / SNAPSHOT SCHEMAS
# ============================================================================


class ProductRead(BaseModel):
    """Schema for reading product master data."""

    model_config = ConfigDict(from_attributes=True)

    sku: str
    title: str
    upc: str | None = None
    category1: str | None = None
    category2: str | None = None
    created_at: datetime
    updated_at: datetime


class SnapshotRecordRead(BaseModel):
    """Schema for reading one (date, sku) snapshot fact."""

    model_config = ConfigDict(from_attributes=True)

    date: date_type
    sku: str
    quantity: int = Field(..., ge=0)
    estimated_cost: float = Field(..., ge=0)


# ============================================================================
# CHANGE SCHEMAS
# ============================================================================


class ChangeRecordRead(BaseModel):
    """Schema for reading a day-over-day change record."""

    model_config = ConfigDict(from_attributes=True)

    date: date_type
    sku: str
    title: str
    upc: str
    category1: str
    category2: str
    yesterday_qty: int
    today_qty: int
    quantity_change: int
    absolute_change: int = Field(..., gt=0)
    percent_change: str
    change_type: str
    estimated_cost: float
    total_value: float


# ============================================================================
# CURRENT VIEW / METRICS SCHEMAS
# ============================================================================


class CurrentViewRowRead(BaseModel):
    """Schema for reading a materialized current-view row."""

    model_config = ConfigDict(from_attributes=True)

    sku: str
    title: str
    upc: str
    category1: str
    category2: str
    quantity: int
    estimated_cost: float
    quantity_change: int
    absolute_change: int
    percent_change: str
    last_updated: date_type


class DailyMetricsRead(BaseModel):
    """Schema for reading a per-date metrics row."""

    model_config = ConfigDict(from_attributes=True)

    date: date_type
    total_products: int
    total_value: float
    out_of_stock: int
    low_stock: int
    increases: int
    decreases: int
    net_change_units: int
    total_abs_change_units: int
    total_abs_change_usd: float
    generated_at: datetime
