"""Pydantic schemas for the delta engine API."""

from datetime import date as date_type

from pydantic import BaseModel, Field

from app.features.data_platform.schemas import ChangeRecordRead


class ComputeDeltasResponse(BaseModel):
    """Response body for POST /changes/{date}/compute."""

    date: date_type = Field(..., description="Date of the later snapshot")
    previous_date: date_type | None = Field(
        None, description="Snapshot date compared against; null when none exists"
    )
    changed: int = Field(..., ge=0, description="Number of change records written")
    duration_ms: float = Field(..., ge=0)


class ChangeListResponse(BaseModel):
    """Response body for GET /changes/{date}."""

    date: date_type
    count: int = Field(..., ge=0)
    changes: list[ChangeRecordRead]


class MoverSummary(BaseModel):
    """One SKU in a top-movers list."""

    sku: str
    title: str
    quantity_change: int
    absolute_change: int


class CategoryChangeSummary(BaseModel):
    """Movement of one category on a date."""

    category: str = Field(..., description="category1, or 'Uncategorized' when blank")
    total_changes: int = Field(..., ge=0)
    absolute_change: int = Field(..., ge=0)
    increases: int = Field(..., ge=0)
    decreases: int = Field(..., ge=0)


class ChangeSummary(BaseModel):
    """Daily movement summary for a date."""

    date: date_type
    total_products_changed: int = Field(..., ge=0)
    total_absolute_change: int = Field(..., ge=0)
    net_change: int
    increases: int = Field(..., ge=0)
    decreases: int = Field(..., ge=0)
    top_movers: list[MoverSummary] = Field(..., description="Ten largest movements")
    top_increases: list[MoverSummary] = Field(..., description="Five largest increases")
    top_decreases: list[MoverSummary] = Field(..., description="Five largest decreases")
    by_category: list[CategoryChangeSummary] = Field(
        ..., description="Per-category movement, most changes first"
    )
