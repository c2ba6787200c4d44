"""Delta engine feature: day-over-day change records."""

from app.features.changes.routes import router
from app.features.changes.schemas import (
    CategoryChangeSummary,
    ChangeListResponse,
    ChangeSummary,
    ComputeDeltasResponse,
    MoverSummary,
)
from app.features.changes.service import (
    ProductAttributes,
    build_change_records,
    compute_deltas,
    format_percent_change,
    list_changes,
    load_product_attributes,
    summarize_changes,
)

__all__ = [
    "CategoryChangeSummary",
    "ChangeListResponse",
    "ChangeSummary",
    "ComputeDeltasResponse",
    "MoverSummary",
    "ProductAttributes",
    "build_change_records",
    "compute_deltas",
    "format_percent_change",
    "list_changes",
    "load_product_attributes",
    "router",
    "summarize_changes",
]
