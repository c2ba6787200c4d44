"""Data platform feature for the inventory snapshot store.

This module provides the persisted schema of the inventory tracker:
- Dimension table: Product
- Fact tables: SnapshotRecord, ChangeRecord
- Derived read models: CurrentViewRow, DailyMetrics
"""

from app.features.data_platform.models import (
    ChangeRecord,
    CurrentViewRow,
    DailyMetrics,
    Product,
    SnapshotRecord,
)

__all__ = [
    "ChangeRecord",
    "CurrentViewRow",
    "DailyMetrics",
    "Product",
    "SnapshotRecord",
]
