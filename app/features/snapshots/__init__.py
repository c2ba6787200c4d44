"""Snapshot store feature: product master and per-date inventory snapshots."""

from app.features.snapshots.parsers import normalize_text, parse_cost, parse_quantity
from app.features.snapshots.reader import read_export_csv
from app.features.snapshots.routes import router
from app.features.snapshots.schemas import (
    ExportRow,
    IngestRowError,
    SnapshotDatesResponse,
    SnapshotIngestRequest,
    SnapshotIngestResponse,
)
from app.features.snapshots.service import (
    IngestResult,
    SnapshotValue,
    has_snapshot,
    ingest_snapshot,
    latest_snapshot_date,
    list_snapshot_dates,
    load_snapshot,
    next_snapshot_date,
    previous_snapshot_date,
    upsert_product,
)

__all__ = [
    "ExportRow",
    "IngestResult",
    "IngestRowError",
    "SnapshotDatesResponse",
    "SnapshotIngestRequest",
    "SnapshotIngestResponse",
    "SnapshotValue",
    "has_snapshot",
    "ingest_snapshot",
    "latest_snapshot_date",
    "list_snapshot_dates",
    "load_snapshot",
    "next_snapshot_date",
    "normalize_text",
    "parse_cost",
    "parse_quantity",
    "previous_snapshot_date",
    "read_export_csv",
    "router",
    "upsert_product",
]
