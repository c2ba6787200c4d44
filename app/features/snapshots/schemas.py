"""Pydantic schemas for snapshot ingest API."""

from datetime import date as date_type

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class ExportRow(BaseModel):
    """Single raw row of a per-date inventory export.

    Values are kept as delivered (text or numbers); numeric coercion happens in
    the service so that malformed values become 0 instead of rejecting the
    whole request. Both snake_case keys and the export's column headers
    ("Master SKU", "Estimated Cost", ...) are accepted.
    """

    model_config = ConfigDict(populate_by_name=True)

    sku: str | None = Field(
        None,
        validation_alias=AliasChoices("sku", "Master SKU"),
        description="Product SKU (natural key). Blank rows are skipped and counted.",
    )
    title: str | None = Field(None, validation_alias=AliasChoices("title", "Title"))
    upc: str | None = Field(None, validation_alias=AliasChoices("upc", "UPC"))
    category1: str | None = Field(
        None, validation_alias=AliasChoices("category1", "Category 1")
    )
    category2: str | None = Field(
        None, validation_alias=AliasChoices("category2", "Category 2")
    )
    quantity: str | int | float | None = Field(
        None,
        validation_alias=AliasChoices("quantity", "Quantity"),
        description="Units on hand, e.g. '1,234'. Unparsable or empty values become 0.",
    )
    estimated_cost: str | int | float | None = Field(
        None,
        validation_alias=AliasChoices("estimated_cost", "Estimated Cost"),
        description="Unit cost, e.g. '$1,299.99'. Unparsable or empty values become 0.",
    )


class SnapshotIngestRequest(BaseModel):
    """Request body for POST /snapshots/{date}."""

    rows: list[ExportRow] = Field(
        ...,
        description="Export rows for the snapshot date. Replaces any rows already stored for it.",
    )


class IngestRowError(BaseModel):
    """Detail for a single skipped row."""

    row_index: int = Field(..., description="0-based index of the skipped row")
    sku: str | None = Field(None, description="SKU from the row, if any")
    error_code: str = Field(..., description="Machine-readable error code")
    error_message: str = Field(..., description="Human-readable error message")


class SnapshotIngestResponse(BaseModel):
    """Response body for POST /snapshots/{date}."""

    date: date_type = Field(..., description="Snapshot date that was ingested")
    saved: int = Field(..., ge=0, description="Distinct SKUs persisted for the date")
    skipped: int = Field(..., ge=0, description="Rows skipped (blank SKU)")
    duplicates: int = Field(0, ge=0, description="Rows superseded by a later row with the same SKU")
    total_processed: int = Field(..., ge=0, description="Total rows received")
    errors: list[IngestRowError] = Field(default=[], description="Details of skipped rows")
    duration_ms: float = Field(..., ge=0, description="Processing duration in milliseconds")


class SnapshotDatesResponse(BaseModel):
    """Response body for GET /snapshots/dates."""

    dates: list[date_type] = Field(..., description="Snapshot dates in ascending order")
    latest: date_type | None = Field(None, description="Most recent snapshot date")
