"""CSV export reader for the per-date inventory exports."""

from pathlib import Path

import pandas as pd

from app.core.exceptions import ParseError
from app.core.logging import get_logger
from app.features.snapshots.schemas import ExportRow

logger = get_logger(__name__)

EXPORT_COLUMNS = (
    "Master SKU",
    "Title",
    "UPC",
    "Category 1",
    "Category 2",
    "Quantity",
    "Estimated Cost",
)


def read_export_csv(path: str | Path) -> list[ExportRow]:
    """Read an inventory export CSV into raw export rows.

    All cells are read as text so numeric coercion follows the ingest policy
    (thousands separators, currency symbols). Missing optional columns are
    treated as empty.

    Args:
        path: Path to the CSV export.

    Returns:
        Export rows in file order.

    Raises:
        ParseError: If the file cannot be read or has no "Master SKU" column.
    """
    try:
        frame = pd.read_csv(path, dtype=str, keep_default_na=False, skipinitialspace=True)
    except (OSError, ValueError) as e:
        raise ParseError(f"Cannot read export {path}: {e}") from e

    frame.columns = [str(column).strip() for column in frame.columns]
    if "Master SKU" not in frame.columns:
        raise ParseError(f"Export {path} has no 'Master SKU' column")

    missing = [column for column in EXPORT_COLUMNS if column not in frame.columns]
    for column in missing:
        frame[column] = ""

    records = frame[list(EXPORT_COLUMNS)].to_dict(orient="records")
    logger.info(
        "snapshots.export_read",
        path=str(path),
        rows=len(records),
        missing_columns=missing or None,
    )
    return [ExportRow.model_validate(record) for record in records]
