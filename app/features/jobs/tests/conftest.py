"""Test fixtures for jobs module."""

from pathlib import Path

import pytest

from app.features.jobs.models import JobType
from app.features.jobs.schemas import JobCreate

EXPORT_HEADER = "Master SKU,Title,UPC,Category 1,Category 2,Quantity,Estimated Cost\n"


@pytest.fixture
def export_csv(tmp_path: Path) -> Path:
    """Export CSV with three SKUs, one of them with formatted numbers."""
    path = tmp_path / "export-2025-08-09.csv"
    path.write_text(
        EXPORT_HEADER
        + 'A-1,Anchor,0001,Marine,,"1,200",$2.50\n'
        + "B-2,Buoy,,Marine,Float,7,10\n"
        + "C-3,Cleat,,Hardware,,0,1.25\n",
        encoding="utf-8",
    )
    return path


@pytest.fixture
def rebuild_job_create() -> JobCreate:
    """Rebuild job request (no params)."""
    return JobCreate(job_type=JobType.REBUILD, params={})


@pytest.fixture
def ingest_job_create(export_csv: Path) -> JobCreate:
    """Ingest job request pointing at the export fixture."""
    return JobCreate(
        job_type=JobType.INGEST,
        params={"date": "2025-08-09", "path": str(export_csv)},
    )
