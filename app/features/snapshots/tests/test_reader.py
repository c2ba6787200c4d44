"""Tests for the CSV export reader."""

import pytest

from app.core.exceptions import ParseError
from app.features.snapshots.reader import read_export_csv


def test_reads_export_headers(tmp_path):
    """Columns are mapped from the export headers and kept as text."""
    path = tmp_path / "2024-03-01.csv"
    path.write_text(
        "Master SKU,Title,UPC,Category 1,Category 2,Quantity,Estimated Cost\n"
        'SKU-1,Widget,00012,Tools,Hand,"1,200",$2.50\n'
        "SKU-2,,,,,,\n"
    )

    rows = read_export_csv(path)

    assert len(rows) == 2
    assert rows[0].sku == "SKU-1"
    assert rows[0].upc == "00012"
    assert rows[0].quantity == "1,200"
    assert rows[0].estimated_cost == "$2.50"
    assert rows[1].title == ""
    assert rows[1].quantity == ""


def test_missing_optional_columns_are_empty(tmp_path):
    path = tmp_path / "export.csv"
    path.write_text("Master SKU,Quantity\nSKU-1,3\n")

    rows = read_export_csv(path)

    assert rows[0].sku == "SKU-1"
    assert rows[0].category1 == ""
    assert rows[0].estimated_cost == ""


def test_missing_sku_column_raises(tmp_path):
    path = tmp_path / "export.csv"
    path.write_text("Title,Quantity\nWidget,3\n")

    with pytest.raises(ParseError, match="Master SKU"):
        read_export_csv(path)


def test_missing_file_raises(tmp_path):
    with pytest.raises(ParseError):
        read_export_csv(tmp_path / "nope.csv")
