"""Feature-specific test fixtures for the snapshot store."""

import pytest

from app.features.snapshots.schemas import ExportRow


@pytest.fixture
def export_rows() -> list[ExportRow]:
    """Three well-formed export rows using the export's column headers."""
    return [
        ExportRow.model_validate(
            {
                "Master SKU": "SKU-001",
                "Title": "Widget",
                "UPC": "000111",
                "Category 1": "Tools",
                "Category 2": "Hand",
                "Quantity": "1,200",
                "Estimated Cost": "$2.50",
            }
        ),
        ExportRow.model_validate(
            {
                "Master SKU": "SKU-002",
                "Title": "Gadget",
                "UPC": "",
                "Category 1": "Toys",
                "Category 2": "",
                "Quantity": "0",
                "Estimated Cost": "10",
            }
        ),
        ExportRow(sku="SKU-003", title="", quantity=4, estimated_cost=1.25),
    ]
