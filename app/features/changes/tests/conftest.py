"""Feature-specific test fixtures for the delta engine."""

import pytest

from app.features.changes.service import ProductAttributes
from app.features.snapshots.service import SnapshotValue


@pytest.fixture
def previous_snapshot() -> dict[str, SnapshotValue]:
    return {
        "SKU1": SnapshotValue(quantity=10, estimated_cost=2.0),
        "GONE": SnapshotValue(quantity=5, estimated_cost=3.0),
        "FLAT": SnapshotValue(quantity=7, estimated_cost=1.0),
        "DOWN": SnapshotValue(quantity=8, estimated_cost=4.0),
    }


@pytest.fixture
def current_snapshot() -> dict[str, SnapshotValue]:
    return {
        "SKU1": SnapshotValue(quantity=15, estimated_cost=2.0),
        "NEW": SnapshotValue(quantity=10, estimated_cost=1.5),
        "FLAT": SnapshotValue(quantity=7, estimated_cost=1.0),
        "DOWN": SnapshotValue(quantity=2, estimated_cost=4.5),
    }


@pytest.fixture
def product_attributes() -> dict[str, ProductAttributes]:
    return {
        "SKU1": ProductAttributes(title="Widget", upc="111", category1="Tools"),
        "DOWN": ProductAttributes(title="Gizmo", category1="Tools", category2="Small"),
    }
