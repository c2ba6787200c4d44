"""Feature-specific test fixtures for the current view and query engine."""

from datetime import date

import pytest

from app.features.changes.service import compute_deltas
from app.features.inventory.view import refresh_view

PREVIOUS_DATE = date(2025, 8, 8)
VIEW_DATE = date(2025, 8, 9)


def view_values() -> dict[str, tuple[int, float]]:
    """25 SKUs, SKU-01..SKU-25, with quantity (n - 1) * 10 and cost 1.0."""
    return {f"SKU-{n:02d}": ((n - 1) * 10, 1.0) for n in range(1, 26)}


@pytest.fixture
async def current_view(storage, seed_snapshot) -> date:
    """A 25-row current view built for VIEW_DATE.

    SKU-03 rose 10 -> 20 and SKU-05 fell 50 -> 40 against PREVIOUS_DATE; every other
    SKU is unchanged. Titles are "Item NN"; SKU-07 is titled "Blue Widget".
    """
    current = view_values()
    previous = dict(current)
    previous["SKU-03"] = (current["SKU-03"][0] - 10, 1.0)
    previous["SKU-05"] = (current["SKU-05"][0] + 10, 1.0)
    titles = {sku: f"Item {sku[-2:]}" for sku in current}
    titles["SKU-07"] = "Blue Widget"

    await seed_snapshot(PREVIOUS_DATE, previous, titles=titles)
    await seed_snapshot(VIEW_DATE, current, titles=titles)

    async with storage.transaction("refresh_view") as db:
        await compute_deltas(db, VIEW_DATE, PREVIOUS_DATE)
        await refresh_view(db, VIEW_DATE)

    return VIEW_DATE
