"""Tests for delta engine API routes."""

from datetime import date

import pytest


@pytest.mark.asyncio
async def test_compute_defaults_to_previous_snapshot(client, seed_snapshot):
    await seed_snapshot(date(2025, 8, 8), {"SKU1": (10, 2.0)})
    await seed_snapshot(date(2025, 8, 9), {"SKU1": (15, 2.0)})

    response = await client.post("/changes/2025-08-09/compute")

    assert response.status_code == 200
    data = response.json()
    assert data["previous_date"] == "2025-08-08"
    assert data["changed"] == 1

    response = await client.get("/changes/2025-08-09")
    change = response.json()["changes"][0]
    assert change["sku"] == "SKU1"
    assert change["percent_change"] == "50.00%"
    assert change["change_type"] == "increase"
    assert change["total_value"] == 30.0


@pytest.mark.asyncio
async def test_compute_first_day_is_noop(client, seed_snapshot):
    await seed_snapshot(date(2025, 8, 8), {"SKU1": (10, 2.0)})

    response = await client.post("/changes/2025-08-08/compute")

    assert response.status_code == 200
    assert response.json()["previous_date"] is None
    assert response.json()["changed"] == 0


@pytest.mark.asyncio
async def test_compute_without_snapshot_is_not_found(client):
    response = await client.post("/changes/2025-08-09/compute")

    assert response.status_code == 404
    assert response.json()["code"] == "NOT_FOUND"


@pytest.mark.asyncio
async def test_compute_rejects_later_previous_date(client, seed_snapshot):
    await seed_snapshot(date(2025, 8, 9), {"SKU1": (10, 2.0)})

    response = await client.post("/changes/2025-08-09/compute?previous_date=2025-08-10")

    assert response.status_code == 422
    assert response.json()["errors"][0]["field"] == "previous_date"


@pytest.mark.asyncio
async def test_summary_route(client, seed_snapshot):
    await seed_snapshot(date(2025, 8, 8), {"SKU1": (10, 2.0)})
    await seed_snapshot(date(2025, 8, 9), {"SKU1": (4, 2.0)})
    await client.post("/changes/2025-08-09/compute")

    response = await client.get("/changes/2025-08-09/summary")

    assert response.status_code == 200
    data = response.json()
    assert data["decreases"] == 1
    assert data["top_decreases"][0]["quantity_change"] == -6
