"""Tests for inventory API routes."""

import json
from datetime import date

import pytest

from app.core.config import get_settings


@pytest.mark.asyncio
async def test_refresh_view_defaults_to_latest_snapshot(client, seed_snapshot):
    await seed_snapshot(date(2025, 8, 8), {"A1": (1, 1.0), "B1": (2, 1.0)})
    await seed_snapshot(date(2025, 8, 9), {"A1": (3, 1.0)})

    response = await client.post("/inventory/refresh-view")

    assert response.status_code == 200
    assert response.json()["as_of_date"] == "2025-08-09"
    assert response.json()["rows"] == 1


@pytest.mark.asyncio
async def test_refresh_view_without_snapshots_is_not_found(client):
    response = await client.post("/inventory/refresh-view")

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_paginated_with_filter_and_sort(client, current_view):
    response = await client.get(
        "/inventory/paginated",
        params={
            "page": 1,
            "limit": 5,
            "filter": json.dumps({"quantity": {"type": "greaterThan", "value": "100"}}),
            "sort": json.dumps({"colId": "quantity", "sort": "desc"}),
        },
    )

    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 14
    assert data["totalPages"] == 3
    assert [row["sku"] for row in data["data"]] == [f"SKU-{n}" for n in range(25, 20, -1)]


@pytest.mark.asyncio
async def test_paginated_rejects_malformed_filter(client, current_view):
    response = await client.get("/inventory/paginated", params={"filter": "{not json"})

    assert response.status_code == 422
    body = response.json()
    assert body["code"] == "VALIDATION_ERROR"
    assert body["errors"][0]["field"] == "filter"


@pytest.mark.asyncio
async def test_paginated_rejects_unknown_sort_column(client, current_view):
    response = await client.get(
        "/inventory/paginated",
        params={"sort": json.dumps({"column": "1; DROP TABLE product", "direction": "asc"})},
    )

    assert response.status_code == 422
    assert response.json()["errors"][0]["field"] == "sort.column"


@pytest.mark.asyncio
async def test_current_by_offset(client, current_view):
    response = await client.get("/inventory/current", params={"limit": 2, "offset": 1})

    assert response.status_code == 200
    data = response.json()
    assert [row["sku"] for row in data["data"]] == ["SKU-02", "SKU-03"]
    assert data["total"] == 25
    assert data["limit"] == 2
    assert data["offset"] == 1


@pytest.mark.asyncio
async def test_search_route(client, current_view):
    short = await client.get("/inventory/search", params={"q": "b"})
    hits = await client.get("/inventory/search", params={"q": "blue"})

    assert short.json() == {"results": []}
    assert hits.json()["results"] == [
        {"sku": "SKU-07", "title": "Blue Widget", "quantity": 60, "category1": "Cat-S"}
    ]


@pytest.mark.asyncio
async def test_top_movers_route(client, current_view):
    response = await client.get("/inventory/top-movers", params={"limit": 1})

    assert response.status_code == 200
    assert [row["sku"] for row in response.json()] == ["SKU-03"]


@pytest.mark.asyncio
async def test_low_stock_route_default_threshold(client, current_view):
    response = await client.get("/inventory/low-stock")

    data = response.json()
    assert data["threshold"] == 10
    assert data["count"] == 1
    assert data["items"][0]["sku"] == "SKU-02"


@pytest.mark.asyncio
async def test_stats_route(client, current_view):
    response = await client.get("/inventory/stats")

    assert response.status_code == 200
    data = response.json()
    assert data["totalProducts"] == 25
    assert data["totalValue"] == pytest.approx(3000.0)
    assert data["outOfStock"] == 1
    assert data["lowStock"] == 1
    assert data["changedToday"] == 2
    assert data["avgValue"] == pytest.approx(120.0)


@pytest.mark.asyncio
async def test_default_limits_come_from_settings(client, current_view, monkeypatch):
    settings = get_settings()
    monkeypatch.setattr(settings, "inventory_default_page_size", 3)
    monkeypatch.setattr(settings, "inventory_search_default_limit", 1)
    monkeypatch.setattr(settings, "inventory_top_movers_default_limit", 1)

    page = (await client.get("/inventory/paginated")).json()
    found = (await client.get("/inventory/search", params={"q": "SKU"})).json()
    movers = (await client.get("/inventory/top-movers")).json()

    assert page["limit"] == 3
    assert len(page["data"]) == 3
    assert page["totalPages"] == 9
    assert len(found["results"]) == 1
    assert len(movers) == 1


@pytest.mark.asyncio
async def test_boolean_filter_value_is_rejected(client, current_view):
    response = await client.get(
        "/inventory/paginated",
        params={"filter": json.dumps({"quantity": {"type": "equals", "value": True}})},
    )

    assert response.status_code == 422
    assert response.json()["errors"][0]["field"] == "filter"
