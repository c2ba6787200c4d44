"""End-to-end flow over the HTTP API: two exports through every derived read."""

import json

import pytest

DAY_1 = "2025-08-08"
DAY_2 = "2025-08-09"


def _export(rows: list[tuple[str, str, str, str, str]]) -> dict[str, list[dict[str, str]]]:
    return {
        "rows": [
            {
                "Master SKU": sku,
                "Title": title,
                "Category 1": category,
                "Quantity": quantity,
                "Estimated Cost": cost,
            }
            for sku, title, category, quantity, cost in rows
        ]
    }


@pytest.fixture
async def two_days(client):
    """Ingest two exports and compute every derived table for the later one."""
    first = await client.post(
        f"/snapshots/{DAY_1}",
        json=_export(
            [
                ("ANC-1", "Anchor", "Marine", "10", "$5.00"),
                ("BUO-2", "Buoy", "Marine", "4", "$2.00"),
                ("CLE-3", "Cleat", "Hardware", "0", "$1.00"),
            ]
        ),
    )
    second = await client.post(
        f"/snapshots/{DAY_2}",
        json=_export(
            [
                ("ANC-1", "Anchor", "Marine", "15", "$5.00"),
                ("CLE-3", "Cleat", "Hardware", "2", "$1.00"),
                ("DEC-4", "Deck Brush", "", "1,000", "$0.50"),
            ]
        ),
    )
    assert first.status_code == second.status_code == 200

    deltas = await client.post(f"/changes/{DAY_2}/compute")
    view = await client.post("/inventory/refresh-view")
    metrics = await client.post(f"/metrics/daily/{DAY_2}/compute")
    assert deltas.status_code == view.status_code == metrics.status_code == 200
    return deltas.json(), view.json(), metrics.json()


@pytest.mark.asyncio
async def test_derived_tables_agree(client, two_days):
    deltas, view, metrics = two_days

    # ANC-1 +5, BUO-2 delisted -4, CLE-3 +2, DEC-4 new +1000
    assert deltas["previous_date"] == DAY_1
    assert deltas["changed"] == 4
    assert view["as_of_date"] == DAY_2
    assert view["rows"] == 3
    assert metrics["total_products"] == 3
    assert metrics["increases"] == 3
    assert metrics["decreases"] == 1
    assert metrics["net_change_units"] == 1003
    assert metrics["total_value"] == 75.0 + 2.0 + 500.0


@pytest.mark.asyncio
async def test_change_summary(client, two_days):
    response = await client.get(f"/changes/{DAY_2}/summary")

    summary = response.json()
    assert [m["sku"] for m in summary["top_movers"]] == ["DEC-4", "ANC-1", "BUO-2", "CLE-3"]
    assert [m["sku"] for m in summary["top_decreases"]] == ["BUO-2"]
    assert {c["category"]: c["total_changes"] for c in summary["by_category"]} == {
        "Marine": 2,
        "Hardware": 1,
        "Uncategorized": 1,
    }


@pytest.mark.asyncio
async def test_paginated_grid_query(client, two_days):
    response = await client.get(
        "/inventory/paginated",
        params={
            "page": 1,
            "limit": 2,
            "sort": json.dumps({"colId": "quantity", "sort": "desc"}),
            "filter": json.dumps({"quantity": {"type": "greaterThan", "filter": "1"}}),
        },
    )

    assert response.status_code == 200
    body = response.json()
    assert [row["sku"] for row in body["data"]] == ["DEC-4", "ANC-1"]
    assert body["data"][0]["percent_change"] == "N/A"
    assert body["data"][1]["percent_change"] == "50.00%"
    assert body["total"] == 3
    assert body["totalPages"] == 2


@pytest.mark.asyncio
async def test_dashboard_reads(client, two_days):
    stats = (await client.get("/inventory/stats")).json()
    search = (await client.get("/inventory/search", params={"q": "deck"})).json()
    low = (await client.get("/inventory/low-stock", params={"threshold": 5})).json()
    movers = (await client.get("/inventory/top-movers", params={"limit": 2})).json()

    assert stats["totalProducts"] == 3
    assert stats["outOfStock"] == 0
    assert stats["changedToday"] == 3
    assert [r["sku"] for r in search["results"]] == ["DEC-4"]
    assert [r["sku"] for r in low["items"]] == ["CLE-3"]
    assert [r["sku"] for r in movers] == ["DEC-4", "ANC-1"]


@pytest.mark.asyncio
async def test_reingest_is_idempotent(client, two_days):
    _, _, metrics_before = two_days
    export = _export(
        [
            ("ANC-1", "Anchor", "Marine", "15", "$5.00"),
            ("CLE-3", "Cleat", "Hardware", "2", "$1.00"),
            ("DEC-4", "Deck Brush", "", "1,000", "$0.50"),
        ]
    )

    await client.post(f"/snapshots/{DAY_2}", json=export)
    await client.post(f"/changes/{DAY_2}/compute")
    metrics_after = (await client.post(f"/metrics/daily/{DAY_2}/compute")).json()

    metrics_before.pop("generated_at")
    metrics_after.pop("generated_at")
    assert metrics_after == metrics_before
