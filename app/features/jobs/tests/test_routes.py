"""Tests for job API routes."""

import pytest


@pytest.mark.asyncio
async def test_create_job_returns_pending_and_runs_in_background(client, export_csv):
    response = await client.post(
        "/jobs",
        json={"job_type": "ingest", "params": {"date": "2025-08-09", "path": str(export_csv)}},
    )

    assert response.status_code == 202
    created = response.json()
    assert created["status"] == "pending"

    # The ASGI transport returns once background tasks have finished.
    polled = await client.get(f"/jobs/{created['job_id']}")
    assert polled.status_code == 200
    job = polled.json()
    assert job["status"] == "completed"
    assert job["result"]["saved"] == 3

    inventory = await client.get("/inventory/paginated", params={"limit": 10})
    assert inventory.json()["total"] == 3


@pytest.mark.asyncio
async def test_invalid_params_are_rejected(client):
    response = await client.post(
        "/jobs", json={"job_type": "compute_metrics", "params": {"date": "not-a-date"}}
    )

    assert response.status_code == 422
    assert response.headers["content-type"].startswith("application/problem+json")
    assert response.json()["code"] == "VALIDATION_ERROR"


@pytest.mark.asyncio
async def test_unknown_job_type_is_rejected(client):
    response = await client.post("/jobs", json={"job_type": "train", "params": {}})

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_get_unknown_job_returns_problem_details(client):
    response = await client.get("/jobs/" + "0" * 32)

    assert response.status_code == 404
    assert response.headers["content-type"].startswith("application/problem+json")


@pytest.mark.asyncio
async def test_failed_job_reports_error(client, tmp_path):
    response = await client.post(
        "/jobs",
        json={
            "job_type": "ingest",
            "params": {"date": "2025-08-09", "path": str(tmp_path / "missing.csv")},
        },
    )

    job = (await client.get(f"/jobs/{response.json()['job_id']}")).json()
    assert job["status"] == "failed"
    assert job["error_type"] == "ParseError"


@pytest.mark.asyncio
async def test_list_jobs(client):
    for _ in range(3):
        await client.post("/jobs", json={"job_type": "rebuild"})

    response = await client.get("/jobs", params={"page_size": 2, "job_type": "rebuild"})

    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 3
    assert len(data["jobs"]) == 2
    assert data["page_size"] == 2
    assert all(job["status"] == "completed" for job in data["jobs"])
