"""Tests for health check endpoints."""

from contextlib import asynccontextmanager
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError


@pytest.mark.asyncio
async def test_health_check_returns_ok(client):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "database": None}


@pytest.mark.asyncio
async def test_readiness_check_reads_through_storage(client, storage):
    response = await client.get("/health/ready")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "database": "connected"}


@pytest.mark.asyncio
async def test_readiness_check_reports_unreachable_database(client, storage):
    @asynccontextmanager
    async def unreachable():
        raise OperationalError("SELECT 1", {}, ConnectionRefusedError("connection refused"))
        yield

    with patch.object(storage, "snapshot", new=unreachable):
        response = await client.get("/health/ready")

    assert response.status_code == 200
    assert response.json() == {"status": "unhealthy", "database": "disconnected"}
