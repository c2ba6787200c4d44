"""Shared pytest fixtures for InventoryTracker tests."""

from collections.abc import AsyncIterator, Awaitable, Callable
from datetime import date

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from app.core.database import Storage, get_storage
from app.features.snapshots.schemas import ExportRow
from app.features.snapshots.service import ingest_snapshot
from app.main import app


@pytest.fixture
async def storage() -> AsyncIterator[Storage]:
    """Create a storage handle over a fresh in-memory SQLite database.

    All tables are created up front; the database disappears with the engine.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    test_storage = Storage(engine)
    await test_storage.create_all()

    yield test_storage

    await test_storage.dispose()


@pytest.fixture
async def client(storage: Storage) -> AsyncIterator[AsyncClient]:
    """Create async HTTP client wired to the test storage."""
    app.dependency_overrides[get_storage] = lambda: storage
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def seed_snapshot(storage: Storage) -> Callable[..., Awaitable[None]]:
    """Factory ingesting ``{sku: (quantity, cost)}`` as the snapshot of a date.

    Products get the SKU lowercased as title and "Cat-<first letter>" as category1
    unless ``titles``/``categories`` override them.
    """

    async def _seed(
        snapshot_date: date,
        values: dict[str, tuple[int, float]],
        titles: dict[str, str] | None = None,
        categories: dict[str, str] | None = None,
    ) -> None:
        titles = titles or {}
        categories = categories or {}
        rows = [
            ExportRow(
                sku=sku,
                title=titles.get(sku, sku.lower()),
                category1=categories.get(sku, f"Cat-{sku[0]}"),
                quantity=quantity,
                estimated_cost=cost,
            )
            for sku, (quantity, cost) in values.items()
        ]
        async with storage.transaction("ingest_snapshot") as db:
            await ingest_snapshot(db, snapshot_date, rows)

    return _seed
