"""Tests for the storage handle's transaction and read scopes."""

import asyncio

import pytest
from sqlalchemy import select

from app.core.exceptions import NotFoundError, TransactionError
from app.features.data_platform.models import Product


async def _add_product(storage, sku: str, title: str) -> None:
    async with storage.transaction("add_product") as db:
        db.add(Product(sku=sku, title=title))


@pytest.mark.asyncio
async def test_loaded_objects_are_readable_after_snapshot_closes(storage):
    await _add_product(storage, "A1", "Anchor")

    async with storage.snapshot() as db:
        product = (await db.execute(select(Product))).scalar_one()

    assert product.sku == "A1"
    assert product.title == "Anchor"


@pytest.mark.asyncio
async def test_transactions_do_not_interleave(storage):
    events: list[str] = []

    async def write(name: str) -> None:
        async with storage.transaction(name) as db:
            events.append(f"{name}.start")
            await asyncio.sleep(0.01)
            db.add(Product(sku=name, title=name))
            await db.flush()
            await asyncio.sleep(0.01)
            events.append(f"{name}.end")

    await asyncio.gather(write("first"), write("second"))

    assert events in (
        ["first.start", "first.end", "second.start", "second.end"],
        ["second.start", "second.end", "first.start", "first.end"],
    )
    async with storage.snapshot() as db:
        skus = (await db.execute(select(Product.sku).order_by(Product.sku))).scalars().all()
    assert skus == ["first", "second"]


@pytest.mark.asyncio
async def test_application_error_rolls_back_and_propagates(storage):
    with pytest.raises(NotFoundError):
        async with storage.transaction("add_product") as db:
            db.add(Product(sku="A1", title="Anchor"))
            await db.flush()
            raise NotFoundError(message="stop")

    async with storage.snapshot() as db:
        assert (await db.execute(select(Product))).first() is None


@pytest.mark.asyncio
async def test_storage_fault_becomes_transaction_error(storage):
    await _add_product(storage, "A1", "Anchor")

    with pytest.raises(TransactionError) as exc_info:
        await _add_product(storage, "A1", "Duplicate")

    assert exc_info.value.details["operation"] == "add_product"


@pytest.mark.asyncio
async def test_lock_is_released_after_failure(storage):
    with pytest.raises(NotFoundError):
        async with storage.transaction("failing"):
            raise NotFoundError(message="stop")

    await asyncio.wait_for(_add_product(storage, "B2", "Buoy"), timeout=1)
