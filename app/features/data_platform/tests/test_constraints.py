"""Tests for database constraints of the snapshot store."""

from datetime import date

import pytest
from sqlalchemy.exc import IntegrityError

from app.core.exceptions import TransactionError
from app.features.data_platform.models import ChangeRecord, Product, SnapshotRecord

SNAPSHOT_DATE = date(2025, 8, 9)


def _change(**overrides):
    values = {
        "date": SNAPSHOT_DATE,
        "sku": "SKU-1",
        "yesterday_qty": 1,
        "today_qty": 2,
        "quantity_change": 1,
        "absolute_change": 1,
        "percent_change": "100.00%",
        "change_type": "increase",
    }
    values.update(overrides)
    return ChangeRecord(**values)


class TestSnapshotConstraints:
    """Tests for inventory_snapshot constraints."""

    @pytest.mark.asyncio
    async def test_negative_quantity_is_rejected(self, storage):
        with pytest.raises(TransactionError) as exc_info:
            async with storage.transaction("insert_snapshot") as db:
                db.add(Product(sku="SKU-1", title="One"))
                db.add(SnapshotRecord(date=SNAPSHOT_DATE, sku="SKU-1", quantity=-1))

        assert isinstance(exc_info.value.__cause__, IntegrityError)

    @pytest.mark.asyncio
    async def test_duplicate_date_and_sku_is_rejected(self, storage):
        async with storage.transaction("insert_snapshot") as db:
            db.add(Product(sku="SKU-1", title="One"))
            db.add(SnapshotRecord(date=SNAPSHOT_DATE, sku="SKU-1", quantity=1))

        with pytest.raises(TransactionError):
            async with storage.transaction("insert_snapshot") as db:
                db.add(SnapshotRecord(date=SNAPSHOT_DATE, sku="SKU-1", quantity=2))
                await db.flush()


class TestChangeConstraints:
    """Tests for daily_change constraints."""

    @pytest.mark.asyncio
    async def test_unmoved_sku_is_rejected(self, storage):
        with pytest.raises(TransactionError):
            async with storage.transaction("insert_change") as db:
                db.add(_change(today_qty=1, quantity_change=0, absolute_change=0))

    @pytest.mark.asyncio
    async def test_unknown_change_type_is_rejected(self, storage):
        with pytest.raises(TransactionError):
            async with storage.transaction("insert_change") as db:
                db.add(_change(change_type="sideways"))

    @pytest.mark.asyncio
    async def test_second_record_for_same_day_is_rejected(self, storage):
        async with storage.transaction("insert_change") as db:
            db.add(_change())

        with pytest.raises(TransactionError):
            async with storage.transaction("insert_change") as db:
                db.add(_change(today_qty=3, quantity_change=2, absolute_change=2))
