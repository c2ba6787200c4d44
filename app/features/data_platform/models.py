"""Data platform ORM models for the inventory snapshot store.

This module defines the persisted logical schema:
- Dimension: Product (SKU master)
- Facts: SnapshotRecord (per-date quantity/cost), ChangeRecord (derived deltas)
- Derived read models: CurrentViewRow (materialized current view),
  DailyMetrics (per-date summary statistics)

Grain: SnapshotRecord uniquely keyed by (date, sku). ChangeRecord rows exist
only for SKUs that moved (absolute_change > 0).
"""

import datetime

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base
from app.shared.models import TimestampMixin

# ============================================================================
# DIMENSION TABLES
# ============================================================================


class Product(TimestampMixin, Base):
    """Product master keyed by SKU.

    Attributes:
        sku: Stock keeping unit (primary key).
        title: Product title; always overwritten on ingest.
        upc: Universal product code; a null incoming value keeps the stored one.
        category1: Primary category; a null incoming value keeps the stored one.
        category2: Secondary category; a null incoming value keeps the stored one.
    """

    __tablename__ = "product"

    sku: Mapped[str] = mapped_column(Text, primary_key=True)
    title: Mapped[str] = mapped_column(Text)
    upc: Mapped[str | None] = mapped_column(Text, nullable=True)
    category1: Mapped[str | None] = mapped_column(Text, nullable=True)
    category2: Mapped[str | None] = mapped_column(Text, nullable=True)

    snapshots: Mapped[list["SnapshotRecord"]] = relationship(back_populates="product")


# ============================================================================
# FACT TABLES
# ============================================================================


class SnapshotRecord(Base):
    """Point-in-time quantity/cost of one SKU on one date.

    CRITICAL: Grain is (date, sku). Re-ingesting a date replaces its rows.

    Attributes:
        date: Snapshot date.
        sku: Product SKU (FK to product).
        quantity: Units on hand (>= 0).
        estimated_cost: Estimated unit cost (>= 0).
    """

    __tablename__ = "inventory_snapshot"

    date: Mapped[datetime.date] = mapped_column(Date, primary_key=True)
    sku: Mapped[str] = mapped_column(Text, ForeignKey("product.sku"), primary_key=True)
    quantity: Mapped[int] = mapped_column(Integer, default=0)
    estimated_cost: Mapped[float] = mapped_column(Float, default=0.0)

    product: Mapped["Product"] = relationship(back_populates="snapshots")

    __table_args__ = (
        Index("ix_inventory_snapshot_sku", "sku"),
        CheckConstraint("quantity >= 0", name="ck_inventory_snapshot_quantity_positive"),
        CheckConstraint("estimated_cost >= 0", name="ck_inventory_snapshot_cost_positive"),
    )


class ChangeRecord(Base):
    """Day-over-day movement of one SKU between two snapshot dates.

    Absence of a row for (date, sku) means "no movement", not "unknown".
    Product attributes are denormalized at computation time.

    Attributes:
        id: Surrogate primary key.
        date: Date of the later snapshot.
        sku: Product SKU.
        yesterday_qty: Quantity on the previous snapshot date (0 if absent).
        today_qty: Quantity on this date (0 if absent).
        quantity_change: today_qty - yesterday_qty.
        absolute_change: |quantity_change| (always > 0).
        percent_change: "N/A" when yesterday_qty == 0, else e.g. "50.00%".
        change_type: "increase" or "decrease".
        estimated_cost: Today's cost, else previous cost, else 0.
        total_value: today_qty * estimated_cost.
    """

    __tablename__ = "daily_change"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    date: Mapped[datetime.date] = mapped_column(Date, index=True)
    sku: Mapped[str] = mapped_column(Text)
    title: Mapped[str] = mapped_column(Text, default="")
    upc: Mapped[str] = mapped_column(Text, default="")
    category1: Mapped[str] = mapped_column(Text, default="")
    category2: Mapped[str] = mapped_column(Text, default="")
    yesterday_qty: Mapped[int] = mapped_column(Integer)
    today_qty: Mapped[int] = mapped_column(Integer)
    quantity_change: Mapped[int] = mapped_column(Integer)
    absolute_change: Mapped[int] = mapped_column(Integer)
    percent_change: Mapped[str] = mapped_column(String(32))
    change_type: Mapped[str] = mapped_column(String(10))
    estimated_cost: Mapped[float] = mapped_column(Float, default=0.0)
    total_value: Mapped[float] = mapped_column(Float, default=0.0)
    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint("date", "sku", name="uq_daily_change_grain"),
        Index("ix_daily_change_date_abs", "date", "absolute_change"),
        CheckConstraint("absolute_change > 0", name="ck_daily_change_moved"),
        CheckConstraint(
            "change_type IN ('increase', 'decrease')",
            name="ck_daily_change_type",
        ),
    )


# ============================================================================
# DERIVED READ MODELS
# ============================================================================


class CurrentViewRow(Base):
    """Materialized current inventory view.

    Fully rebuilt from (snapshot@D, product, changes@D) for one explicit date D.
    Never patched incrementally. Every column usable for sorting or range
    filtering carries an index so paginated reads do not scan the table.
    """

    __tablename__ = "inventory_current"

    sku: Mapped[str] = mapped_column(Text, primary_key=True)
    title: Mapped[str] = mapped_column(Text, default="", index=True)
    upc: Mapped[str] = mapped_column(Text, default="", index=True)
    category1: Mapped[str] = mapped_column(Text, default="", index=True)
    category2: Mapped[str] = mapped_column(Text, default="", index=True)
    quantity: Mapped[int] = mapped_column(Integer, default=0, index=True)
    estimated_cost: Mapped[float] = mapped_column(Float, default=0.0, index=True)
    quantity_change: Mapped[int] = mapped_column(Integer, default=0, index=True)
    absolute_change: Mapped[int] = mapped_column(Integer, default=0, index=True)
    percent_change: Mapped[str] = mapped_column(String(32), default="N/A", index=True)
    last_updated: Mapped[datetime.date] = mapped_column(Date, index=True)


class DailyMetrics(Base):
    """Per-date summary statistics; recomputation overwrites the row.

    Attributes:
        date: Metrics date (primary key).
        total_products: Number of snapshot rows on the date.
        total_value: Sum of quantity * estimated_cost.
        out_of_stock: Count of quantity == 0.
        low_stock: Count of 0 < quantity <= configured threshold.
        increases: Count of change records with quantity_change > 0.
        decreases: Count of change records with quantity_change < 0.
        net_change_units: Sum of quantity_change.
        total_abs_change_units: Sum of absolute_change.
        total_abs_change_usd: Sum of absolute_change * estimated_cost.
        generated_at: When the row was last (re)computed.
    """

    __tablename__ = "metrics_daily"

    date: Mapped[datetime.date] = mapped_column(Date, primary_key=True)
    total_products: Mapped[int] = mapped_column(Integer, default=0)
    total_value: Mapped[float] = mapped_column(Float, default=0.0)
    out_of_stock: Mapped[int] = mapped_column(Integer, default=0)
    low_stock: Mapped[int] = mapped_column(Integer, default=0)
    increases: Mapped[int] = mapped_column(Integer, default=0)
    decreases: Mapped[int] = mapped_column(Integer, default=0)
    net_change_units: Mapped[int] = mapped_column(Integer, default=0)
    total_abs_change_units: Mapped[int] = mapped_column(Integer, default=0)
    total_abs_change_usd: Mapped[float] = mapped_column(Float, default=0.0)
    generated_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
