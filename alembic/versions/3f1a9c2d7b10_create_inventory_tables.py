"""create_inventory_tables

Revision ID: 3f1a9c2d7b10
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "3f1a9c2d7b10"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

CURRENT_VIEW_INDEXED_COLUMNS = (
    "title",
    "upc",
    "category1",
    "category2",
    "quantity",
    "estimated_cost",
    "quantity_change",
    "absolute_change",
    "percent_change",
    "last_updated",
)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    """Apply migration - create snapshot store, derived tables and job table."""
    # Product master
    op.create_table(
        "product",
        sa.Column("sku", sa.Text(), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("upc", sa.Text(), nullable=True),
        sa.Column("category1", sa.Text(), nullable=True),
        sa.Column("category2", sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("sku"),
    )

    # Per-date snapshots
    op.create_table(
        "inventory_snapshot",
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("sku", sa.Text(), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("estimated_cost", sa.Float(), nullable=False),
        sa.ForeignKeyConstraint(["sku"], ["product.sku"]),
        sa.PrimaryKeyConstraint("date", "sku"),
        sa.CheckConstraint("quantity >= 0", name="ck_inventory_snapshot_quantity_positive"),
        sa.CheckConstraint("estimated_cost >= 0", name="ck_inventory_snapshot_cost_positive"),
    )
    op.create_index("ix_inventory_snapshot_sku", "inventory_snapshot", ["sku"])

    # Day-over-day changes
    op.create_table(
        "daily_change",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("sku", sa.Text(), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("upc", sa.Text(), nullable=False),
        sa.Column("category1", sa.Text(), nullable=False),
        sa.Column("category2", sa.Text(), nullable=False),
        sa.Column("yesterday_qty", sa.Integer(), nullable=False),
        sa.Column("today_qty", sa.Integer(), nullable=False),
        sa.Column("quantity_change", sa.Integer(), nullable=False),
        sa.Column("absolute_change", sa.Integer(), nullable=False),
        sa.Column("percent_change", sa.String(length=32), nullable=False),
        sa.Column("change_type", sa.String(length=10), nullable=False),
        sa.Column("estimated_cost", sa.Float(), nullable=False),
        sa.Column("total_value", sa.Float(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("date", "sku", name="uq_daily_change_grain"),
        sa.CheckConstraint("absolute_change > 0", name="ck_daily_change_moved"),
        sa.CheckConstraint(
            "change_type IN ('increase', 'decrease')",
            name="ck_daily_change_type",
        ),
    )
    op.create_index("ix_daily_change_date", "daily_change", ["date"])
    op.create_index("ix_daily_change_date_abs", "daily_change", ["date", "absolute_change"])

    # Materialized current view
    op.create_table(
        "inventory_current",
        sa.Column("sku", sa.Text(), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("upc", sa.Text(), nullable=False),
        sa.Column("category1", sa.Text(), nullable=False),
        sa.Column("category2", sa.Text(), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("estimated_cost", sa.Float(), nullable=False),
        sa.Column("quantity_change", sa.Integer(), nullable=False),
        sa.Column("absolute_change", sa.Integer(), nullable=False),
        sa.Column("percent_change", sa.String(length=32), nullable=False),
        sa.Column("last_updated", sa.Date(), nullable=False),
        sa.PrimaryKeyConstraint("sku"),
    )
    for column in CURRENT_VIEW_INDEXED_COLUMNS:
        op.create_index(f"ix_inventory_current_{column}", "inventory_current", [column])

    # Daily metrics
    op.create_table(
        "metrics_daily",
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("total_products", sa.Integer(), nullable=False),
        sa.Column("total_value", sa.Float(), nullable=False),
        sa.Column("out_of_stock", sa.Integer(), nullable=False),
        sa.Column("low_stock", sa.Integer(), nullable=False),
        sa.Column("increases", sa.Integer(), nullable=False),
        sa.Column("decreases", sa.Integer(), nullable=False),
        sa.Column("net_change_units", sa.Integer(), nullable=False),
        sa.Column("total_abs_change_units", sa.Integer(), nullable=False),
        sa.Column("total_abs_change_usd", sa.Float(), nullable=False),
        sa.Column(
            "generated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("date"),
    )

    # Background jobs
    op.create_table(
        "job",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("job_id", sa.String(length=32), nullable=False),
        sa.Column("job_type", sa.String(length=20), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("params", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("result", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("error_message", sa.String(length=2000), nullable=True),
        sa.Column("error_type", sa.String(length=100), nullable=True),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "status IN ('pending', 'running', 'completed', 'failed')",
            name="ck_job_valid_status",
        ),
        sa.CheckConstraint(
            "job_type IN ('ingest', 'compute_deltas', 'refresh_view', "
            "'compute_metrics', 'rebuild', 'retention')",
            name="ck_job_valid_type",
        ),
    )
    op.create_index("ix_job_job_id", "job", ["job_id"], unique=True)
    op.create_index("ix_job_job_type", "job", ["job_type"])
    op.create_index("ix_job_status", "job", ["status"])
    op.create_index("ix_job_type_status", "job", ["job_type", "status"])


def downgrade() -> None:
    """Revert migration - drop all inventory tables."""
    op.drop_table("job")
    op.drop_table("metrics_daily")
    op.drop_table("inventory_current")
    op.drop_table("daily_change")
    op.drop_table("inventory_snapshot")
    op.drop_table("product")
