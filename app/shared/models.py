"""Shared SQLAlchemy model mixins."""

from datetime import datetime

from sqlalchemy import DateTime, func
from sqlalchemy.orm import Mapped, mapped_column


class TimestampMixin:
    """Row creation and last-modification times, set by the database.

    Used by ``product`` (touched on every upsert) and ``job`` (status updates).
    Upserts built with ``INSERT ... ON CONFLICT`` bypass ``onupdate`` and must
    set ``updated_at`` themselves.
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
