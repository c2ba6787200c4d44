"""Async SQLAlchemy 2.0 database setup and transaction scoping.

Services never open connections on their own. They receive an ``AsyncSession``
from one of the two scopes exposed by :class:`Storage`:

- ``transaction()``: exclusive writer scope (ingest, deltas, view refresh,
  metrics, retention). One session, one transaction, commit or full rollback.
- ``snapshot()``: read scope. Several statements issued inside it observe one
  consistent state of the store.
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from functools import lru_cache
from typing import Any

from sqlalchemy import text
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from app.core.config import get_settings
from app.core.exceptions import TransactionError
from app.core.logging import get_logger

logger = get_logger(__name__)

# Key for pg_advisory_xact_lock; serializes writers sharing one database
WRITER_LOCK_KEY = 7301001


class Base(DeclarativeBase):
    """SQLAlchemy declarative base for all models."""

    pass


@lru_cache
def get_engine() -> AsyncEngine:
    """Create async engine from settings (cached per process)."""
    settings = get_settings()
    engine: AsyncEngine = create_async_engine(
        settings.database_url,
        echo=settings.debug,
        pool_pre_ping=True,
    )
    return engine


class Storage:
    """Explicit storage handle with begin/commit/rollback scoping.

    Mutating scopes are mutually exclusive within the process (asyncio lock)
    and, on PostgreSQL, across connections (transaction-scoped advisory lock).
    Read scopes never take the writer lock and may run concurrently.
    """

    def __init__(self, engine: AsyncEngine) -> None:
        """Initialize storage around an engine.

        Args:
            engine: Async engine bound to the inventory database.
        """
        self.engine = engine
        self._session_maker = async_sessionmaker(
            engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
        read_engine = engine
        if engine.dialect.name == "postgresql":
            read_engine = engine.execution_options(isolation_level="REPEATABLE READ")
        self._read_session_maker = async_sessionmaker(
            read_engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
        self._write_lock = asyncio.Lock()

    @property
    def dialect_name(self) -> str:
        """Name of the underlying SQL dialect."""
        return self.engine.dialect.name

    @asynccontextmanager
    async def transaction(self, operation: str) -> AsyncIterator[AsyncSession]:
        """Open an exclusive write transaction.

        Commits when the block exits normally. Any exception rolls back every
        statement issued in the block. SQLAlchemy errors are surfaced as
        ``TransactionError``; application errors propagate unchanged.

        Args:
            operation: Name of the operation (used in logs and error details).

        Yields:
            Session bound to the open transaction.

        Raises:
            TransactionError: If the database fails mid-operation or on commit.
        """
        async with self._write_lock:
            async with self._session_maker() as session:
                try:
                    async with session.begin():
                        if self.dialect_name == "postgresql":
                            await session.execute(
                                text("SELECT pg_advisory_xact_lock(:key)"),
                                {"key": WRITER_LOCK_KEY},
                            )
                        yield session
                except SQLAlchemyError as e:
                    logger.error(
                        "storage.transaction_rolled_back",
                        operation=operation,
                        error=str(e),
                        error_type=type(e).__name__,
                    )
                    raise TransactionError(
                        message=f"Operation '{operation}' failed and was rolled back",
                        details={"operation": operation, "error": str(e)},
                    ) from e

    @asynccontextmanager
    async def snapshot(self) -> AsyncIterator[AsyncSession]:
        """Open a read-only transaction over one consistent view of the store.

        Closing the session ends the transaction and releases the connection.
        Loaded objects are detached but keep their state, so routes may build
        response models after the block exits.

        Yields:
            Session bound to the read transaction.
        """
        async with self._read_session_maker() as session:
            yield session

    async def create_all(self) -> None:
        """Create all tables (used by tests and local bootstrapping)."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        """Dispose of the engine connection pool."""
        await self.engine.dispose()


@lru_cache
def get_storage() -> Storage:
    """Dependency returning the process-wide storage handle."""
    return Storage(get_engine())


def upsert_insert(session: AsyncSession, model: type[Base]) -> Any:
    """Build a dialect-specific INSERT supporting ``on_conflict_do_update``.

    Args:
        session: Session whose bind determines the dialect.
        model: ORM model to insert into.

    Returns:
        PostgreSQL or SQLite ``Insert`` construct for the model.
    """
    bind = session.bind
    dialect_name = bind.dialect.name if bind is not None else "postgresql"
    if dialect_name == "sqlite":
        return sqlite_insert(model)
    return pg_insert(model)
