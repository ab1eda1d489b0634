"""Persistence: async engine, session factory, and Base for SQLAlchemy ORM.

For Postgres the schema is managed by Alembic migrations; for SQLite
(local development and tests) create_all() builds it from the models.

Engine and session factory are created lazily on first use (get_db /
get_db_transactional) so import does not trigger Settings validation.
"""

import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Any

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

from app.core.config import get_settings

logger = logging.getLogger(__name__)

AFTER_COMMIT_KEY = "after_commit"

# Set by _ensure_engine() on first use; avoids get_settings() at import time.
engine: Any = None
AsyncSessionLocal: async_sessionmaker[AsyncSession] | None = None


def _enable_sqlite_savepoints(sqlite_engine: AsyncEngine) -> None:
    """Let SQLAlchemy emit BEGIN itself so SAVEPOINT / RELEASE nest correctly.

    The sqlite3 driver otherwise opens transactions implicitly and a
    RELEASE of the outermost savepoint commits the whole transaction.
    """

    @event.listens_for(sqlite_engine.sync_engine, "connect")
    def _on_connect(dbapi_connection: Any, connection_record: Any) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(sqlite_engine.sync_engine, "begin")
    def _on_begin(conn: Any) -> None:
        conn.exec_driver_sql("BEGIN")


def build_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """Create an async engine with driver-appropriate pool settings.

    SQLite in-memory databases use a StaticPool so every session shares
    the one connection that holds the schema.
    """
    if database_url.startswith("sqlite"):
        sqlite_engine = create_async_engine(
            database_url,
            echo=echo,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        _enable_sqlite_savepoints(sqlite_engine)
        return sqlite_engine
    settings = get_settings()
    pool_size = settings.db_pool_size if settings.db_pool_size is not None else 10
    max_overflow = (
        settings.db_max_overflow if settings.db_max_overflow is not None else 20
    )
    command_timeout = (
        settings.db_command_timeout
        if settings.db_command_timeout is not None
        else 30
    )
    connect_args: dict[str, Any] = {}
    if "postgresql" in database_url:
        connect_args["command_timeout"] = command_timeout
    return create_async_engine(
        database_url,
        echo=echo,
        pool_pre_ping=True,
        pool_size=pool_size,
        max_overflow=max_overflow,
        pool_recycle=3600,
        connect_args=connect_args,
    )


def build_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory used by request dependencies and background stores."""
    return async_sessionmaker(
        bind=bind,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
        autocommit=False,
    )


def _ensure_engine() -> None:
    """Create engine and AsyncSessionLocal on first use."""
    global engine, AsyncSessionLocal
    if AsyncSessionLocal is not None:
        return
    settings = get_settings()
    engine = build_engine(settings.database_url, echo=settings.database_echo)
    AsyncSessionLocal = build_session_factory(engine)
    logger.info("Database engine created (%s)", engine.dialect.name)


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Return the process-wide session factory, creating it on first use."""
    _ensure_engine()
    assert AsyncSessionLocal is not None
    return AsyncSessionLocal


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy declarative models."""


async def create_all(bind: AsyncEngine | None = None) -> None:
    """Create all tables from the models (SQLite / local development)."""
    import app.infrastructure.persistence.models  # noqa: F401  (register models)

    if bind is None:
        _ensure_engine()
        bind = engine
    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


def on_commit(session: AsyncSession, callback: Callable[[], Awaitable[None]]) -> None:
    """Queue callback to run once get_db_transactional has committed session.

    Dropped when the transaction rolls back. Sessions not opened by
    get_db_transactional never run their queue.
    """
    session.info.setdefault(AFTER_COMMIT_KEY, []).append(callback)


async def get_db() -> AsyncIterator[AsyncSession]:
    """Database session dependency for read operations.

    Does not commit; use get_db_transactional for writes.
    Yields a session and closes it on exit.
    """
    factory = get_session_factory()
    async with factory() as session:
        yield session


async def get_db_transactional() -> AsyncIterator[AsyncSession]:
    """Database session dependency for write operations.

    Begins a transaction, commits on success, rolls back on exception.
    Use for POST, PUT, PATCH, DELETE endpoints. Callbacks queued with
    on_commit run after a successful commit.
    """
    factory = get_session_factory()
    async with factory() as session:
        async with session.begin():
            yield session
        for callback in session.info.pop(AFTER_COMMIT_KEY, []):
            await callback()
