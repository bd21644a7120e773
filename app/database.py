"""
OP-Blog API: Database Session Management
========================================

What:  Async SQLAlchemy engine, session factory, FastAPI dependency and the
       startup connectivity check.
How:   One engine per process. Sessions are created per request and commit on
       success or roll back on error.

Connection Pooling:
    PostgreSQL (asyncpg): pooled, sized from settings, pre-ping enabled,
    connections recycled hourly.
    SQLite (aiosqlite, tests and local runs): NullPool, and every transaction
    starts with BEGIN IMMEDIATE so concurrent writers wait on the busy
    timeout instead of failing with "database is locked".
"""

import logging
from typing import Any, AsyncGenerator, Dict

from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import NullPool
from tenacity import (
    before_sleep_log,
    retry,
    stop_after_attempt,
    wait_exponential_jitter,
)

from app.config import settings

logger = logging.getLogger(__name__)


def _is_sqlite(url: str) -> bool:
    return url.startswith("sqlite")


def _engine_options(url: str) -> Dict[str, Any]:
    if _is_sqlite(url):
        return {"poolclass": NullPool}
    return {
        "pool_size": settings.db_pool_size,
        "max_overflow": settings.db_max_overflow,
        "pool_pre_ping": settings.db_pool_pre_ping,
        "pool_recycle": 3600,
    }


def _install_sqlite_transaction_hooks(async_engine: AsyncEngine) -> None:
    """Take the write lock at BEGIN; the driver's implicit BEGIN is disabled."""

    @event.listens_for(async_engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(async_engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


engine = create_async_engine(
    settings.database_url,
    echo=settings.log_level == "DEBUG",
    **_engine_options(settings.database_url),
)

if _is_sqlite(settings.database_url):
    _install_sqlite_transaction_hooks(engine)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Base class for all ORM models; its metadata drives Alembic."""
    pass


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    1. Creates a new session from the factory
    2. Yields it to the route handler
    3. On success: commits the transaction
    4. On error: rolls back and re-raises for the global handlers
    5. Always: closes the session (returns connection to pool)

    Services that must persist work before a failing outbound call (mail)
    commit explicitly; the final commit here is then a no-op.
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


@retry(
    stop=stop_after_attempt(settings.db_connect_attempts),
    wait=wait_exponential_jitter(initial=1, max=settings.db_connect_max_wait, jitter=1),
    before_sleep=before_sleep_log(logger, logging.WARNING),
    reraise=True,
)
async def wait_for_database() -> None:
    """
    Blocks startup until `SELECT 1` succeeds.

    Containers often start before the database accepts connections; the
    retry only runs in the lifespan, never inside a request.
    """
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
    logger.info("Database connection established")


async def dispose_engine() -> None:
    """Closes all pooled connections; called during application shutdown."""
    await engine.dispose()
    logger.info("Database engine disposed")
