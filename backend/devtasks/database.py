"""
DevTasks Backend - Database Session Management
===============================================

What:  Async SQLAlchemy engine, session factory, FastAPI dependency and
       startup helpers.
How:   Creates an async engine with connection pooling, provides a session
       dependency that auto-commits on success and auto-rolls-back on error.
Who:   Used by route handlers via FastAPI's dependency injection system and
       by the application lifespan.
When:  Engine is created at module import; sessions are created per-request.

Startup:
    verify_connection(): pings the database, retried with exponential
                         backoff + jitter (tenacity) while it comes up.
    ensure_schema():     best-effort CREATE TABLE IF NOT EXISTS for every
                         model. Failures are logged, not raised; Alembic
                         migrations remain the authoritative schema path.
"""

import logging
from typing import Any, AsyncGenerator, Dict

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from devtasks.config import settings

logger = logging.getLogger(__name__)


def _engine_options(url: str) -> Dict[str, Any]:
    """Pool sizing applies to server databases only; SQLite manages its own pool."""
    options: Dict[str, Any] = {"echo": settings.log_level == "DEBUG"}
    if not url.startswith("sqlite"):
        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=settings.db_pool_pre_ping,
            pool_recycle=3600,
        )
    return options


engine = create_async_engine(settings.database_url, **_engine_options(settings.database_url))

# expire_on_commit=False: attributes stay readable after the request commits
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Registers every model with a shared metadata object, which Alembic and
    ensure_schema() read.
    """
    pass


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Creates a new session from the factory
        2. Yields it to the route handler and its gates
        3. On success: commits the transaction
        4. On error: rolls back and re-raises for the global error handler
        5. Always: closes the session (returns connection to pool)
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
    retry=retry_if_exception_type((ConnectionError, OSError, TimeoutError)),
    stop=stop_after_attempt(settings.db_connect_attempts),
    wait=wait_exponential_jitter(
        initial=settings.db_connect_min_wait,
        max=settings.db_connect_max_wait,
        jitter=1,
    ),
    before_sleep=before_sleep_log(logger, logging.WARNING),
    reraise=True,
)
async def verify_connection() -> None:
    """
    What:  Executes SELECT 1 against the configured database.
    When:  Application startup, before the server reports ready.
    How:   Connection-level failures are retried (see decorator); the last
           failure is re-raised once attempts are exhausted.
    """
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
    logger.info("Database connection verified")


async def ensure_schema() -> bool:
    """
    Create any missing tables. Returns False (and logs) on failure.

    The application can still serve requests against a schema that was
    provisioned by migrations, so a failure here is not fatal.
    """
    # Model modules must be imported so their tables register on Base.metadata
    from devtasks import models  # noqa: F401

    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    except Exception as exc:
        logger.error("Failed to ensure database schema: %s", exc)
        return False
    logger.info("Database schema ensured (%d tables)", len(Base.metadata.tables))
    return True


async def dispose_engine() -> None:
    """Closes all pooled connections. Called on application shutdown."""
    await engine.dispose()
