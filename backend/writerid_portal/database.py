"""
WriterID Portal Backend — Database Session Management
======================================================

What:  Async SQLAlchemy engine, session factory, declarative base and the
       per-request session dependency.
How:   The session dependency commits on success and rolls back on error.
       Services that need intermediate states to be durable (the external
       executor reads them mid-request) commit explicitly through the
       UnitOfWork in repository.py.
When:  Engine is created at module import; sessions are created per-request.
"""

from typing import Any, AsyncGenerator, Dict

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from writerid_portal.config import settings


def engine_options(database_url: str) -> Dict[str, Any]:
    """
    Builds create_async_engine keyword arguments for a database URL.

    SQLite (used by the test-suite through aiosqlite) does not accept the
    QueuePool sizing options, so they are only applied to server databases.
    """
    options: Dict[str, Any] = {"echo": settings.log_level == "DEBUG"}
    if make_url(database_url).get_backend_name() != "sqlite":
        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=settings.db_pool_pre_ping,
            pool_recycle=3600,
        )
    return options


# ── Engine & Session Factory ──────────────────────────────────────────────
engine = create_async_engine(settings.database_url, **engine_options(settings.database_url))

# expire_on_commit=False: services commit mid-flow and keep using the entity
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Base class for all ORM models; its metadata drives Alembic."""
    pass


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    1. Creates a new session from the factory
    2. Yields it to the handler
    3. On success: commits whatever the handler left pending
    4. On error: rolls back and re-raises for the global error handlers
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


async def dispose_engine() -> None:
    """Closes all pooled connections; called from the app lifespan on shutdown."""
    await engine.dispose()
