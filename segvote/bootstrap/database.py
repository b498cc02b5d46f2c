"""Database session factory bootstrap (SQLAlchemy async).

Environment Variables:
- DATABASE_URL: Connection string. postgres:// and postgresql:// URLs are
  rewritten to use asyncpg; URLs that already name a driver
  (e.g. sqlite+aiosqlite://) are used as given.
- SQLALCHEMY_ECHO: Log SQL statements when "1", "true" or "yes".

Usage:
    from segvote.bootstrap.database import get_session_factory

    session_factory = get_session_factory()
    async with session_factory() as session:
        ...
"""

from __future__ import annotations

import os

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from structlog import get_logger

from segvote.infrastructure.adapters.persistence.schema import metadata

logger = get_logger()

_session_factory: async_sessionmaker[AsyncSession] | None = None
_engine: AsyncEngine | None = None


def is_database_configured() -> bool:
    return bool(os.environ.get("DATABASE_URL"))


def get_database_url() -> str:
    """Get the async connection URL from the environment.

    Returns:
        SQLAlchemy async URL string.

    Raises:
        ValueError: If DATABASE_URL is not set.
    """
    url = os.environ.get("DATABASE_URL")
    if not url:
        raise ValueError(
            "DATABASE_URL environment variable not set. "
            "Required for the SQL vote store."
        )

    if url.startswith("postgresql://"):
        url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
    elif url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql+asyncpg://", 1)
    elif "://" not in url:
        url = f"postgresql+asyncpg://{url}"

    return url


def _mask_password(url: str) -> str:
    if "@" not in url:
        return url
    before_at, after_at = url.split("@", 1)
    scheme, _, credentials = before_at.partition("://")
    if ":" not in credentials:
        return url
    user = credentials.split(":", 1)[0]
    return f"{scheme}://{user}:***@{after_at}"


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Get the singleton SQLAlchemy async session factory.

    Raises:
        ValueError: If DATABASE_URL is not configured.
    """
    global _session_factory, _engine

    if _session_factory is None:
        log = logger.bind(component="database_bootstrap")
        url = get_database_url()
        log.info("creating_database_engine", url=_mask_password(url))

        _engine = create_async_engine(
            url,
            echo=os.environ.get("SQLALCHEMY_ECHO", "").lower() in ("1", "true", "yes"),
            pool_pre_ping=True,
        )
        _session_factory = async_sessionmaker(
            bind=_engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
        log.info("database_session_factory_created")

    return _session_factory


async def create_schema() -> None:
    """Create any missing vote store tables (development databases)."""
    get_session_factory()
    if _engine is None:
        raise RuntimeError("database engine was not created")
    async with _engine.begin() as conn:
        await conn.run_sync(metadata.create_all)
    logger.info("database_schema_created")


def reset_database_bootstrap() -> None:
    """Reset database singleton for testing."""
    global _session_factory, _engine
    _session_factory = None
    _engine = None


async def close_database_engine() -> None:
    """Close the database engine (for graceful shutdown)."""
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _session_factory = None
