"""Postgres connectivity for the progress store.

DATABASE_URL (postgresql+asyncpg://...) switches the service from the
in-memory repositories to Postgres.  Sessions are opened per request by
lms.api.dependencies.get_repos; this module only owns the engine.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from lms.core.config import SETTINGS

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Metadata root for lms.db.tables (and Alembic autogenerate)."""


def _build_engine(url: str) -> AsyncEngine:
    # pre_ping: a connection dropped by a DB failover is replaced, not
    # handed to a progress write.
    return create_async_engine(url, pool_size=5, max_overflow=10, pool_pre_ping=True)


engine: AsyncEngine | None = (
    _build_engine(SETTINGS.database_url) if SETTINGS.database_url else None
)
async_session_factory: async_sessionmaker[AsyncSession] | None = (
    async_sessionmaker(engine, expire_on_commit=False) if engine is not None else None
)


@asynccontextmanager
async def lifespan_db():
    """Probe the database at startup and dispose the pool at shutdown.

    A failed probe is logged, not raised: /ready reports the outage and
    the pool reconnects once Postgres is back.
    """
    if engine is None:
        logger.info("DATABASE_URL not set, progress is kept in memory")
        yield
        return

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        logger.info("Connected to database %s", engine.url.render_as_string())
    except (SQLAlchemyError, OSError):
        logger.exception("Database unreachable at startup")

    try:
        yield
    finally:
        await engine.dispose()
        logger.info("Database pool disposed")
