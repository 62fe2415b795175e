"""Async engine and session factory helpers.

The application creates one engine per process in its lifespan hook and
stores the session factory on ``app.state``. Tests build their own engine
through :func:`create_engine_and_sessionmaker` against a temporary database.
"""

from __future__ import annotations

import logging

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from ..models import Base

logger = logging.getLogger(__name__)


def _enable_sqlite_foreign_keys(dbapi_conn, _record) -> None:  # pragma: no cover - driver hook
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys = ON")
    cursor.close()


def create_engine_and_sessionmaker(
    url: str,
) -> tuple[AsyncEngine, async_sessionmaker[AsyncSession]]:
    """Return an engine for ``url`` and a session factory bound to it.

    Sessions keep attributes loaded after commit so hydrated orders can be
    serialised outside the transaction that produced them.
    """

    kwargs: dict = {}
    if make_url(url).get_backend_name() == "sqlite":
        # let a writer wait for a concurrent transaction instead of failing
        kwargs["connect_args"] = {"timeout": 15}
    engine = create_async_engine(url, **kwargs)
    if engine.dialect.name == "sqlite":
        event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
    session_factory = async_sessionmaker(
        engine, expire_on_commit=False, class_=AsyncSession
    )
    return engine, session_factory


async def create_schema(engine: AsyncEngine) -> None:
    """Create all tables known to :data:`Base` if they are missing."""

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("database schema ensured")


__all__ = ["create_engine_and_sessionmaker", "create_schema"]
