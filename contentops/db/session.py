# contentops/db/session.py
from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from contentops.core.config import DATABASE_URL, SQL_ECHO

logger = logging.getLogger("contentops.db")


def make_engine(url: Optional[str] = None) -> AsyncEngine:
    """
    Build the async engine for the given URL (defaults to DATABASE_URL).
    SQLite connections get foreign keys switched on so the ON DELETE
    rules on assignments apply.
    """
    engine = create_async_engine(
        url or DATABASE_URL,
        echo=SQL_ECHO,
        pool_pre_ping=True,
    )

    if engine.url.get_backend_name() == "sqlite":

        @event.listens_for(engine.sync_engine, "connect")
        def enable_sqlite_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON;")
            cursor.close()

    logger.debug("engine created for backend=%s", engine.url.get_backend_name())
    return engine


def make_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        autoflush=False,
        expire_on_commit=False,
    )


engine = make_engine()
SessionLocal = make_session_factory(engine)


async def create_all(bind: Optional[AsyncEngine] = None) -> None:
    """Create every table known to Base.metadata (dev / tests only)."""
    from contentops.db.base import Base
    import contentops.models  # noqa: F401  (populate metadata)

    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
