"""Async SQLAlchemy engine and session helpers.

Provides a configured async engine, the sessionmaker injected into the
credential store and token ledger, and a helper to create the tables on
startup.
"""

from config.config import settings
from core.logging import logger
from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def _enable_sqlite_foreign_keys(engine: Engine) -> None:
    """Turn on FK enforcement for SQLite so ON DELETE CASCADE applies."""

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def build_engine(url: str, **kwargs) -> AsyncEngine:
    """Create an async engine, applying SQLite specific connection setup.

    Args:
        url: Async database URL (``postgresql+asyncpg://`` or
            ``sqlite+aiosqlite://``).
        **kwargs: Extra keyword arguments for ``create_async_engine``.

    Returns:
        AsyncEngine: The configured engine.
    """
    async_engine = create_async_engine(url, **kwargs)
    if async_engine.url.get_backend_name() == "sqlite":
        _enable_sqlite_foreign_keys(async_engine.sync_engine)
    return async_engine


def build_sessionmaker(async_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        async_engine, class_=AsyncSession, expire_on_commit=False
    )


engine = build_engine(
    settings.DATABASE_URL_ASYNC, echo=settings.DB_ECHO, pool_pre_ping=True
)

AsyncSessionLocal = build_sessionmaker(engine)


async def initialize_database(async_engine: AsyncEngine = engine):
    """Create all metadata tables defined on the declarative `Base`.

    Raises:
        Exception: Re-raises any exception encountered while initializing.
    """

    # NOTE: Models register themselves on Base at import time.
    import models.auth  # noqa: F401

    logger.info("Initializing database tables")
    async with async_engine.begin() as conn:
        try:
            await conn.run_sync(Base.metadata.create_all)
            logger.info("Database initialization complete")
        except Exception:
            logger.exception("Database initialization failed")
            raise
