"""
Database connection and session management.
Uses SQLAlchemy async with aiosqlite.
"""

import logging

from fastapi import Depends
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import Pool
from typing import AsyncGenerator, Optional, Type

from .config import settings


logger = logging.getLogger(__name__)


def build_engine(database_url: str, poolclass: Optional[Type[Pool]] = None) -> AsyncEngine:
    """Create an async engine.

    File databases get a connection per session from the default pool. Pass
    ``poolclass=StaticPool`` for a private in-memory database, where every
    session shares one connection; that only holds up when sessions do not
    interleave, so keep it to tests.
    """
    kwargs = {"echo": False, "future": True}
    in_memory = database_url.startswith("sqlite") and ":memory:" in database_url
    if poolclass is not None:
        kwargs["poolclass"] = poolclass
    if in_memory:
        kwargs["connect_args"] = {"check_same_thread": False}
        if poolclass is None:
            logger.warning(
                "In-memory database %s shares one connection; concurrent requests can lose writes",
                database_url
            )

    engine = create_async_engine(database_url, **kwargs)

    if database_url.startswith("sqlite"):
        @event.listens_for(engine.sync_engine, "connect")
        def set_sqlite_pragma(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            if not in_memory:
                # WAL mode for better concurrency
                cursor.execute("PRAGMA journal_mode=WAL")
                cursor.execute("PRAGMA synchronous=NORMAL")
            # Store temp tables in memory
            cursor.execute("PRAGMA temp_store=MEMORY")
            # Busy timeout - writers queue for up to 5 seconds
            cursor.execute("PRAGMA busy_timeout=5000")
            cursor.close()

    return engine


def build_session_factory(bind: AsyncEngine) -> async_sessionmaker:
    """Session factory shared by request handlers and the chat relay."""
    return async_sessionmaker(
        bind,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False
    )


# Create async engine
engine = build_engine(settings.DATABASE_URL)

# Create async session factory
AsyncSessionLocal = build_session_factory(engine)


class Base(DeclarativeBase):
    """Base class for all database models."""
    pass


def get_session_factory() -> async_sessionmaker:
    """Dependency returning the session factory.

    The streaming relay outlives the request dependency scope, so it opens its
    own sessions from this factory instead of reusing the request session.
    """
    return AsyncSessionLocal


async def get_db(
    session_factory: async_sessionmaker = Depends(get_session_factory)
) -> AsyncGenerator[AsyncSession, None]:
    """Dependency to get database session."""
    async with session_factory() as session:
        try:
            yield session
        finally:
            await session.close()


async def init_db(bind: AsyncEngine = engine):
    """Initialize database tables."""
    # Register every model on the metadata before create_all
    from . import models  # noqa: F401

    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db(bind: AsyncEngine = engine):
    """Close database connections."""
    await bind.dispose()
