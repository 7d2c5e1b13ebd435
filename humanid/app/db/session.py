# humanid/app/db/session.py
"""
Async database session management for SQLAlchemy.

- aiosqlite for local development and tests
- asyncpg for PostgreSQL
- SQLite gets NullPool and a busy timeout so concurrent writers queue
  instead of failing
"""
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool, AsyncAdaptedQueuePool

from humanid.app.core.config import Settings, get_settings


def create_engine_from_settings(settings: Settings) -> AsyncEngine:
    """
    Create and configure the async SQLAlchemy engine.

    SQLite:
    - NullPool, one connection per session
    - check_same_thread=False for async compatibility

    PostgreSQL:
    - pool_size=5, max_overflow=10
    - pool_pre_ping=True to drop stale connections
    - pool_recycle=300
    """
    if settings.is_sqlite:
        return create_async_engine(
            settings.DATABASE_URL,
            echo=settings.DATABASE_ECHO,
            poolclass=NullPool,
            connect_args={"check_same_thread": False, "timeout": 15},
        )

    return create_async_engine(
        settings.DATABASE_URL,
        echo=settings.DATABASE_ECHO,
        poolclass=AsyncAdaptedQueuePool,
        pool_size=5,
        max_overflow=10,
        pool_pre_ping=True,
        pool_recycle=300,
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """
    expire_on_commit=False: attributes stay readable after commit
    autoflush=False: writes happen where the services flush or commit
    """
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


# ─────────────────────────────────────────────────────────────────────────────
# Process-wide engine, created once at import and reused across requests.
# Connections are only opened on first use.
# ─────────────────────────────────────────────────────────────────────────────
engine: AsyncEngine = create_engine_from_settings(get_settings())
AsyncSessionLocal: async_sessionmaker[AsyncSession] = create_session_factory(engine)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency generator for database sessions.

    One session per request. Nothing is committed implicitly: services commit
    their own unit of work and roll back on failure.
    """
    async with AsyncSessionLocal() as session:
        yield session
