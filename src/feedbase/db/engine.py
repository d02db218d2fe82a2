"""Async SQLAlchemy engine and session factory.

One pooled engine per process, built from FEEDBASE_DATABASE_URL. Route
handlers never open sessions themselves: they depend on get_db(), which
tests override to point at an in-memory SQLite database.
"""

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from feedbase.config import settings

# Pool: 5 connections, up to 20 under burst.
engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    pool_size=5,
    max_overflow=15,
    pool_pre_ping=True,
)

# Rows outlive the commit so SqlStore converters can read them afterwards.
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db() -> AsyncSession:
    """FastAPI dependency: one session per request, closed afterwards."""
    async with async_session_factory() as session:
        try:
            yield session
        finally:
            await session.close()
