from typing import AsyncIterator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from app.core.config import settings


# ---------------------------------------------------------------------
# Database engine
# ---------------------------------------------------------------------

# Shared by the request handlers and the background refresh scheduler.
engine: AsyncEngine = create_async_engine(
    settings.database_url,
    pool_pre_ping=True,  # Validates connections before using them
)


# ---------------------------------------------------------------------
# Database session factory
# ---------------------------------------------------------------------

# `expire_on_commit=False` keeps station attributes readable after the
# snapshot commit, so refresh outcomes can be built from the same objects.
AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


# ---------------------------------------------------------------------
# Dependency injection
# ---------------------------------------------------------------------

async def get_db() -> AsyncIterator[AsyncSession]:
    """
    FastAPI dependency that provides an asynchronous database session.

    A new `AsyncSession` is created for each request and automatically
    closed once the request lifecycle ends.
    """
    async with AsyncSessionLocal() as session:
        yield session
