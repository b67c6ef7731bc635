"""
Database Connection Management

This module provides async database connectivity using SQLAlchemy's async engine.
It establishes connection pooling with health checks and provides a dependency
injection function for FastAPI routes to obtain database sessions.

The session factory is also handed to the auth store, which opens a session per
operation so background work (sign-out cleanup) never shares one with a request.
"""

from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from blogsite.core.config import get_settings

settings = get_settings()

engine = create_async_engine(
    settings.database_url,
    echo=False,
    pool_pre_ping=True,
)

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False
)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Provide async database session for dependency injection."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
