"""
Database session configuration.

This module handles database engine creation and session management
using SQLAlchemy with async support for PostgreSQL.

The engine and session factory are built once in the application lifespan
and stored on ``app.state``; request handlers reach them through the
``get_db`` and ``get_session_factory`` dependencies.
"""

from typing import AsyncIterator

from fastapi import Request
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import declarative_base

from driveway_hub.app.core.config import Settings

# Create declarative base for models
Base = declarative_base()


def build_engine(settings: Settings) -> AsyncEngine:
    """Create the async engine from settings."""
    return create_async_engine(
        settings.database_url,
        echo=settings.db_echo,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        future=True,
    )


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    """Create the async session factory bound to ``engine``."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


def get_session_factory(request: Request) -> async_sessionmaker:
    """
    FastAPI dependency returning the session factory.

    Used by background work that outlives the request-scoped session.
    """
    return request.app.state.session_factory


async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    """
    FastAPI dependency for database sessions.

    Yields an async database session and ensures it's properly closed.
    """
    async with request.app.state.session_factory() as session:
        try:
            yield session
        finally:
            await session.close()
