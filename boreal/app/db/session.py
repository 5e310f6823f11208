"""
Database session configuration.

This module builds the async SQLAlchemy engine and session factory.
Both are created explicitly at application startup and handed to the
components that need them; nothing here opens a connection at import time.
"""

from fastapi import Request
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import declarative_base

from boreal.app.core.config import Settings

# Create declarative base for models
Base = declarative_base()


def create_db_engine(settings: Settings) -> AsyncEngine:
    """
    Create the async engine for the configured database.

    Pool sizing only applies to server databases; SQLite uses its own pool.
    """
    engine_kwargs = {"echo": settings.db_echo, "future": True}
    if not settings.database_url.startswith("sqlite"):
        engine_kwargs["pool_size"] = settings.db_pool_size
        engine_kwargs["max_overflow"] = settings.db_max_overflow
    return create_async_engine(settings.database_url, **engine_kwargs)


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    """Create the session factory bound to an engine."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


def get_session_factory(request: Request) -> async_sessionmaker:
    """
    FastAPI dependency returning the session factory stored on app state.

    Background jobs that manage their own transactions (the accrual run)
    take the factory instead of a single session.
    """
    return request.app.state.session_factory


async def get_db(request: Request):
    """
    FastAPI dependency for database sessions.

    Yields an async database session and ensures it's properly closed.
    """
    session_factory = request.app.state.session_factory
    async with session_factory() as session:
        try:
            yield session
        finally:
            await session.close()
