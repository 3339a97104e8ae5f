# python
"""Database engine and session utilities.

The engine and session factory are built by the application lifespan and kept
on ``app.state``; request handlers receive sessions through ``get_db``. Nothing
here opens a connection at import time.
"""
import os
from collections.abc import AsyncGenerator
from typing import Any

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from app.core.config import Settings
from models import Base


def resolve_database_url(settings: Settings) -> str:
    """Pick the database URL for the current process."""
    # For testing, prioritize TEST_DATABASE_URL
    if os.getenv("TESTING") == "true":
        db_url = os.getenv("TEST_DATABASE_URL") or settings.test_database_url
    else:
        db_url = settings.database_url

    db_url = (db_url or "").strip()
    if not db_url:
        raise RuntimeError(
            "DATABASE_URL is not configured. Set it in the environment or .env file "
            "(e.g., DATABASE_URL=postgresql+asyncpg://<user>:<pass>@<host>/<db>)."
        )
    return db_url


def build_engine(settings: Settings) -> AsyncEngine:
    """Create the async engine; pool options only apply to server databases."""
    db_url = resolve_database_url(settings)
    kwargs: dict[str, Any] = {"echo": settings.debug}
    if not db_url.startswith("sqlite"):
        kwargs.update(pool_size=settings.db_pool_size, max_overflow=settings.db_max_overflow)
    return create_async_engine(db_url, **kwargs)


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=engine, expire_on_commit=False)


async def create_tables(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, Any]:
    session_factory: async_sessionmaker[AsyncSession] = request.app.state.session_factory
    async with session_factory() as session:
        yield session
