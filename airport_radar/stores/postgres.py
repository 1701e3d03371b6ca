"""SQL database handle with async SQLAlchemy.

Handles:
- Engine and session factory lifecycle
- Session context manager with commit/rollback
- Table creation for development and tests

PostgreSQL (asyncpg) in production; any async SQLAlchemy URL works, which is
how the tests run against sqlite+aiosqlite.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from airport_radar.settings import Settings


class Base(DeclarativeBase):
    """Base class for SQLAlchemy models."""

    pass


class Database:
    """Owns one engine and its session factory."""

    def __init__(self, engine: AsyncEngine) -> None:
        self.engine = engine
        self._session_factory = async_sessionmaker(
            engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @classmethod
    def from_url(cls, url: str, **engine_kwargs: Any) -> "Database":
        return cls(create_async_engine(url, **engine_kwargs))

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        """Create the production engine with a bounded connection pool."""
        url = settings.async_database_url
        engine_kwargs: dict[str, Any] = {"echo": settings.debug, "pool_pre_ping": True}
        if url.startswith("postgresql"):
            engine_kwargs.update(
                connect_args=settings.asyncpg_connect_args,
                pool_size=5,
                max_overflow=10,
                pool_timeout=settings.store_timeout_seconds,
            )
        return cls.from_url(url, **engine_kwargs)

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Get database session context manager.

        Usage:
            async with database.session() as session:
                result = await session.execute(query)
        """
        async with self._session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def ping(self) -> None:
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    async def create_tables(self) -> None:
        """Create all tables (for development/testing only)."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        """Close database connection pool."""
        await self.engine.dispose()
