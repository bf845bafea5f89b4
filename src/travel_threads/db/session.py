"""Database session configuration for the SQL document store."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from travel_threads.core.settings import settings


class Base(DeclarativeBase):
    """Declarative base shared by all ORM models."""


# Ensure model modules are imported so that metadata is populated when create_all runs.
import travel_threads.models  # noqa: E402,F401


def build_engine(url: str | None = None, **kwargs: object) -> AsyncEngine:
    """Create an async engine for ``url`` (defaults to the configured database)."""
    kwargs.setdefault("echo", settings.sql_debug)
    return create_async_engine(url or settings.database_url, **kwargs)


engine = build_engine(pool_pre_ping=True)

SessionLocal = async_sessionmaker(engine, expire_on_commit=False, autoflush=False)


async def create_tables(bind: AsyncEngine | None = None) -> None:
    """Create all database tables."""
    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def drop_tables(bind: AsyncEngine | None = None) -> None:
    """Drop all database tables."""
    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
