"""
Async SQLAlchemy engine and session factory for the document store.

Uses ``asyncpg`` as the PostgreSQL driver for non-blocking I/O.  A SQLite
URL (``sqlite+aiosqlite://``) is accepted for local runs; pool sizing only
applies to server databases.
"""

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from roninride.config import settings


def build_engine(url: str) -> AsyncEngine:
    if url.startswith("sqlite"):
        return create_async_engine(url, echo=False)
    return create_async_engine(url, echo=False, pool_size=20, max_overflow=10)


engine = build_engine(settings.database_url)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Shared declarative base for all ORM models."""


async def create_schema(bind: AsyncEngine = engine) -> None:
    """Create missing tables (migrations remain the source of truth in prod)."""
    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
