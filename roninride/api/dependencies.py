"""FastAPI dependency injection helpers for the document routes."""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from roninride.infrastructure.database import async_session_factory
from roninride.infrastructure.repositories import DocumentRepository


async def get_db() -> AsyncSession:  # type: ignore[misc]
    """One session per request; rolled back if the handler raises."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_repository(db: AsyncSession = Depends(get_db)) -> DocumentRepository:
    return DocumentRepository(db)
