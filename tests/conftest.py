"""
Shared test fixtures.

Runs the real document store app over httpx's ASGI transport, backed by a
throw-away SQLite file (via aiosqlite), so tests need no PostgreSQL and no
network.  Each connection is opened fresh (``NullPool``) so concurrent
requests get real transaction isolation, the same as against a server
database.
"""

import asyncio
from typing import AsyncGenerator

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from roninride.api.app import create_app
from roninride.api.dependencies import get_db
from roninride.api.middleware import limiter
from roninride.infrastructure.accessor import StoreAccessor
from roninride.infrastructure.database import Base
from roninride.infrastructure.models import DocumentModel  # noqa: F401
from roninride.infrastructure.session import empty_document
from roninride.infrastructure.store_client import DocumentStoreClient

STORE_URL = "http://test/api/v1/documents"
TEST_BCRYPT_ROUNDS = 4


# ── Store service ─────────────────────────────────────────────────────


@pytest_asyncio.fixture
async def session_factory(tmp_path) -> AsyncGenerator[async_sessionmaker, None]:
    """Create tables in a fresh SQLite file, yield a factory, then dispose."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'store.db'}", poolclass=NullPool
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest_asyncio.fixture
async def client(session_factory, monkeypatch) -> AsyncGenerator[AsyncClient, None]:
    """AsyncClient talking to the store app in-process."""
    monkeypatch.setattr(limiter, "enabled", False)

    async def _test_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app = create_app()
    app.dependency_overrides[get_db] = _test_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


# ── Client side ───────────────────────────────────────────────────────


@pytest_asyncio.fixture
async def store(client) -> DocumentStoreClient:
    return DocumentStoreClient(STORE_URL, client=client)


@pytest_asyncio.fixture
async def session_id(store) -> str:
    return await store.create(empty_document())


@pytest_asyncio.fixture
async def down_store() -> AsyncGenerator[DocumentStoreClient, None]:
    """A store client whose every request answers 503, as during an outage."""
    http = httpx.AsyncClient(
        transport=httpx.MockTransport(lambda request: httpx.Response(503))
    )
    yield DocumentStoreClient(STORE_URL, client=http)
    await http.aclose()


@pytest.fixture
def accessor_factory(store, session_id):
    """Build independent accessors on the same session, one per 'device'."""

    def _make(**kwargs) -> StoreAccessor:
        kwargs.setdefault("bcrypt_rounds", TEST_BCRYPT_ROUNDS)
        return StoreAccessor(store, session_id, **kwargs)

    return _make


@pytest.fixture
def accessor(accessor_factory) -> StoreAccessor:
    return accessor_factory()


@pytest_asyncio.fixture
async def rider_user(accessor):
    return await accessor.register_user("Riley Rider", "rider@example.com", "rider-secret")


@pytest_asyncio.fixture
async def driver_user(accessor):
    return await accessor.register_user("Dana Driver", "driver@example.com", "driver-secret")


@pytest.fixture
def eventually():
    """Poll *predicate* until it holds or *timeout* elapses."""

    async def _wait(predicate, timeout: float = 3.0, interval: float = 0.01) -> None:
        async def _spin():
            while not predicate():
                await asyncio.sleep(interval)

        await asyncio.wait_for(_spin(), timeout=timeout)

    return _wait
