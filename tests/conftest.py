from __future__ import annotations

import os
from collections.abc import AsyncIterator

# Settings are cached on first use; point them at throwaway backends before import.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET", "test-secret-key-for-the-backoffice-suite")
os.environ.setdefault("RATE_LIMIT_BACKEND", "memory")

import pytest
from backoffice.api.deps import (
    get_blob_storage,
    get_db_session,
    get_email_client,
    get_logo_storage,
)
from backoffice.api.main import app
from backoffice.core.rate_limit import reset_rate_limiter
from backoffice.infrastructure.db.base import Base
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from tests.utils import InMemoryBlobStorage, RecordingEmailClient


@pytest.fixture()
async def engine() -> AsyncIterator[AsyncEngine]:
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture()
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture()
async def db(session_factory: async_sessionmaker[AsyncSession]) -> AsyncIterator[AsyncSession]:
    """Provide a database session for tests that need direct DB access."""
    async with session_factory() as session:
        yield session


@pytest.fixture()
def storage() -> InMemoryBlobStorage:
    return InMemoryBlobStorage()


@pytest.fixture()
def email_client() -> RecordingEmailClient:
    return RecordingEmailClient()


@pytest.fixture()
async def async_client(
    session_factory: async_sessionmaker[AsyncSession],
    storage: InMemoryBlobStorage,
    email_client: RecordingEmailClient,
) -> AsyncIterator[AsyncClient]:
    """Async HTTP client wired to the in-memory database and blob store."""

    async def override_db_session() -> AsyncIterator[AsyncSession]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db_session] = override_db_session
    app.dependency_overrides[get_blob_storage] = lambda: storage
    app.dependency_overrides[get_logo_storage] = lambda: storage
    app.dependency_overrides[get_email_client] = lambda: email_client
    reset_rate_limiter()

    transport = ASGITransport(app=app)  # type: ignore
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
    reset_rate_limiter()
