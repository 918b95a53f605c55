"""Shared test fixtures for the platform registry."""

from collections.abc import AsyncIterator

import pytest
from cryptography.fernet import Fernet
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from lti.db.store import SqlStore
from tests.fakes import MemoryStore, StubIssuer

FERNET_KEY = Fernet.generate_key().decode()


@pytest.fixture(autouse=True)
def _set_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Set environment variables for test settings."""
    monkeypatch.setenv("LTI_ENCRYPTION_KEY", FERNET_KEY)
    monkeypatch.setenv("LTI_ASSERTION_TTL", "60")


@pytest.fixture
def fernet_key() -> str:
    return FERNET_KEY


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def stub_issuer() -> StubIssuer:
    return StubIssuer()


@pytest.fixture
async def session_factory() -> AsyncIterator[async_sessionmaker[AsyncSession]]:
    """Create an in-memory SQLite async session factory for tests."""
    # one shared connection so every session sees the same database
    engine = create_async_engine(
        "sqlite+aiosqlite://", echo=False, poolclass=StaticPool
    )
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    yield factory

    await engine.dispose()


@pytest.fixture
async def sql_store(
    session_factory: async_sessionmaker[AsyncSession],
) -> SqlStore:
    store = SqlStore(session_factory, FERNET_KEY)
    await store.create_schema()
    return store
