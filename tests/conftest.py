# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import AsyncIterator, Iterator
from datetime import UTC, datetime, timedelta

import pytest
import pytest_asyncio
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("STORE_BACKEND", "sql")
os.environ.setdefault("STORAGE_BACKEND", "memory")

from travel_threads.api.v1.dependencies import get_context
from travel_threads.core.settings import Settings
from travel_threads.db.session import build_engine, create_tables
from travel_threads.main import app as fastapi_app
from travel_threads.services.collections import USERS
from travel_threads.services.context import ServiceContext
from travel_threads.services.identity import LocalIdentityProvider
from travel_threads.services.media import InMemoryStorageClient
from travel_threads.services.social import default_profile_document
from travel_threads.store.sql import SqlDocumentStore

TEST_DB_URL = "sqlite+aiosqlite:///:memory:"
START = datetime(2024, 6, 1, 12, 0, tzinfo=UTC)


class FakeClock:
    """Clock that advances one second every time it is read."""

    def __init__(self, start: datetime = START) -> None:
        self.current = start

    def __call__(self) -> datetime:
        value = self.current
        self.current += timedelta(seconds=1)
        return value


def _memory_engine() -> AsyncEngine:
    return build_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )


def _build_context(engine: AsyncEngine, settings: Settings, clock: FakeClock) -> ServiceContext:
    store = SqlDocumentStore(async_sessionmaker(engine, expire_on_commit=False, autoflush=False))
    return ServiceContext(
        store=store,
        settings=settings,
        storage=InMemoryStorageClient(base_url="https://media.test"),
        identity=LocalIdentityProvider(store, settings, clock=clock),
        clock=clock,
    )


@pytest.fixture()
def test_settings() -> Settings:
    """Settings with small limits so paging and chunking are easy to exercise."""
    return Settings(
        secret_key="test-secret-key",
        query_in_limit=2,
        following_feed_limit=50,
        login_max_failures=3,
    )


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest_asyncio.fixture()
async def ctx(test_settings: Settings, clock: FakeClock) -> AsyncIterator[ServiceContext]:
    """Service context around a fresh in-memory SQL document store."""
    engine = _memory_engine()
    await create_tables(engine)
    try:
        yield _build_context(engine, test_settings, clock)
    finally:
        await engine.dispose()


async def make_user(ctx: ServiceContext, user_id: str, name: str, **fields: object) -> str:
    """Store a default profile for ``user_id``."""
    document = default_profile_document(ctx.timestamp(), display_name=name)
    document.update(fields)
    await ctx.store.set(USERS, user_id, document)
    return user_id


@pytest_asyncio.fixture()
async def alice(ctx: ServiceContext) -> str:
    return await make_user(ctx, "alice", "Alice")


@pytest_asyncio.fixture()
async def bob(ctx: ServiceContext) -> str:
    return await make_user(ctx, "bob", "Bob")


@pytest_asyncio.fixture()
async def carol(ctx: ServiceContext) -> str:
    return await make_user(ctx, "carol", "Carol")


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture()
def api_engine() -> AsyncEngine:
    return _memory_engine()


@pytest.fixture()
def api_ctx(api_engine: AsyncEngine, test_settings: Settings) -> ServiceContext:
    """The service context served to API requests."""
    return _build_context(api_engine, test_settings, FakeClock())


@pytest.fixture()
def client(
    app: FastAPI,
    api_engine: AsyncEngine,
    api_ctx: ServiceContext,
) -> Iterator[TestClient]:
    """Test client whose requests run against an isolated in-memory store.

    Tables are created inside the client's event loop; use
    ``client.portal.call`` to run service coroutines for setup.
    """
    app.dependency_overrides[get_context] = lambda: api_ctx
    try:
        with TestClient(app, base_url="http://test") as test_client:
            test_client.portal.call(create_tables, api_engine)
            yield test_client
            test_client.portal.call(api_engine.dispose)
    finally:
        app.dependency_overrides.pop(get_context, None)


def signup(client: TestClient, email: str, name: str, password: str = "secret123") -> dict:
    """Register through the API and return the session payload plus auth headers."""
    response = client.post(
        "/api/v1/auth/signup",
        json={"email": email, "password": password, "displayName": name},
    )
    assert response.status_code == 201, response.text
    session = response.json()
    session["headers"] = {"Authorization": f"Bearer {session['accessToken']}"}
    return session
