"""
Pytest fixtures for test database, client, and factories.

Each test gets a fresh file-backed SQLite database (aiosqlite), so concurrent
sessions in one test really contend on the store. Point TEST_DATABASE_URL at a
PostgreSQL database to run the same suite against row-level locking.
"""

import os
from datetime import datetime, timezone, timedelta
from typing import AsyncGenerator, Optional
from uuid import uuid4

import pytest_asyncio
from httpx import AsyncClient, ASGITransport

os.environ.setdefault("REDIS_ENABLED", "false")

from event_registry.main import app  # noqa: E402
from event_registry.db.session import Database  # noqa: E402
from event_registry.models.event import Event  # noqa: E402
from event_registry.models.user import User  # noqa: E402
from event_registry.schemas.event import EventCreate  # noqa: E402
from event_registry.schemas.user import UserCreate  # noqa: E402
from event_registry.services.cache_service import UpcomingEventsCache  # noqa: E402
from event_registry.services.event_service import create_event  # noqa: E402
from event_registry.services.user_service import create_user  # noqa: E402

TEST_DATABASE_URL = os.environ.get("TEST_DATABASE_URL")


def future(days: int = 30, hours: int = 0) -> datetime:
    return datetime.now(timezone.utc) + timedelta(days=days, hours=hours)


def past(days: int = 1) -> datetime:
    return datetime.now(timezone.utc) - timedelta(days=days)


@pytest_asyncio.fixture(scope="function")
async def database(tmp_path) -> AsyncGenerator[Database, None]:
    """Create tables, yield the database, then drop tables for isolation."""
    url = TEST_DATABASE_URL or f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"
    db = Database(url, lock_timeout_ms=10000)
    await db.drop_all()
    await db.create_all()

    yield db

    await db.drop_all()
    await db.dispose()


@pytest_asyncio.fixture(scope="function")
async def cache() -> UpcomingEventsCache:
    return UpcomingEventsCache(None)


@pytest_asyncio.fixture(scope="function")
async def client(database: Database, cache: UpcomingEventsCache) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client wired to the test database the same way the lifespan wires the real one."""
    app.state.db = database
    app.state.cache = cache

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    del app.state.db
    del app.state.cache


@pytest_asyncio.fixture
async def make_user(database: Database):
    """Factory creating users through the service layer."""

    async def _make(name: str = "Test User", email: Optional[str] = None) -> User:
        email = email or f"user_{uuid4().hex[:8]}@example.com"
        async with database.session() as session:
            return await create_user(session, UserCreate(name=name, email=email))

    return _make


@pytest_asyncio.fixture
async def make_event(database: Database):
    """Factory creating events; defaults to 30 days ahead with 100 places."""

    async def _make(
        capacity: int = 100,
        when: Optional[datetime] = None,
        location: str = "Test Venue",
        title: str = "Test Concert",
    ) -> Event:
        data = EventCreate(
            title=title,
            event_datetime=when or future(),
            location=location,
            capacity=capacity,
        )
        async with database.session() as session:
            return await create_event(session, data)

    return _make


@pytest_asyncio.fixture
async def test_user(make_user) -> User:
    return await make_user(name="Test User", email="test@example.com")


@pytest_asyncio.fixture
async def test_event(make_event) -> Event:
    return await make_event(capacity=100)
