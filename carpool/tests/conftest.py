"""
Shared pytest fixtures.

Every test runs against a fresh in-memory SQLite schema and an in-process
Redis stand-in, wired into the app through dependency overrides.
"""

import os

# Must be set before the app (and its Settings) is imported
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("AUTH_RATE_LIMIT", "1000")
os.environ.setdefault("RATE_LIMIT_STORAGE_URI", "memory://")

import time

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from carpool.app.main import app
from carpool.app.db.session import get_db, Base
import carpool.app.core.redis_client as redis_client_module
from carpool.app.core.rate_limit import limiter
from carpool.tests.helpers import create_trip, register_user

# One connection shared by every session, so the in-memory schema survives
test_engine = create_async_engine(
    "sqlite+aiosqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSession = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@event.listens_for(test_engine.sync_engine, "connect")
def _enable_foreign_keys(dbapi_connection, _record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class InMemoryRedis:
    """The handful of Redis commands the app issues, with key expiry."""

    def __init__(self):
        self.values = {}
        self.deadlines = {}

    def _live(self, key):
        deadline = self.deadlines.get(key)
        if deadline is not None and deadline <= time.monotonic():
            self.values.pop(key, None)
            self.deadlines.pop(key, None)
        return key in self.values

    async def setex(self, key, seconds, value):
        self.values[key] = value
        self.deadlines[key] = time.monotonic() + seconds
        return True

    async def exists(self, key):
        return int(self._live(key))

    async def incr(self, key):
        current = int(self.values[key]) if self._live(key) else 0
        self.values[key] = current + 1
        return current + 1

    async def expire(self, key, seconds):
        if not self._live(key):
            return False
        self.deadlines[key] = time.monotonic() + seconds
        return True

    async def aclose(self):
        self.values.clear()
        self.deadlines.clear()


@pytest.fixture
def fake_redis(monkeypatch):
    fake = InMemoryRedis()
    monkeypatch.setattr(redis_client_module, "redis_client", fake)
    return fake


@pytest.fixture(autouse=True)
async def wired_app(fake_redis):
    """Fresh schema per test; the app talks to the test engine."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async def _test_db():
        async with TestSession() as session:
            yield session

    limiter.reset()
    app.dependency_overrides[get_db] = _test_db
    yield app
    app.dependency_overrides.pop(get_db, None)

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
async def client():
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def db_session():
    """Direct session for arranging state the API cannot reach (e.g. past departures)."""
    async with TestSession() as session:
        yield session


@pytest.fixture
def session_factory():
    """Open independent sessions to play out interleaved transactions."""
    return TestSession


@pytest.fixture
async def driver(client):
    user_id, headers = await register_user(client, "driver@test.com", name="Dana Driver")
    return {"id": user_id, "headers": headers}


@pytest.fixture
async def passenger(client):
    user_id, headers = await register_user(client, "passenger@test.com", name="Pat Passenger")
    return {"id": user_id, "headers": headers}


@pytest.fixture
async def other_passenger(client):
    user_id, headers = await register_user(client, "other@test.com", name="Olli Other")
    return {"id": user_id, "headers": headers}


@pytest.fixture
async def trip(client, driver):
    """A 4-seat upcoming trip offered by ``driver``."""
    return await create_trip(client, driver["headers"], seats=4)
