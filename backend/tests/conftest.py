"""
Pytest fixtures for test database, client, and admin authentication.

Each test gets a fresh database (a SQLite file under tmp_path unless
TEST_DATABASE_URL points elsewhere). Every request through the client
opens its own session, as in production, so concurrent requests do not
share a transaction.
"""

import asyncio
import os

# Settings are cached on first import; configure the test environment first.
os.environ.setdefault("REDIS_ENABLED", "false")
os.environ.setdefault("BOOKING_LOCK_STRATEGY", "local")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("ADMIN_USERNAME", "admin")
os.environ.setdefault("ADMIN_PASSWORD", "test-admin-password")

from datetime import date, time
from typing import AsyncGenerator, Callable, Optional

import pytest
import pytest_asyncio
import structlog
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool
from structlog.testing import LogCapture

from slot_booking.main import app
from slot_booking.db.base import Base
from slot_booking.db.session import get_db
from slot_booking.core.logging import _build_processors
from slot_booking.core.security import ADMIN_ROLE, create_access_token
from slot_booking.models.booking import Booking
from slot_booking.services import cache_service
from slot_booking.services.strategy_factory import reset_booking_lock

ADMIN_USERNAME = os.environ["ADMIN_USERNAME"]
ADMIN_PASSWORD = os.environ["ADMIN_PASSWORD"]


@pytest.fixture
def database_url(tmp_path) -> str:
    return os.getenv("TEST_DATABASE_URL") or f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"


@pytest_asyncio.fixture
async def test_engine(database_url: str) -> AsyncGenerator[AsyncEngine, None]:
    """Create tables, yield engine, then drop tables for isolation."""
    engine = create_async_engine(database_url, echo=False, poolclass=NullPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory: async_sessionmaker) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory: async_sessionmaker) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client that overrides the DB dependency with the test database."""

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    reset_booking_lock()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
    reset_booking_lock()


@pytest.fixture
def auth_token() -> str:
    return create_access_token(data={"sub": ADMIN_USERNAME, "role": ADMIN_ROLE})


@pytest.fixture
def auth_headers(auth_token: str) -> dict:
    """Authorization headers with Bearer token."""
    return {"Authorization": f"Bearer {auth_token}"}


@pytest.fixture
def booking_payload() -> dict:
    return {
        "name": "Alice",
        "phone": "+911234567890",
        "purpose": "Grocery",
        "location": "Dehradun",
        "date": "2025-03-10",
        "time_slot": "09:00",
    }


@pytest.fixture
def seed_bookings(db_session: AsyncSession) -> Callable:
    """
    Insert rows directly, bypassing the booking rules.

    Usage: await seed_bookings(date(2025, 3, 10), "09:00", count=120)
    Every row gets a distinct phone number unless one is given.
    """
    counter = {"next": 0}

    async def _seed(day: date, slot: str, count: int = 1, **overrides) -> list[Booking]:
        hours, minutes = (int(p) for p in slot.split(":"))
        rows = []
        for _ in range(count):
            counter["next"] += 1
            fields = {
                "name": f"Seeded {counter['next']}",
                "phone": f"+9170{counter['next']:08d}",
                "purpose": "Grocery",
                "location": "Almora",
                "date": day,
                "time_slot": time(hours, minutes),
            }
            fields.update(overrides)
            rows.append(Booking(**fields))
        db_session.add_all(rows)
        await db_session.commit()
        return rows

    return _seed


class FakeRedis:
    """
    In-memory stand-in for the cache's Redis calls. Expiry is not modelled.

    Set `script_gate` to an asyncio.Event to hold every compare-and-set
    until it is released; `script_entered` is set when one is waiting.
    """

    def __init__(self):
        self.store: dict[str, str] = {}
        self.script_gate: Optional[asyncio.Event] = None
        self.script_entered = asyncio.Event()

    async def get(self, key):
        return self.store.get(key)

    async def setex(self, key, ttl, value):
        self.store[key] = value

    async def incr(self, key):
        self.store[key] = str(int(self.store.get(key, "0")) + 1)
        return int(self.store[key])

    async def expire(self, key, ttl):
        return key in self.store

    async def delete(self, *keys):
        return sum(1 for key in keys if self.store.pop(key, None) is not None)

    async def info(self, section=None):
        return {"keyspace_hits": 0, "keyspace_misses": 0}

    def register_script(self, script):
        async def run(keys, args):
            self.script_entered.set()
            if self.script_gate is not None:
                await self.script_gate.wait()
            version_key, status_key = keys
            version, _ttl, payload = args
            if self.store.get(version_key, "0") != version:
                return 0
            self.store[status_key] = payload
            return 1
        return run


@pytest.fixture
def fake_redis(monkeypatch) -> FakeRedis:
    """Route the slot status cache to an in-memory FakeRedis."""
    client = FakeRedis()

    async def get_fake_redis():
        return client

    monkeypatch.setattr(cache_service, "get_redis", get_fake_redis)
    return client


@pytest.fixture
def captured_logs():
    """Log entries as they leave the production processor chain, phone masking on."""
    capture = LogCapture()
    structlog.configure(
        processors=[*_build_processors(mask_phones=True), capture],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )
    yield capture.entries
    structlog.reset_defaults()
