"""
Centralized Test Configuration.
"""

import json
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from urllib.parse import parse_qs

import httpx
import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from driveway_hub.app.main import app
from driveway_hub.app.core.config import Settings
from driveway_hub.app.core.jwt import create_user_token
from driveway_hub.app.core.redis_client import get_redis
from driveway_hub.app.db.session import get_db, get_session_factory, Base
from driveway_hub.app.models.driveway import Driveway
from driveway_hub.app.models.enums import UserRole
from driveway_hub.app.models.user import User
from driveway_hub.app.models.vehicle import Vehicle
from driveway_hub.app.services.tesla.client import TeslaClient
from driveway_hub.app.services.tesla.service import TeslaService, get_tesla_service
from driveway_hub.app.simulation.driver import DemoSimulation, get_demo_simulation

# Setup In-Memory Test Database
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

TEST_SETTINGS = Settings(
    tesla_client_id="test-client-id",
    tesla_client_secret="test-client-secret",
    tesla_oauth_redirect_uri="http://localhost:3000/auth/tesla/callback",
    environment="development",
)

# Driveway at 1 Market St, San Francisco
DRIVEWAY_LAT = 37.7749
DRIVEWAY_LNG = -122.4194


def _enable_sqlite_fk(dbapi_conn, connection_record):
    """Enable foreign key constraints for SQLite."""
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


@pytest.fixture
async def engine():
    test_engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    event.listen(test_engine.sync_engine, "connect", _enable_sqlite_fk)
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


# Shared session for fixture data creation
@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


# Mock Redis for reliability in CI/CD
class MockRedis:
    def __init__(self):
        self.store = {}
        self._closed = False

    async def ping(self):
        return not self._closed

    async def get(self, key):
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        self.store[key] = value
        return True

    async def setex(self, key, ttl, value):
        self.store[key] = value
        return True

    async def delete(self, *keys):
        return sum(1 for key in keys if self.store.pop(key, None) is not None)

    async def exists(self, *keys):
        return sum(1 for key in keys if key in self.store)

    async def flushdb(self):
        self.store = {}

    async def aclose(self):
        self._closed = True
        self.store = {}


@pytest.fixture
def redis_client():
    return MockRedis()


class TeslaAPIStub:
    """
    Stand-in for the Tesla auth server and Fleet API.

    Responses are registered per (method, path); every request is recorded.
    """

    def __init__(self):
        self.routes = {}
        self.requests = []

    def add(self, method: str, path: str, status_code: int = 200, json_body=None, text=None):
        self.routes[(method.upper(), path)] = (status_code, json_body, text)

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, text=f"no stub for {request.method} {request.url.path}")
        status_code, json_body, text = route
        if text is not None:
            return httpx.Response(status_code, text=text)
        return httpx.Response(status_code, json=json_body)

    def calls(self, method: str, path: str):
        return [r for r in self.requests if r.method == method.upper() and r.url.path == path]

    @staticmethod
    def form(request: httpx.Request) -> dict:
        return {k: v[0] for k, v in parse_qs(request.content.decode()).items()}

    @staticmethod
    def json(request: httpx.Request) -> dict:
        return json.loads(request.content.decode()) if request.content else None


@pytest.fixture
def tesla_api():
    return TeslaAPIStub()


@pytest.fixture
async def tesla_service(tesla_api):
    http = httpx.AsyncClient(transport=httpx.MockTransport(tesla_api.handle))
    yield TeslaService(TeslaClient(http, TEST_SETTINGS), TEST_SETTINGS)
    await http.aclose()


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
async def demo_simulation(fake_clock):
    simulation = DemoSimulation(tick_seconds=60, clock=fake_clock)
    yield simulation
    await simulation.stop()


@pytest.fixture
async def client(session_factory, redis_client, tesla_service, demo_simulation):
    """Async client for testing."""

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_redis] = lambda: redis_client
    app.dependency_overrides[get_tesla_service] = lambda: tesla_service
    app.dependency_overrides[get_demo_simulation] = lambda: demo_simulation

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides = {}


# --- Data helpers ---

def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_user_token(user)}"}


def hours_from_now(hours: float) -> datetime:
    now = datetime.now(timezone.utc).replace(minute=0, second=0, microsecond=0)
    return now + timedelta(hours=hours)


async def make_user(db: AsyncSession, email: str, role: UserRole = UserRole.DRIVER, **fields) -> User:
    user = User(email=email, first_name="Test", last_name=role.value.title(), role=role, **{"is_active": True, **fields})
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


async def make_driveway(db: AsyncSession, host: User, **fields) -> Driveway:
    values = dict(
        title="Test driveway",
        address="1 Market St",
        latitude=DRIVEWAY_LAT,
        longitude=DRIVEWAY_LNG,
        hourly_rate=Decimal("15.00"),
        max_vehicle_length=240.0,
        max_vehicle_width=96.0,
        max_vehicle_height=None,
    )
    values.update(fields)
    driveway = Driveway(host_id=host.id, **values)
    db.add(driveway)
    await db.commit()
    await db.refresh(driveway)
    return driveway


async def make_vehicle(db: AsyncSession, owner: User, **fields) -> Vehicle:
    values = dict(
        display_name="Test Model 3",
        model="Model 3",
        year=2022,
        length_inches=184.8,
        width_inches=72.8,
        height_inches=56.8,
    )
    values.update(fields)
    vehicle = Vehicle(user_id=owner.id, **values)
    db.add(vehicle)
    await db.commit()
    await db.refresh(vehicle)
    return vehicle


@pytest.fixture
async def host(db_session):
    return await make_user(db_session, "host@example.com", UserRole.HOST)


@pytest.fixture
async def driver(db_session):
    return await make_user(db_session, "driver@example.com", UserRole.DRIVER)


@pytest.fixture
async def driveway(db_session, host):
    return await make_driveway(db_session, host)


@pytest.fixture
async def vehicle(db_session, driver):
    return await make_vehicle(db_session, driver)
