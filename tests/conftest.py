import json
import os
from datetime import datetime, timedelta, timezone

# Must be set before `app` is imported: the engine is created at import time.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SCHEDULER_ENABLED", "false")

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.core.config import Settings
from app.core.db import get_db
from app.core.deps import get_clock, get_optional_openweather_client, get_settings
from app.main import create_app
from app.models import Base
from app.services.providers.openweather_client import OpenWeatherClient

TEST_DB_URL = "sqlite+aiosqlite:///:memory:"

T0 = datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime = T0):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


def onecall_payload(unit_system: str, **overrides) -> dict:
    """Plausible One Call body for Bucharest in the requested units."""
    current = {
        "dt": 1767268800,
        "temp": 20.0 if unit_system == "metric" else 68.0,
        "feels_like": 19.0 if unit_system == "metric" else 66.2,
        "humidity": 55,
        "wind_speed": 3.0 if unit_system == "metric" else 6.71,
        "wind_deg": 180,
        "weather": [{"id": 800, "main": "Clear", "description": "clear sky", "icon": "01d"}],
    }
    current.update(overrides)
    return {"lat": 44.43, "lon": 26.1, "timezone": "Europe/Bucharest", "current": current}


class OneCallStub:
    """
    `httpx.MockTransport` handler imitating the One Call endpoint.

    `responses` maps a units value to either a payload dict, an
    `httpx.Response`, or an exception to raise.
    """

    def __init__(self, responses=None):
        self.responses = responses or {}
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        units = request.url.params["units"]
        answer = self.responses.get(units, onecall_payload(units))
        if isinstance(answer, Exception):
            raise answer
        if isinstance(answer, httpx.Response):
            return answer
        return httpx.Response(200, content=json.dumps(answer).encode())

    def client(self) -> OpenWeatherClient:
        return OpenWeatherClient(
            api_key="test-key",
            base_url="https://api.test/onecall",
            transport=httpx.MockTransport(self),
        )


@pytest_asyncio.fixture
async def test_engine():
    """
    In-memory SQLite async engine with all tables created.

    `StaticPool` keeps a single connection so every session sees the same
    in-memory database.
    """
    engine = create_async_engine(TEST_DB_URL, poolclass=StaticPool)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest_asyncio.fixture
async def db_session(session_factory):
    """
    Provide a fresh AsyncSession for each test.
    """
    async with session_factory() as session:
        yield session


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def onecall():
    return OneCallStub()


@pytest.fixture
def test_settings():
    return Settings(
        openweather_api_key="test-key",
        data_refresh_interval_hours=1,
        scheduler_enabled=False,
    )


@pytest.fixture
def test_app(db_session, clock, onecall, test_settings):
    """
    Return a FastAPI app wired to the test session, a fake clock and a
    stubbed OpenWeather transport.
    """
    app = create_app()

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_settings] = lambda: test_settings
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_optional_openweather_client] = onecall.client
    yield app
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def api(test_app):
    transport = httpx.ASGITransport(app=test_app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
