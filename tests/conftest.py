"""
Pytest configuration and shared fixtures for the traffic incidents tests.

Provides settings pointing at an in-memory SQLite store, a controllable
clock, feed payload builders and a FastAPI test client whose traffic feed
is served by an ``httpx.MockTransport``.
"""

import asyncio
import os
from datetime import datetime, timedelta, timezone
from typing import Any, Generator

import httpx
import pytest
from fastapi.testclient import TestClient

# Set test environment before imports
os.environ["ENVIRONMENT"] = "test"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["SYNC_ENABLED"] = "false"
os.environ["DATABASE_URL"] = "sqlite://"

from traffic_incidents.api.app import create_app
from traffic_incidents.application.services import QueryService, UserReportService
from traffic_incidents.config import Settings
from traffic_incidents.infrastructure.persistence import (
    SQLAlchemyIncidentRepository,
    build_engine,
    build_session_factory,
    create_tables,
)

BASE_TIME = datetime(2026, 10, 19, 10, 0, 0, tzinfo=timezone.utc)

# Paris area, inside every box used below
PARIS = [2.35, 48.85]
PARIS_BBOX = "2.2,48.8,2.5,48.95"


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime = BASE_TIME):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


def make_feed_incident(
    coordinates: list | None = None,
    icon_category: Any = 1,
    magnitude: Any = 2,
    geometry_type: str = "Point",
    end_time: str | None = None,
    description: str | None = "Accident",
    active: bool | None = None,
) -> dict[str, Any]:
    """Build one feature the way the Traffic Incident Details feed returns it."""
    properties: dict[str, Any] = {
        "iconCategory": icon_category,
        "magnitudeOfDelay": magnitude,
        "events": [{"description": description, "code": 201, "iconCategory": icon_category}] if description else [],
        "startTime": "2026-10-19T09:30:00Z",
        "endTime": end_time,
    }
    if active is not None:
        properties["active"] = active
    return {
        "type": "Feature",
        "geometry": {"type": geometry_type, "coordinates": coordinates if coordinates is not None else list(PARIS)},
        "properties": properties,
    }


class FakeFeedClient:
    """Stands in for TrafficFeedClient; returns a fixed payload or raises."""

    def __init__(self, incidents: list[Any] | None = None, error: Exception | None = None, delay: float = 0.0):
        self.incidents = incidents or []
        self.error = error
        self.delay = delay
        self.calls = 0

    async def fetch_incidents(self, bbox) -> list[Any]:
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return list(self.incidents)

    async def aclose(self) -> None:
        pass


def make_settings(**overrides: Any) -> Settings:
    values: dict[str, Any] = {
        "environment": "test",
        "database_url": "sqlite://",
        "sync_enabled": False,
        "log_level": "WARNING",
        "vendor_api_key": "test-key",
        "vendor_timeout_seconds": 1.0,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def settings() -> Settings:
    """Settings for an isolated in-memory store with the sync job disabled."""
    return make_settings()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def repository(settings) -> Generator[SQLAlchemyIncidentRepository, None, None]:
    """Fresh in-memory incident store."""
    engine = build_engine(settings)
    create_tables(engine)
    yield SQLAlchemyIncidentRepository(build_session_factory(engine))
    engine.dispose()


@pytest.fixture
def report_service(repository, settings, clock) -> UserReportService:
    return UserReportService(repository, settings, clock=clock)


@pytest.fixture
def query_service(repository, settings, clock) -> QueryService:
    return QueryService(repository, settings, clock=clock)


@pytest.fixture
def feed_incidents() -> list[dict[str, Any]]:
    """Payload served by the mocked feed in API tests; tests may mutate it."""
    return []


@pytest.fixture
def feed_transport(feed_incidents) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"incidents": feed_incidents})

    return httpx.MockTransport(handler)


@pytest.fixture
def app(settings, feed_transport):
    """Create a FastAPI application instance with its own store."""
    return create_app(settings, feed_transport=feed_transport)


@pytest.fixture
def client(app) -> Generator[TestClient, None, None]:
    """Test client; entering it runs the lifespan, which creates the schema."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def container(app):
    return app.state.container


# Test markers
pytest_plugins = ["pytest_asyncio"]


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "integration: integration test")
    config.addinivalue_line("markers", "slow: slow running test")
