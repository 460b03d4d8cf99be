"""Test fixtures and configuration."""

from collections.abc import AsyncGenerator, Iterator
from datetime import datetime, timezone

import httpx
import pytest
import pytest_asyncio
import respx
from httpx import ASGITransport, AsyncClient

from leadtrace.config import Settings
from leadtrace.main import create_app
from leadtrace.services.ingestion import IngestionPipeline
from leadtrace.services.state import TrackerState

GEO_LOOKUP_URL = "http://geo.test/json/{ip}"

# ip-api.com response used for every public address
BERLIN = {
    "city": "Berlin",
    "regionName": "Berlin",
    "country": "Germany",
    "lat": 52.52,
    "lon": 13.405,
    "org": "Acme GmbH",
    "as": "AS3320 Deutsche Telekom AG",
}


@pytest.fixture
def settings() -> Settings:
    """Settings with a flush delay long enough never to fire during a test."""
    return Settings(
        persist_delay_seconds=3600,
        geo_lookup_url=GEO_LOOKUP_URL,
    )


@pytest.fixture
def geo_service() -> Iterator[respx.MockRouter]:
    """Mock the geolocation service for the duration of a test."""
    with respx.mock(assert_all_called=False) as router:
        router.get(host="geo.test").mock(return_value=httpx.Response(200, json=BERLIN))
        yield router


@pytest_asyncio.fixture
async def state(
    settings: Settings, geo_service: respx.MockRouter
) -> AsyncGenerator[TrackerState, None]:
    """In-memory tracker state; geolocation goes to the mocked service."""
    tracker = TrackerState(settings)
    yield tracker
    await tracker.close()


@pytest.fixture
def pipeline(state: TrackerState) -> IngestionPipeline:
    return IngestionPipeline(state)


@pytest_asyncio.fixture
async def client(state: TrackerState) -> AsyncGenerator[AsyncClient, None]:
    """Create a test HTTP client over an app bound to the test state."""
    app = create_app(state)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def now() -> datetime:
    return datetime.now(timezone.utc)


BEACON_DEFAULTS = {
    "site_id": "s_site1",
    "fingerprint": "fp1",
    "session_id": "sess1",
    "event_type": "pageview",
    "timestamp": None,
    "payload": {"path": "/", "url": "https://example.com/"},
    "client_ip": "127.0.0.1",
    "user_agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) Chrome/120.0 Safari/537.36",
}


@pytest.fixture
def beacon(pipeline: IngestionPipeline):
    """Return an async helper that ingests a pageview; keyword arguments override."""

    async def _ingest(**overrides):
        kwargs = {**BEACON_DEFAULTS, "payload": dict(BEACON_DEFAULTS["payload"])}
        kwargs.update(overrides)
        return await pipeline.ingest(**kwargs)

    return _ingest
