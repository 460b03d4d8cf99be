"""Tests for the /api/track beacon endpoint."""

import json

import pytest
from httpx import AsyncClient

TIMESTAMP = "2026-02-21T10:00:00Z"


def _beacon(**overrides) -> dict:
    """Build a collector beacon body."""
    return {
        "siteId": "s_test",
        "fingerprint": "abc123",
        "sessionId": "s_sess1",
        "type": "pageview",
        "timestamp": TIMESTAMP,
        "data": {
            "url": "https://example.com/pricing",
            "path": "/pricing",
            "title": "Pricing",
            "referrer": "https://www.google.com/",
        },
        **overrides,
    }


# ---------------------------------------------------------------------------
# Acknowledgement
# ---------------------------------------------------------------------------


class TestTrackAcknowledgement:
    @pytest.mark.asyncio
    async def test_valid_beacon_returns_204(self, client: AsyncClient):
        resp = await client.post("/api/track", json=_beacon())
        assert resp.status_code == 204
        assert resp.content == b""

    @pytest.mark.asyncio
    async def test_missing_fields_still_204(self, client: AsyncClient, state):
        resp = await client.post("/api/track", json={"siteId": "s_test"})
        assert resp.status_code == 204
        assert len(state.identities) == 0

    @pytest.mark.asyncio
    async def test_garbage_body_still_204(self, client: AsyncClient, state):
        resp = await client.post("/api/track", content=b"{not json", headers={"Content-Type": "application/json"})
        assert resp.status_code == 204
        assert len(state.events) == 0

    @pytest.mark.asyncio
    async def test_wrong_field_types_still_204(self, client: AsyncClient, state):
        resp = await client.post("/api/track", json=_beacon(fingerprint=["x"]))
        assert resp.status_code == 204
        assert len(state.events) == 0

    @pytest.mark.asyncio
    async def test_text_plain_beacon_processed(self, client: AsyncClient, state):
        """sendBeacon posts text/plain to avoid a CORS preflight."""
        resp = await client.post(
            "/api/track",
            content=json.dumps(_beacon()).encode(),
            headers={"Content-Type": "text/plain;charset=UTF-8"},
        )
        assert resp.status_code == 204
        assert len(state.events) == 1

    @pytest.mark.asyncio
    async def test_cors_preflight_allowed_from_any_origin(self, client: AsyncClient):
        resp = await client.options(
            "/api/track",
            headers={
                "Origin": "https://customer-site.example",
                "Access-Control-Request-Method": "POST",
            },
        )
        assert resp.status_code in (200, 204)
        assert resp.headers["access-control-allow-origin"] == "*"


# ---------------------------------------------------------------------------
# Processing
# ---------------------------------------------------------------------------


class TestTrackProcessing:
    @pytest.mark.asyncio
    async def test_beacon_creates_visitor_and_event(self, client: AsyncClient, state):
        await client.post("/api/track", json=_beacon())
        visitor = state.identities.find_by_fingerprint("abc123")
        assert visitor is not None
        assert visitor.total_pageviews == 1
        [event] = list(state.events)
        assert event.visitor_id == visitor.visitor_id
        assert event.timestamp.isoformat() == "2026-02-21T10:00:00+00:00"

    @pytest.mark.asyncio
    async def test_forwarded_ip_used_for_geolocation(self, client: AsyncClient, state):
        await client.post(
            "/api/track",
            json=_beacon(),
            headers={"X-Forwarded-For": "203.0.113.7, 10.0.0.1"},
        )
        visitor = state.identities.find_by_fingerprint("abc123")
        assert visitor.geo.ip == "203.0.113.7"
        assert visitor.geo.city == "Berlin"

    @pytest.mark.asyncio
    async def test_user_agent_sets_device(self, client: AsyncClient, state):
        await client.post(
            "/api/track",
            json=_beacon(),
            headers={"User-Agent": "Mozilla/5.0 (X11; Linux x86_64; rv:121.0) Gecko/20100101 Firefox/121.0"},
        )
        device = state.identities.find_by_fingerprint("abc123").device
        assert device.browser == "Firefox 121"
        assert device.os == "Linux"

    @pytest.mark.asyncio
    async def test_unparseable_timestamp_falls_back_to_now(self, client: AsyncClient, state):
        await client.post("/api/track", json=_beacon(timestamp="yesterday-ish"))
        [event] = list(state.events)
        assert event.timestamp.year >= 2026

    @pytest.mark.asyncio
    async def test_identification_scenario(self, client: AsyncClient, state):
        link_resp = await client.post(
            "/api/vi/tracked-links",
            json={
                "originalUrl": "https://example.com/offer",
                "lead": {"name": "Jane Doe", "email": "jane@acme.com"},
            },
        )
        link_id = link_resp.json()["linkId"]

        await client.post("/api/track", json=_beacon(fingerprint="F1", siteId="S1"))
        await client.post("/api/track", json=_beacon(fingerprint="F1", siteId="S1"))
        visitor = state.identities.find_by_fingerprint("F1")
        assert visitor.total_pageviews == 2
        assert visitor.total_sessions == 1

        await client.post(
            "/api/track",
            json=_beacon(fingerprint="F1", siteId="S1", type="click", data={"path": "/offer", "trackingId": link_id}),
        )
        visitor = state.identities.find_by_fingerprint("F1")
        assert visitor.identified is True
        assert visitor.identity.name == "Jane Doe"
        assert visitor.identity.email == "jane@acme.com"
        assert state.links.get(link_id).clicks == 1
