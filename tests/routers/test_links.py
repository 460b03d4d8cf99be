"""Tests for tracked-link creation, listing and redirect."""

import asyncio

import pytest
from httpx import AsyncClient

LEAD = {
    "name": "Jane Doe",
    "email": "jane@acme.com",
    "company": "Acme",
    "title": "CTO",
    "linkedinUrl": "https://linkedin.com/in/janedoe",
}


async def _create_link(client: AsyncClient, **overrides) -> dict:
    body = {"originalUrl": "https://example.com/offer", "lead": LEAD, **overrides}
    resp = await client.post("/api/vi/tracked-links", json=body)
    assert resp.status_code == 201, resp.text
    return resp.json()


class TestCreateTrackedLink:
    @pytest.mark.asyncio
    async def test_create(self, client: AsyncClient):
        link = await _create_link(client, messageType="linkedin", siteId="s_1")
        assert link["linkId"].startswith("tl_")
        assert link["trackedUrl"] == f"http://test/t/{link['linkId']}"
        assert link["leadInfo"]["linkedinUrl"] == LEAD["linkedinUrl"]
        assert link["messageType"] == "linkedin"
        assert link["clicks"] == 0
        assert link["lastClicked"] is None

    @pytest.mark.asyncio
    async def test_missing_lead_rejected(self, client: AsyncClient):
        resp = await client.post("/api/vi/tracked-links", json={"originalUrl": "https://example.com"})
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_relative_url_rejected(self, client: AsyncClient):
        resp = await client.post("/api/vi/tracked-links", json={"originalUrl": "/offer", "lead": LEAD})
        assert resp.status_code == 422


class TestListTrackedLinks:
    @pytest.mark.asyncio
    async def test_newest_first_and_site_filter(self, client: AsyncClient):
        first = await _create_link(client, siteId="s_1")
        second = await _create_link(client, siteId="s_2")
        third = await _create_link(client, siteId="s_1")

        links = (await client.get("/api/vi/tracked-links")).json()["links"]
        assert [link["linkId"] for link in links][0] == third["linkId"]
        assert {link["linkId"] for link in links} == {first["linkId"], second["linkId"], third["linkId"]}

        filtered = (await client.get("/api/vi/tracked-links", params={"siteId": "s_1"})).json()["links"]
        assert {link["linkId"] for link in filtered} == {first["linkId"], third["linkId"]}


class TestRedirect:
    @pytest.mark.asyncio
    async def test_redirect_appends_token_and_counts(self, client: AsyncClient, state):
        link = await _create_link(client)
        resp = await client.get(f"/t/{link['linkId']}")
        assert resp.status_code == 302
        assert resp.headers["location"] == f"https://example.com/offer?_bvt={link['linkId']}"

        stored = state.links.get(link["linkId"])
        assert stored.clicks == 1
        assert stored.last_clicked is not None

    @pytest.mark.asyncio
    async def test_each_redirect_counts_once(self, client: AsyncClient, state):
        link = await _create_link(client)
        for _ in range(3):
            await client.get(f"/t/{link['linkId']}")
        assert state.links.get(link["linkId"]).clicks == 3

    @pytest.mark.asyncio
    async def test_unknown_link_returns_404_without_changes(self, client: AsyncClient, state):
        link = await _create_link(client)
        resp = await client.get("/t/tl_doesnotexist")
        assert resp.status_code == 404
        assert resp.text == "Link not found"
        assert state.links.get(link["linkId"]).clicks == 0

    @pytest.mark.asyncio
    async def test_redirect_does_not_wait_for_ingestion(self, client: AsyncClient, state):
        link = await _create_link(client)
        async with state.lock:
            resp = await asyncio.wait_for(client.get(f"/t/{link['linkId']}"), timeout=1)
        assert resp.status_code == 302
        assert state.links.get(link["linkId"]).clicks == 1
