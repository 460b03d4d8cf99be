"""Tracked outreach links and the public redirect."""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import PlainTextResponse, RedirectResponse

from leadtrace.dependencies import get_base_url, get_state
from leadtrace.schemas.link import TrackedLink, TrackedLinkCreate, TrackedLinkListResponse
from leadtrace.services.state import TrackerState
from leadtrace.services.tracked_links import LinkNotFoundError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/vi/tracked-links", tags=["tracked-links"])
redirect_router = APIRouter(tags=["tracked-links"])


@router.post("", response_model=TrackedLink, status_code=status.HTTP_201_CREATED)
async def create_tracked_link(
    body: TrackedLinkCreate,
    base_url: str = Depends(get_base_url),
    state: TrackerState = Depends(get_state),
) -> TrackedLink:
    """Create a tracked link for an outreach message."""
    link = state.links.create(body, base_url, datetime.now(timezone.utc))
    state.mark_dirty()
    return link


@router.get("", response_model=TrackedLinkListResponse)
async def list_tracked_links(
    site_id: str | None = Query(default=None, alias="siteId"),
    state: TrackerState = Depends(get_state),
) -> TrackedLinkListResponse:
    """List tracked links, newest first."""
    return TrackedLinkListResponse(links=state.links.newest_first(site_id))


@redirect_router.get("/t/{link_id}", include_in_schema=False)
async def follow_tracked_link(link_id: str, state: TrackerState = Depends(get_state)):
    """Count the click and send the person on to the destination.

    The destination gets the link token as a query parameter so the
    collector there can report the identification.
    """
    # Resolution never awaits, so it cannot interleave with an ingestion
    try:
        target = state.links.resolve(link_id, datetime.now(timezone.utc))
    except LinkNotFoundError:
        return PlainTextResponse("Link not found", status_code=status.HTTP_404_NOT_FOUND)
    state.mark_dirty()
    logger.info("Tracked link %s followed", link_id)
    return RedirectResponse(target, status_code=status.HTTP_302_FOUND)
