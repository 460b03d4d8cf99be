"""Site management endpoints."""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, status

from leadtrace.dependencies import get_base_url, get_state
from leadtrace.schemas.site import Site, SiteCreate, SiteListResponse
from leadtrace.services.aggregation import site_summaries
from leadtrace.services.state import TrackerState

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/vi/sites", tags=["sites"])


@router.get("", response_model=SiteListResponse)
async def list_sites(state: TrackerState = Depends(get_state)) -> SiteListResponse:
    """List registered sites with their visitor and pageview counts."""
    return SiteListResponse(sites=site_summaries(state))


@router.post("", response_model=Site, status_code=status.HTTP_201_CREATED)
async def create_site(
    body: SiteCreate,
    base_url: str = Depends(get_base_url),
    state: TrackerState = Depends(get_state),
) -> Site:
    """Register a site and return it with its embed snippet."""
    site = state.sites.create(body, base_url, datetime.now(timezone.utc))
    state.mark_dirty()
    logger.info("Registered site %s (%s)", site.site_id, site.domain)
    return site


@router.delete("/{site_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_site(site_id: str, state: TrackerState = Depends(get_state)) -> None:
    """Remove a site. Its historical events stay in the log."""
    if state.sites.remove(site_id) is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Site not found",
        )
    state.mark_dirty()
    logger.info("Deleted site %s", site_id)
