"""Dashboard aggregate endpoint."""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Query, status

from leadtrace.dependencies import get_state
from leadtrace.schemas.dashboard import DashboardResponse
from leadtrace.services.aggregation import PERIODS, build_dashboard
from leadtrace.services.state import TrackerState

router = APIRouter(prefix="/api/vi", tags=["dashboard"])


@router.get("/dashboard", response_model=DashboardResponse)
async def get_dashboard(
    site_id: str | None = Query(default=None, alias="siteId"),
    period: str = "all",
    state: TrackerState = Depends(get_state),
) -> DashboardResponse:
    """Traffic, referrers, daily visitors and recent activity for a site."""
    if period not in PERIODS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid period. Use: {', '.join(PERIODS)}",
        )
    return build_dashboard(state, site_id, period, datetime.now(timezone.utc))
