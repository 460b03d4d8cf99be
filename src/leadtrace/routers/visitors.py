"""Visitor queries and the live-visitor list."""

from fastapi import APIRouter, Depends, HTTPException, Query, status

from leadtrace.dependencies import get_state
from leadtrace.schemas.visitor import LiveResponse, VisitorDetailResponse, VisitorListResponse
from leadtrace.services.aggregation import VISITOR_SORTS, list_visitors, live_visitors, visitor_detail
from leadtrace.services.state import TrackerState

router = APIRouter(prefix="/api/vi", tags=["visitors"])


@router.get("/visitors", response_model=VisitorListResponse)
async def get_visitors(
    site_id: str | None = Query(default=None, alias="siteId"),
    identified: bool | None = None,
    sort: str = "lastSeen",
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=500),
    state: TrackerState = Depends(get_state),
) -> VisitorListResponse:
    """List visitors with filters, sorting and offset pagination."""
    if sort not in VISITOR_SORTS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid sort. Use: {', '.join(VISITOR_SORTS)}",
        )
    page, total = list_visitors(
        state.identities,
        site_id=site_id,
        identified=identified,
        sort=sort,
        offset=offset,
        limit=limit,
    )
    return VisitorListResponse(visitors=page, total=total)


@router.get("/visitors/{visitor_id}", response_model=VisitorDetailResponse)
async def get_visitor(
    visitor_id: str, state: TrackerState = Depends(get_state)
) -> VisitorDetailResponse:
    """One visitor with its session-grouped timeline."""
    visitor = state.identities.get(visitor_id)
    if visitor is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Visitor not found",
        )
    return visitor_detail(visitor, state.events.for_visitor(visitor_id))


@router.get("/live", response_model=LiveResponse)
async def get_live(
    site_id: str | None = Query(default=None, alias="siteId"),
    state: TrackerState = Depends(get_state),
) -> LiveResponse:
    """Visitors active within the live window."""
    return live_visitors(state, site_id)
