"""Health check endpoint."""

from fastapi import APIRouter, Depends

from leadtrace import __version__
from leadtrace.dependencies import get_state
from leadtrace.services.state import TrackerState

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(state: TrackerState = Depends(get_state)) -> dict:
    """Return API health status, version and collection sizes."""
    return {
        "status": "ok",
        "version": __version__,
        "sites": len(state.sites),
        "visitors": len(state.identities),
        "events": len(state.events),
        "trackedLinks": len(state.links),
        "subscribers": len(state.broadcaster),
    }
