"""Server-sent event stream of ingested events."""

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from leadtrace.dependencies import get_state
from leadtrace.services.broadcast import event_stream
from leadtrace.services.state import TrackerState

router = APIRouter(prefix="/api/vi", tags=["stream"])


@router.get("/stream")
async def stream(state: TrackerState = Depends(get_state)) -> StreamingResponse:
    """Open a push stream; it closes when the client disconnects."""
    subscriber_id, queue = state.broadcaster.subscribe()
    return StreamingResponse(
        event_stream(state.broadcaster, subscriber_id, queue),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
    )
