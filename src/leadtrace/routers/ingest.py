"""Beacon endpoint - hot path called by the embedded collector."""

import logging

from fastapi import APIRouter, BackgroundTasks, Depends, Request, Response, status
from pydantic import ValidationError

from leadtrace.dependencies import client_ip, get_pipeline
from leadtrace.schemas.ingest import TrackPayload
from leadtrace.services.ingestion import IngestionPipeline

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["ingest"])


@router.post("/track", status_code=status.HTTP_204_NO_CONTENT)
async def track(
    request: Request,
    background_tasks: BackgroundTasks,
    pipeline: IngestionPipeline = Depends(get_pipeline),
) -> Response:
    """Acknowledge a beacon, then process it after the response is sent.

    The collector posts with sendBeacon (``text/plain``) and cannot read
    the response, so the body is parsed here by hand and every request is
    answered 204 whether or not it is usable.
    """
    response = Response(status_code=status.HTTP_204_NO_CONTENT)

    body = await request.body()
    try:
        payload = TrackPayload.model_validate_json(body)
    except ValidationError:
        logger.debug("Discarding unparseable beacon (%d bytes)", len(body))
        return response

    background_tasks.add_task(
        pipeline.ingest_safely,
        site_id=payload.site_id,
        fingerprint=payload.fingerprint,
        session_id=payload.session_id,
        event_type=payload.type,
        timestamp=payload.timestamp,
        payload=payload.data,
        client_ip=client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )
    return response
