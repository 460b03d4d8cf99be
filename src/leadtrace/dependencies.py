"""FastAPI dependency injection functions."""

from fastapi import Depends, Request

from leadtrace.config import Settings, get_settings
from leadtrace.services.ingestion import IngestionPipeline
from leadtrace.services.state import TrackerState


def get_app_settings() -> Settings:
    """Return application settings."""
    return get_settings()


def get_state(request: Request) -> TrackerState:
    """Return the tracker state owned by this application instance."""
    return request.app.state.tracker


def get_pipeline(request: Request) -> IngestionPipeline:
    return request.app.state.pipeline


def get_base_url(
    request: Request,
    settings: Settings = Depends(get_app_settings),
) -> str:
    """Public origin used in embed snippets and tracked URLs."""
    if settings.public_base_url:
        return settings.public_base_url.rstrip("/")
    return str(request.base_url).rstrip("/")


def client_ip(request: Request) -> str:
    """First X-Forwarded-For hop, falling back to the socket peer."""
    forwarded = request.headers.get("x-forwarded-for", "")
    first = forwarded.split(",")[0].strip()
    if first:
        return first
    return request.client.host if request.client else ""
