"""Schemas for the /api/track beacon endpoint."""

from datetime import datetime, timezone
from typing import Any

from pydantic import Field, field_validator

from leadtrace.schemas.base import CamelModel


class TrackPayload(CamelModel):
    """Beacon body sent by the embedded collector.

    Every field is optional here: missing required values are detected by
    the ingestion pipeline, which drops the beacon silently instead of
    answering with a validation error.
    """

    site_id: str | None = Field(default=None, max_length=64)
    fingerprint: str | None = Field(default=None, max_length=128)
    session_id: str | None = Field(default=None, max_length=64)
    type: str | None = Field(default=None, max_length=32)
    timestamp: datetime | None = None
    data: dict[str, Any] = Field(default_factory=dict)

    @field_validator("timestamp", mode="before")
    @classmethod
    def lenient_timestamp(cls, value):
        """Accept ISO strings or epoch milliseconds; anything else means 'now'."""
        if value is None or isinstance(value, datetime):
            return value
        if isinstance(value, bool):
            return None
        if isinstance(value, (int, float)):
            try:
                return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
            except (OverflowError, OSError, ValueError):
                return None
        if isinstance(value, str):
            try:
                parsed = datetime.fromisoformat(value)
            except ValueError:
                return None
            if parsed.tzinfo is None:
                parsed = parsed.replace(tzinfo=timezone.utc)
            return parsed
        return None

    @field_validator("data", mode="before")
    @classmethod
    def coerce_data(cls, value):
        return value if isinstance(value, dict) else {}
