"""Schemas for raw collector events."""

from datetime import datetime
from typing import Any, Literal

from pydantic import Field

from leadtrace.schemas.base import CamelModel

EventType = Literal["pageview", "exit", "click"]
EVENT_TYPES: frozenset[str] = frozenset({"pageview", "exit", "click"})


class Event(CamelModel):
    """Immutable fact appended to the event log."""

    event_id: str
    site_id: str
    visitor_id: str
    session_id: str | None = None
    type: EventType
    timestamp: datetime
    data: dict[str, Any] = Field(default_factory=dict)

    model_config = {"frozen": True}

    @property
    def page(self) -> str:
        """Path reported by the collector, falling back to the full URL."""
        value = self.data.get("path") or self.data.get("url")
        return str(value) if value else ""
