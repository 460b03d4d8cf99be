"""Ephemeral map of visitors active within a recent window."""

import time
from collections.abc import Callable
from dataclasses import dataclass


@dataclass
class LiveSession:
    last_activity: float
    current_page: str
    site_id: str


class LiveSessionTracker:
    """Last activity per visitor, expired lazily on read.

    There is no cleanup task: every read first drops entries older than
    the inactivity window, whether or not they match the read's filter.
    """

    def __init__(self, window_seconds: float = 300, clock: Callable[[], float] = time.time) -> None:
        self.window_seconds = window_seconds
        self._clock = clock
        self._sessions: dict[str, LiveSession] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def touch(self, visitor_id: str, current_page: str, site_id: str) -> None:
        self._sessions[visitor_id] = LiveSession(self._clock(), current_page, site_id)

    def _evict(self, now: float) -> None:
        cutoff = now - self.window_seconds
        for visitor_id in [v for v, s in self._sessions.items() if s.last_activity < cutoff]:
            del self._sessions[visitor_id]

    def list_active(self, site_id: str | None = None) -> list[tuple[str, LiveSession, float]]:
        """Return ``(visitor_id, session, seconds_since_activity)`` for active visitors."""
        now = self._clock()
        self._evict(now)
        return [
            (visitor_id, session, now - session.last_activity)
            for visitor_id, session in self._sessions.items()
            if site_id is None or session.site_id == site_id
        ]

    def count_active(self, site_id: str | None = None) -> int:
        return len(self.list_active(site_id))
