"""Append-only bounded buffer of raw events."""

from collections import deque
from collections.abc import Iterator

from leadtrace.schemas.event import Event


class EventLog:
    """FIFO event buffer holding at most ``capacity`` events.

    Appending past capacity evicts the oldest events first. Events are
    never mutated or individually removed.
    """

    def __init__(self, capacity: int) -> None:
        if capacity < 1:
            raise ValueError("capacity must be positive")
        self.capacity = capacity
        self._events: deque[Event] = deque(maxlen=capacity)

    def __len__(self) -> int:
        return len(self._events)

    def __iter__(self) -> Iterator[Event]:
        return iter(list(self._events))

    def append(self, event: Event) -> None:
        self._events.append(event)

    def for_visitor(self, visitor_id: str) -> list[Event]:
        return [e for e in self._events if e.visitor_id == visitor_id]

    def to_list(self) -> list[dict]:
        return [e.model_dump(mode="json", by_alias=True) for e in self._events]

    def load(self, items) -> int:
        """Replace contents; only the newest ``capacity`` items are kept."""
        self._events.clear()
        for item in items:
            self._events.append(Event.model_validate(item))
        return len(self._events)
