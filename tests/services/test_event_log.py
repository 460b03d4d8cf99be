"""Tests for leadtrace.services.event_log."""

from datetime import datetime, timezone

import pytest

from leadtrace.schemas.event import Event
from leadtrace.services.event_log import EventLog

TS = datetime(2026, 1, 1, tzinfo=timezone.utc)


def _event(n: int, visitor_id: str = "v_1", site_id: str = "s_1") -> Event:
    return Event(
        event_id=f"e_{n}",
        site_id=site_id,
        visitor_id=visitor_id,
        session_id="a",
        type="pageview",
        timestamp=TS,
    )


class TestEventLog:
    def test_rejects_non_positive_capacity(self):
        with pytest.raises(ValueError):
            EventLog(0)

    def test_appends_in_order(self):
        log = EventLog(10)
        for n in range(3):
            log.append(_event(n))
        assert [e.event_id for e in log] == ["e_0", "e_1", "e_2"]

    def test_never_exceeds_capacity(self):
        log = EventLog(5)
        for n in range(12):
            log.append(_event(n))
            assert len(log) <= 5

    def test_keeps_most_recent_after_overflow(self):
        log = EventLog(3)
        for n in range(7):
            log.append(_event(n))
        assert [e.event_id for e in log] == ["e_4", "e_5", "e_6"]

    def test_for_visitor(self):
        log = EventLog(10)
        log.append(_event(1, visitor_id="v_a", site_id="s_x"))
        log.append(_event(2, visitor_id="v_b", site_id="s_x"))
        log.append(_event(3, visitor_id="v_a", site_id="s_y"))
        assert [e.event_id for e in log.for_visitor("v_a")] == ["e_1", "e_3"]

    def test_events_are_immutable(self):
        event = _event(1)
        with pytest.raises(ValueError):
            event.type = "exit"

    def test_load_truncates_to_capacity(self):
        source = EventLog(10)
        for n in range(6):
            source.append(_event(n))
        target = EventLog(4)
        assert target.load(source.to_list()) == 4
        assert [e.event_id for e in target] == ["e_2", "e_3", "e_4", "e_5"]

    def test_to_list_uses_camel_case(self):
        log = EventLog(2)
        log.append(_event(1))
        item = log.to_list()[0]
        assert item["eventId"] == "e_1"
        assert item["visitorId"] == "v_1"
