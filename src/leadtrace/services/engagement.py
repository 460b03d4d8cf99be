"""Engagement scoring - a 0-100 composite of recency, frequency and intent."""

import math
import re
from collections.abc import Iterable
from datetime import datetime

from leadtrace.schemas.event import Event
from leadtrace.schemas.visitor import Visitor

RECENCY_MAX = 25.0
RECENCY_DECAY_PER_HOUR = 0.5
FREQUENCY_MAX = 25.0
FREQUENCY_PER_SESSION = 5.0
DEPTH_MAX = 15.0
DEPTH_PER_PAGE = 3.0
SCROLL_MAX = 10.0
INTENT_BONUS = 15.0
IDENTIFIED_BONUS = 10.0
SCORE_MAX = 100

HIGH_INTENT_PATTERN = re.compile(r"contact|pricing|demo|services|consultation", re.IGNORECASE)


def _scroll_depth(event: Event) -> float | None:
    value = event.data.get("scrollDepth")
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def recency_points(last_seen: datetime, now: datetime) -> float:
    hours_since = max(0.0, (now - last_seen).total_seconds() / 3600)
    return max(0.0, RECENCY_MAX - hours_since * RECENCY_DECAY_PER_HOUR)


def compute_engagement(visitor: Visitor, events: Iterable[Event], now: datetime) -> int:
    """Score a visitor from its counters and its events in the log.

    ``events`` may hold other visitors' events; only this visitor's are used.
    """
    score = recency_points(visitor.last_seen, now)
    score += min(FREQUENCY_MAX, visitor.total_sessions * FREQUENCY_PER_SESSION)

    avg_pages = visitor.total_pageviews / max(1, visitor.total_sessions)
    score += min(DEPTH_MAX, avg_pages * DEPTH_PER_PAGE)

    depths: list[float] = []
    high_intent = False
    for event in events:
        if event.visitor_id != visitor.visitor_id:
            continue
        if event.type == "exit":
            depth = _scroll_depth(event)
            if depth is not None:
                depths.append(depth)
        path = event.data.get("path")
        if not high_intent and isinstance(path, str) and HIGH_INTENT_PATTERN.search(path):
            high_intent = True

    if depths:
        score += min(SCROLL_MAX, (sum(depths) / len(depths)) / 10)
    if high_intent:
        score += INTENT_BONUS
    if visitor.identified:
        score += IDENTIFIED_BONUS

    # Round half up
    return max(0, min(SCORE_MAX, math.floor(score + 0.5)))
