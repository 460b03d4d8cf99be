"""Read-side aggregates over the event log and identity store.

All functions are pure reads of the collections they are given, except
that live counts go through the live-session tracker, which expires
stale entries as it reads.
"""

from collections import Counter
from collections.abc import Iterable
from datetime import datetime, timedelta, timezone
from urllib.parse import urlsplit

from leadtrace.schemas.dashboard import DashboardResponse, DayCount, PageCount, ReferrerCount
from leadtrace.schemas.event import Event
from leadtrace.schemas.site import SiteWithCounts
from leadtrace.schemas.visitor import (
    LiveResponse,
    LiveVisitor,
    TimelineSession,
    Visitor,
    VisitorDetailResponse,
)
from leadtrace.services.state import TrackerState

PERIODS = ("today", "7d", "30d", "all")
VISITOR_SORTS = ("lastSeen", "engagementScore", "totalPageviews")

TOP_PAGES_LIMIT = 10
TOP_REFERRERS_LIMIT = 10
DAILY_WINDOW_DAYS = 30
IDENTIFIED_RECENTLY_LIMIT = 10
RECENT_VISITORS_LIMIT = 20
TIMELINE_LIMIT = 200


def period_cutoff(period: str, now: datetime) -> datetime | None:
    """Earliest timestamp included by ``period``; None means no lower bound.

    ``today`` starts at local midnight.
    """
    if period == "all":
        return None
    if period == "today":
        return now.astimezone().replace(hour=0, minute=0, second=0, microsecond=0)
    if period == "7d":
        return now - timedelta(days=7)
    if period == "30d":
        return now - timedelta(days=30)
    raise ValueError(f"Unknown period {period!r}")


def filter_events(
    events: Iterable[Event], site_id: str | None = None, since: datetime | None = None
) -> list[Event]:
    return [
        e
        for e in events
        if (site_id is None or e.site_id == site_id) and (since is None or e.timestamp >= since)
    ]


def visitors_for_site(visitors: Iterable[Visitor], site_id: str | None) -> list[Visitor]:
    return [v for v in visitors if site_id is None or site_id in v.site_ids]


def top_pages(pageviews: Iterable[Event], limit: int = TOP_PAGES_LIMIT) -> list[PageCount]:
    """Most viewed paths. Ties keep first-seen order."""
    counts = Counter(e.page or "/" for e in pageviews)
    return [PageCount(path=path, views=views) for path, views in counts.most_common(limit)]


def referrer_host(referrer) -> str | None:
    if not referrer or not isinstance(referrer, str):
        return None
    try:
        return urlsplit(referrer).hostname or None
    except ValueError:
        return None


def top_referrers(pageviews: Iterable[Event], limit: int = TOP_REFERRERS_LIMIT) -> list[ReferrerCount]:
    counts: Counter[str] = Counter()
    for event in pageviews:
        host = referrer_host(event.data.get("referrer"))
        if host:
            counts[host] += 1
    return [ReferrerCount(referrer=host, count=count) for host, count in counts.most_common(limit)]


def visitors_by_day(
    pageviews: Iterable[Event], now: datetime, days: int = DAILY_WINDOW_DAYS
) -> list[DayCount]:
    """Unique visitors per calendar day over the last ``days`` days.

    The window ends on today in server local time, like the ``today``
    period. Days come from each event's own timestamp as the collector sent
    it, so an event is counted on the date local to its producer. Dates
    after today are left out; server-stamped events carry UTC, so the UTC
    date also counts as today.
    """
    today = now.astimezone().date()
    first_day = (today - timedelta(days=days - 1)).isoformat()
    last_day = max(today, now.astimezone(timezone.utc).date()).isoformat()
    per_day: dict[str, set[str]] = {}
    for event in pageviews:
        day = event.timestamp.date().isoformat()
        if first_day <= day <= last_day:
            per_day.setdefault(day, set()).add(event.visitor_id)
    return [DayCount(date=day, count=len(ids)) for day, ids in sorted(per_day.items())]


def recently_identified(
    visitors: Iterable[Visitor], limit: int = IDENTIFIED_RECENTLY_LIMIT
) -> list[Visitor]:
    identified = [v for v in visitors if v.identified]
    identified.sort(
        key=lambda v: v.identity.identified_at if v.identity else v.last_seen,
        reverse=True,
    )
    return identified[:limit]


def recent_visitors(visitors: Iterable[Visitor], limit: int = RECENT_VISITORS_LIMIT) -> list[Visitor]:
    return sorted(visitors, key=lambda v: v.last_seen, reverse=True)[:limit]


def list_visitors(
    visitors: Iterable[Visitor],
    site_id: str | None = None,
    identified: bool | None = None,
    sort: str = "lastSeen",
    offset: int = 0,
    limit: int = 50,
) -> tuple[list[Visitor], int]:
    """Filter, sort (descending) and paginate visitors; returns (page, total)."""
    if sort not in VISITOR_SORTS:
        raise ValueError(f"Unknown sort {sort!r}")
    matches = visitors_for_site(visitors, site_id)
    if identified is not None:
        matches = [v for v in matches if v.identified == identified]

    if sort == "engagementScore":
        matches.sort(key=lambda v: v.engagement_score, reverse=True)
    elif sort == "totalPageviews":
        matches.sort(key=lambda v: v.total_pageviews, reverse=True)
    else:
        matches.sort(key=lambda v: v.last_seen, reverse=True)

    return matches[offset : offset + limit], len(matches)


def visitor_detail(
    visitor: Visitor, events: Iterable[Event], limit: int = TIMELINE_LIMIT
) -> VisitorDetailResponse:
    """Newest-first timeline plus the visitor's events grouped by session.

    The timeline is capped at ``limit``; session groups cover every event
    still in the log, each starting at its earliest event.
    """
    timeline = sorted(
        (e for e in events if e.visitor_id == visitor.visitor_id),
        key=lambda e: e.timestamp,
        reverse=True,
    )
    grouped: dict[str | None, list[Event]] = {}
    for event in timeline:
        grouped.setdefault(event.session_id, []).append(event)

    sessions = [
        TimelineSession(
            session_id=session_id,
            start_time=min(e.timestamp for e in session_events),
            events=session_events,
        )
        for session_id, session_events in grouped.items()
    ]
    return VisitorDetailResponse(visitor=visitor, timeline=timeline[:limit], sessions=sessions)


def live_visitors(state: TrackerState, site_id: str | None = None) -> LiveResponse:
    active = []
    for visitor_id, session, idle_seconds in state.live.list_active(site_id):
        visitor = state.identities.get(visitor_id)
        if visitor is None:
            continue
        active.append(
            LiveVisitor(
                visitor_id=visitor_id,
                site_id=session.site_id,
                current_page=session.current_page,
                identified=visitor.identified,
                identity=visitor.identity,
                geo=visitor.geo,
                device=visitor.device,
                active_for=round(idle_seconds),
            )
        )
    return LiveResponse(active_visitors=active, count=len(active))


def site_summaries(state: TrackerState) -> list[SiteWithCounts]:
    visitor_counts: Counter[str] = Counter()
    for visitor in state.identities:
        visitor_counts.update(visitor.site_ids)
    pageview_counts = Counter(e.site_id for e in state.events if e.type == "pageview")
    return [
        SiteWithCounts(
            **site.model_dump(),
            visitor_count=visitor_counts[site.site_id],
            pageview_count=pageview_counts[site.site_id],
        )
        for site in state.sites
    ]


def build_dashboard(
    state: TrackerState, site_id: str | None, period: str, now: datetime
) -> DashboardResponse:
    """Dashboard aggregate for one site (or all) over ``period``.

    The period bounds the events considered; visitor totals cover every
    visitor seen on the site.
    """
    events = filter_events(state.events, site_id, period_cutoff(period, now))
    pageviews = [e for e in events if e.type == "pageview"]
    visitors = visitors_for_site(state.identities, site_id)

    return DashboardResponse(
        total_visitors=len(visitors),
        identified_visitors=sum(1 for v in visitors if v.identified),
        total_pageviews=len(pageviews),
        active_now=state.live.count_active(site_id),
        top_pages=top_pages(pageviews),
        top_referrers=top_referrers(pageviews),
        visitors_by_day=visitors_by_day(pageviews, now),
        identified_recently=recently_identified(visitors),
        recent_visitors=recent_visitors(visitors),
    )
