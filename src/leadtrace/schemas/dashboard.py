"""Schemas for the dashboard aggregate."""

from leadtrace.schemas.base import CamelModel
from leadtrace.schemas.visitor import Visitor


class PageCount(CamelModel):
    path: str
    views: int


class ReferrerCount(CamelModel):
    referrer: str
    count: int


class DayCount(CamelModel):
    date: str
    count: int


class DashboardResponse(CamelModel):
    total_visitors: int
    identified_visitors: int
    total_pageviews: int
    active_now: int
    top_pages: list[PageCount]
    top_referrers: list[ReferrerCount]
    visitors_by_day: list[DayCount]
    identified_recently: list[Visitor]
    recent_visitors: list[Visitor]
