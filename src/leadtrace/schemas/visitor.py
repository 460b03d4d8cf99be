"""Schemas for visitor identity records and visitor queries."""

from datetime import datetime

from pydantic import Field

from leadtrace.schemas.base import CamelModel
from leadtrace.schemas.event import Event


class Geo(CamelModel):
    """Location resolved once from the visitor's first IP address."""

    ip: str = ""
    city: str = ""
    region: str = ""
    country: str = ""
    lat: float = 0.0
    lng: float = 0.0
    org: str = ""
    asn: str = ""


class Device(CamelModel):
    browser: str = "Other"
    os: str = "Other"
    device_type: str = "desktop"
    screen_resolution: str = ""


class Company(CamelModel):
    name: str = ""
    domain: str = ""


class Identity(CamelModel):
    """Known-lead identity bound to a visitor through a tracked link."""

    name: str | None = None
    email: str | None = None
    company: str | None = None
    title: str | None = None
    linkedin_url: str | None = None
    identified_at: datetime
    source: str | None = None


class Visitor(CamelModel):
    """One inferred physical visitor, keyed by fingerprint hash."""

    visitor_id: str
    fingerprint_hash: str
    identified: bool = False
    identity: Identity | None = None
    first_seen: datetime
    last_seen: datetime
    total_sessions: int = 1
    total_pageviews: int = 0
    engagement_score: int = 0
    geo: Geo = Field(default_factory=Geo)
    company: Company = Field(default_factory=Company)
    device: Device = Field(default_factory=Device)
    site_ids: list[str] = Field(default_factory=list)
    sessions: list[str] = Field(default_factory=list)


class VisitorSummary(CamelModel):
    """Redacted view of a visitor attached to broadcast events."""

    visitor_id: str
    identified: bool
    identity: Identity | None = None
    geo: Geo
    device: Device


class VisitorListResponse(CamelModel):
    visitors: list[Visitor]
    total: int


class TimelineSession(CamelModel):
    session_id: str | None = None
    start_time: datetime
    events: list[Event]


class VisitorDetailResponse(CamelModel):
    visitor: Visitor
    timeline: list[Event]
    sessions: list[TimelineSession]


class LiveVisitor(CamelModel):
    visitor_id: str
    site_id: str
    current_page: str
    identified: bool
    identity: Identity | None = None
    geo: Geo
    device: Device
    active_for: int


class LiveResponse(CamelModel):
    active_visitors: list[LiveVisitor]
    count: int

