"""Schemas for tracked outreach links."""

from datetime import datetime
from urllib.parse import urlsplit

from pydantic import Field, field_validator

from leadtrace.schemas.base import CamelModel


class LeadInfo(CamelModel):
    """Known identity of the lead an outreach link was generated for."""

    name: str | None = None
    email: str | None = None
    company: str | None = None
    title: str | None = None
    linkedin_url: str | None = None


class TrackedLinkCreate(CamelModel):
    site_id: str | None = Field(default=None, max_length=64)
    original_url: str = Field(min_length=1, max_length=2048)
    lead: LeadInfo
    message_type: str | None = Field(default=None, max_length=64)

    @field_validator("original_url")
    @classmethod
    def absolute_http_url(cls, value: str) -> str:
        parts = urlsplit(value)
        if parts.scheme not in ("http", "https") or not parts.netloc:
            raise ValueError("originalUrl must be an absolute http(s) URL")
        return value


class TrackedLink(CamelModel):
    """Correlation token bridging an outbound message to inbound traffic."""

    link_id: str
    site_id: str | None = None
    original_url: str
    tracked_url: str
    lead_info: LeadInfo | None = None
    message_type: str = "email"
    created_at: datetime
    clicks: int = 0
    last_clicked: datetime | None = None


class TrackedLinkListResponse(CamelModel):
    links: list[TrackedLink]
