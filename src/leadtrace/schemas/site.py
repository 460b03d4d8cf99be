"""Schemas for site management endpoints."""

from datetime import datetime

from pydantic import Field, field_validator

from leadtrace.schemas.base import CamelModel


class SiteCreate(CamelModel):
    """Request body for registering a tracked site."""

    name: str = Field(min_length=1, max_length=255)
    domain: str = Field(min_length=1, max_length=255)

    @field_validator("domain")
    @classmethod
    def strip_scheme(cls, value: str) -> str:
        for prefix in ("https://", "http://"):
            if value.startswith(prefix):
                value = value[len(prefix):]
                break
        return value.rstrip("/")


class Site(CamelModel):
    """A registered tracked property."""

    site_id: str
    name: str
    domain: str
    created_at: datetime
    tracking_snippet: str


class SiteWithCounts(Site):
    visitor_count: int = 0
    pageview_count: int = 0


class SiteListResponse(CamelModel):
    sites: list[SiteWithCounts]
