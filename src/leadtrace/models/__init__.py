"""SQLAlchemy ORM models for the persisted snapshot."""

from leadtrace.models.base import Base
from leadtrace.models.snapshot import EventRow, SiteRow, TrackedLinkRow, VisitorRow

__all__ = [
    "Base",
    "SiteRow",
    "VisitorRow",
    "EventRow",
    "TrackedLinkRow",
]
