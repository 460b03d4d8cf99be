"""Snapshot tables - one row per record, keyed by the record id.

Each table mirrors one in-memory collection. Rows are replaced wholesale
on every flush, so there are no foreign keys: events may reference sites
or visitors that no longer exist.
"""

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from leadtrace.db.types import JSONType
from leadtrace.models.base import Base


class SiteRow(Base):
    __tablename__ = "sites"

    site_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    data: Mapped[dict] = mapped_column(JSONType, nullable=False)


class VisitorRow(Base):
    __tablename__ = "visitors"

    visitor_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    data: Mapped[dict] = mapped_column(JSONType, nullable=False)


class EventRow(Base):
    __tablename__ = "events"

    # Insertion order of the event log
    position: Mapped[int] = mapped_column(Integer, primary_key=True)
    event_id: Mapped[str] = mapped_column(String(64), nullable=False)
    data: Mapped[dict] = mapped_column(JSONType, nullable=False)


class TrackedLinkRow(Base):
    __tablename__ = "tracked_links"

    link_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    data: Mapped[dict] = mapped_column(JSONType, nullable=False)
