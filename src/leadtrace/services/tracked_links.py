"""Tracked-link registry and redirect resolver."""

from datetime import datetime
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from leadtrace.schemas.link import TrackedLink, TrackedLinkCreate
from leadtrace.services.ids import new_id
from leadtrace.services.store import RecordStore

# Query parameter the collector reads on the destination page
TRACKING_PARAM = "_bvt"


class LinkNotFoundError(LookupError):
    """Raised when a tracked-link token does not exist."""


def with_tracking_param(url: str, link_id: str) -> str:
    """Return ``url`` with the tracking parameter set to ``link_id``."""
    parts = urlsplit(url)
    query = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k != TRACKING_PARAM]
    query.append((TRACKING_PARAM, link_id))
    return urlunsplit(parts._replace(query=urlencode(query)))


class TrackedLinkRegistry(RecordStore[TrackedLink]):
    """Links keyed by their opaque token."""

    model = TrackedLink
    key_field = "link_id"

    def create(self, body: TrackedLinkCreate, base_url: str, now: datetime) -> TrackedLink:
        link_id = new_id("tl")
        link = TrackedLink(
            link_id=link_id,
            site_id=body.site_id,
            original_url=body.original_url,
            tracked_url=f"{base_url}/t/{link_id}",
            lead_info=body.lead,
            message_type=body.message_type or "email",
            created_at=now,
        )
        return self.add(link)

    def record_click(self, link: TrackedLink, now: datetime) -> None:
        link.clicks += 1
        link.last_clicked = now

    def resolve(self, link_id: str, now: datetime) -> str:
        """Count a click and return the redirect target.

        Raises:
            LinkNotFoundError: if no link has this token. No state changes.
        """
        link = self.get(link_id)
        if link is None:
            raise LinkNotFoundError(link_id)
        self.record_click(link, now)
        return with_tracking_param(link.original_url, link.link_id)

    def newest_first(self, site_id: str | None = None) -> list[TrackedLink]:
        """Links newest first, optionally restricted to one site."""
        links = [link for link in self if site_id is None or link.site_id == site_id]
        return sorted(links, key=lambda link: link.created_at, reverse=True)
