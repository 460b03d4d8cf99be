"""Registry of tracked sites."""

from datetime import datetime

from leadtrace.schemas.site import Site, SiteCreate
from leadtrace.services.ids import new_id
from leadtrace.services.store import RecordStore


def tracking_snippet(base_url: str, site_id: str) -> str:
    """Embed tag a site owner pastes into their pages."""
    return f'<script src="{base_url}/tracker.js?sid={site_id}" async></script>'


class SiteRegistry(RecordStore[Site]):
    model = Site
    key_field = "site_id"

    def create(self, body: SiteCreate, base_url: str, now: datetime) -> Site:
        site_id = new_id("s")
        site = Site(
            site_id=site_id,
            name=body.name,
            domain=body.domain,
            created_at=now,
            tracking_snippet=tracking_snippet(base_url, site_id),
        )
        return self.add(site)
