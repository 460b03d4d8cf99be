"""Process-wide tracker state owned by one application instance."""

import asyncio
import logging

from leadtrace.config import Settings
from leadtrace.services.broadcast import Broadcaster
from leadtrace.services.event_log import EventLog
from leadtrace.services.geolocation import GeoLocator
from leadtrace.services.identity_store import IdentityStore
from leadtrace.services.live_sessions import LiveSessionTracker
from leadtrace.services.persistence import FlushScheduler, Snapshot, StateRepository
from leadtrace.services.sites import SiteRegistry
from leadtrace.services.tracked_links import TrackedLinkRegistry

logger = logging.getLogger(__name__)


class TrackerState:
    """All mutable collections plus their load/flush boundary.

    Ingestion updates go through ``lock`` so two beacons never interleave
    their updates. Nothing awaits while holding it. Reads and link
    resolution run without awaiting and need no lock.
    """

    def __init__(
        self,
        settings: Settings,
        repository: StateRepository | None = None,
        geolocator: GeoLocator | None = None,
        live_sessions: LiveSessionTracker | None = None,
    ) -> None:
        self.settings = settings
        self.sites = SiteRegistry()
        self.identities = IdentityStore()
        self.events = EventLog(settings.event_buffer_max)
        self.links = TrackedLinkRegistry()
        self.live = live_sessions or LiveSessionTracker(settings.live_window_seconds)
        self.broadcaster = Broadcaster(settings.stream_queue_size)
        self.geolocator = geolocator or GeoLocator(
            settings.geo_lookup_url, timeout=settings.geo_timeout_seconds
        )
        self.repository = repository
        self.flusher = FlushScheduler(self.flush, settings.persist_delay_seconds)
        self.lock = asyncio.Lock()

    def snapshot(self) -> Snapshot:
        return Snapshot(
            sites=self.sites.to_pairs(),
            visitors=self.identities.to_pairs(),
            events=self.events.to_list(),
            tracked_links=self.links.to_pairs(),
        )

    def restore(self, snapshot: Snapshot) -> None:
        self.sites.load_pairs(snapshot.sites)
        self.identities.load_pairs(snapshot.visitors)
        try:
            self.events.load(snapshot.events)
        except ValueError:
            logger.warning("Persisted events unreadable; starting with an empty log", exc_info=True)
            self.events.load([])
        self.links.load_pairs(snapshot.tracked_links)

    async def load(self) -> None:
        if self.repository is None:
            return
        self.restore(await self.repository.load())
        logger.info(
            "Loaded %d sites, %d visitors, %d events, %d tracked links",
            len(self.sites),
            len(self.identities),
            len(self.events),
            len(self.links),
        )

    async def flush(self) -> None:
        if self.repository is None:
            return
        # Serialized synchronously, so no ingestion can interleave
        await self.repository.save(self.snapshot())
        logger.debug("Flushed tracker state")

    def mark_dirty(self) -> None:
        self.flusher.mark_dirty()

    async def close(self) -> None:
        """Cancel the pending flush, write once more and release clients."""
        self.flusher.cancel()
        await self.flusher.flush_now()
        await self.geolocator.aclose()
