"""Ingestion pipeline - the single write path for collector beacons."""

import logging
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

from leadtrace.schemas.event import EVENT_TYPES, Event
from leadtrace.schemas.visitor import Company, Geo, Identity, Visitor, VisitorSummary
from leadtrace.services.device import detect_device
from leadtrace.services.engagement import compute_engagement
from leadtrace.services.geolocation import UNKNOWN_GEO
from leadtrace.services.ids import new_id
from leadtrace.services.state import TrackerState

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class IngestionPipeline:
    """Resolve the visitor for a beacon and fold the event into shared state.

    The caller has already acknowledged the beacon, so nothing here may
    raise back to it: use ``ingest_safely`` from request handlers.
    """

    def __init__(self, state: TrackerState, clock: Callable[[], datetime] = _utcnow) -> None:
        self.state = state
        self._clock = clock

    async def ingest_safely(self, **kwargs: Any) -> None:
        try:
            await self.ingest(**kwargs)
        except Exception:
            logger.exception("Dropped beacon for site %s", kwargs.get("site_id"))

    async def ingest(
        self,
        site_id: str | None,
        fingerprint: str | None,
        session_id: str | None,
        event_type: str | None,
        timestamp: datetime | None = None,
        payload: dict[str, Any] | None = None,
        client_ip: str = "",
        user_agent: str | None = None,
    ) -> Event | None:
        """Process one beacon. Returns the stored event, or None if dropped."""
        if not site_id or not fingerprint or not event_type:
            logger.debug("Ignoring beacon missing site, fingerprint or type")
            return None
        if event_type not in EVENT_TYPES:
            logger.debug("Ignoring beacon with unknown type %r", event_type)
            return None

        data = payload or {}
        state = self.state

        # Resolved before taking the lock so no writer waits on the lookup
        geo = None
        if state.identities.find_by_fingerprint(fingerprint) is None:
            geo = await state.geolocator.locate(client_ip)

        async with state.lock:
            now = self._clock()
            occurred_at = timestamp or now

            visitor = state.identities.find_by_fingerprint(fingerprint)
            if visitor is None:
                if geo is None:
                    # Removed since the check above; no lookup under the lock
                    geo = Geo(ip=client_ip, **UNKNOWN_GEO)
                visitor = self._create_visitor(
                    fingerprint, site_id, session_id, occurred_at, data, geo, user_agent
                )
            else:
                self._touch_visitor(visitor, site_id, session_id, occurred_at)

            if event_type == "pageview":
                visitor.total_pageviews += 1

            tracking_id = data.get("trackingId")
            if tracking_id:
                self._identify(visitor, str(tracking_id), now)

            history = state.events.for_visitor(visitor.visitor_id)
            visitor.engagement_score = compute_engagement(visitor, history, now)

            event = Event(
                event_id=new_id("e"),
                site_id=site_id,
                visitor_id=visitor.visitor_id,
                session_id=session_id,
                type=event_type,
                timestamp=occurred_at,
                data=data,
            )
            state.events.append(event)

            state.live.touch(visitor.visitor_id, event.page, site_id)

            state.broadcaster.publish(self._broadcast_message(event, visitor))
            state.mark_dirty()

        return event

    def _create_visitor(
        self,
        fingerprint: str,
        site_id: str,
        session_id: str | None,
        occurred_at: datetime,
        data: dict[str, Any],
        geo: Geo,
        user_agent: str | None,
    ) -> Visitor:
        visitor = Visitor(
            visitor_id=new_id("v"),
            fingerprint_hash=fingerprint,
            first_seen=occurred_at,
            last_seen=occurred_at,
            total_sessions=1 if session_id else 0,
            total_pageviews=0,
            geo=geo,
            company=Company(name=geo.org),
            device=detect_device(user_agent, data),
            site_ids=[site_id],
            sessions=[session_id] if session_id else [],
        )
        self.state.identities.add(visitor)
        logger.info("New visitor %s on site %s", visitor.visitor_id, site_id)
        return visitor

    @staticmethod
    def _touch_visitor(
        visitor: Visitor, site_id: str, session_id: str | None, occurred_at: datetime
    ) -> None:
        if occurred_at > visitor.last_seen:
            visitor.last_seen = occurred_at
        if session_id and session_id not in visitor.sessions:
            visitor.sessions.append(session_id)
            visitor.total_sessions += 1
        if site_id not in visitor.site_ids:
            visitor.site_ids.append(site_id)

    def _identify(self, visitor: Visitor, tracking_id: str, now: datetime) -> None:
        link = self.state.links.get(tracking_id)
        if link is None or link.lead_info is None:
            return
        if not visitor.identified:
            visitor.identified = True
            visitor.identity = Identity(
                **link.lead_info.model_dump(),
                identified_at=now,
                source=link.message_type,
            )
            logger.info("Visitor %s identified via link %s", visitor.visitor_id, link.link_id)
        self.state.links.record_click(link, now)

    @staticmethod
    def _broadcast_message(event: Event, visitor: Visitor) -> dict:
        summary = VisitorSummary(
            visitor_id=visitor.visitor_id,
            identified=visitor.identified,
            identity=visitor.identity,
            geo=visitor.geo,
            device=visitor.device,
        )
        body = event.model_dump(mode="json", by_alias=True)
        body["visitor"] = summary.model_dump(mode="json", by_alias=True)
        return {"type": "event", "event": body}
