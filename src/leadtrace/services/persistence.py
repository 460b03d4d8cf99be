"""Load/save boundary for tracker state and the debounced flush task."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncEngine

from leadtrace.db.engine import session_factory
from leadtrace.models import EventRow, SiteRow, TrackedLinkRow, VisitorRow

logger = logging.getLogger(__name__)


@dataclass
class Snapshot:
    """Serializable form of the four persisted collections."""

    sites: list[tuple[str, dict]] = field(default_factory=list)
    visitors: list[tuple[str, dict]] = field(default_factory=list)
    events: list[dict] = field(default_factory=list)
    tracked_links: list[tuple[str, dict]] = field(default_factory=list)


class StateRepository:
    """Stores snapshots in four SQL tables, one JSON payload per row."""

    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine
        self._sessions = session_factory(engine)

    async def _load_pairs(self, row_type, key_column) -> list[tuple[str, dict]]:
        try:
            async with self._sessions() as session:
                result = await session.execute(select(row_type))
                return [(getattr(row, key_column), row.data) for row in result.scalars()]
        except Exception:
            logger.warning("Could not load %s; starting empty", row_type.__tablename__, exc_info=True)
            return []

    async def _load_events(self) -> list[dict]:
        try:
            async with self._sessions() as session:
                result = await session.execute(select(EventRow).order_by(EventRow.position))
                return [row.data for row in result.scalars()]
        except Exception:
            logger.warning("Could not load events; starting empty", exc_info=True)
            return []

    async def load(self) -> Snapshot:
        """Read every collection; an unreadable one comes back empty."""
        return Snapshot(
            sites=await self._load_pairs(SiteRow, "site_id"),
            visitors=await self._load_pairs(VisitorRow, "visitor_id"),
            events=await self._load_events(),
            tracked_links=await self._load_pairs(TrackedLinkRow, "link_id"),
        )

    async def save(self, snapshot: Snapshot) -> None:
        """Replace all stored collections with ``snapshot`` in one transaction."""
        async with self._sessions() as session:
            async with session.begin():
                for row_type in (SiteRow, VisitorRow, EventRow, TrackedLinkRow):
                    await session.execute(delete(row_type))
                session.add_all(SiteRow(site_id=k, data=v) for k, v in snapshot.sites)
                session.add_all(VisitorRow(visitor_id=k, data=v) for k, v in snapshot.visitors)
                session.add_all(
                    EventRow(position=i, event_id=e["eventId"], data=e)
                    for i, e in enumerate(snapshot.events)
                )
                session.add_all(
                    TrackedLinkRow(link_id=k, data=v) for k, v in snapshot.tracked_links
                )


class FlushScheduler:
    """Dirty flag plus a single delayed flush task.

    The first ``mark_dirty`` after an idle period arms a flush that runs
    ``delay_seconds`` later; further marks before it fires are absorbed.
    """

    def __init__(self, flush: Callable[[], Awaitable[None]], delay_seconds: float = 30.0) -> None:
        self._flush = flush
        self.delay_seconds = delay_seconds
        self._dirty = False
        self._task: asyncio.Task | None = None

    @property
    def dirty(self) -> bool:
        return self._dirty

    @property
    def pending(self) -> bool:
        return self._task is not None and not self._task.done()

    def mark_dirty(self) -> None:
        self._dirty = True
        if not self.pending:
            self._task = asyncio.create_task(self._delayed_flush())

    async def _delayed_flush(self) -> None:
        await asyncio.sleep(self.delay_seconds)
        # Marks made while writing arm a fresh flush
        self._task = None
        await self.flush_now()

    async def flush_now(self) -> bool:
        """Write pending changes now. Returns False if nothing was written."""
        if not self._dirty:
            return False
        self._dirty = False
        try:
            await self._flush()
        except Exception:
            # Stay dirty; the next mutation re-arms the flush
            logger.exception("State flush failed")
            self._dirty = True
            return False
        return True

    def cancel(self) -> None:
        if self.pending:
            self._task.cancel()
        self._task = None
