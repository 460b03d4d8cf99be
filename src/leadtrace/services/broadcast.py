"""Best-effort publish/subscribe fan-out for the live event stream.

Each subscriber owns a bounded queue. Publishing never blocks: a
subscriber whose queue is full is treated as a failed connection and
dropped, without affecting delivery to anyone else. Dropping discards its
backlog and queues ``None``, which ends its stream so the client reconnects.
"""

import asyncio
import json
import logging
from collections.abc import AsyncIterator

from leadtrace.services.ids import new_id

logger = logging.getLogger(__name__)

CONNECTED_FRAME = 'data: {"type":"connected"}\n\n'
KEEPALIVE_FRAME = ": keepalive\n\n"


def sse_frame(message: dict) -> str:
    return f"data: {json.dumps(message, separators=(',', ':'))}\n\n"


class Broadcaster:
    def __init__(self, queue_size: int = 100) -> None:
        self._queue_size = queue_size
        self._subscribers: dict[str, asyncio.Queue[str | None]] = {}

    def __len__(self) -> int:
        return len(self._subscribers)

    def subscribe(self) -> tuple[str, asyncio.Queue[str | None]]:
        subscriber_id = new_id("sub")
        queue: asyncio.Queue[str | None] = asyncio.Queue(maxsize=self._queue_size)
        self._subscribers[subscriber_id] = queue
        logger.debug("Stream subscriber %s connected", subscriber_id)
        return subscriber_id, queue

    def unsubscribe(self, subscriber_id: str) -> None:
        if self._subscribers.pop(subscriber_id, None) is not None:
            logger.debug("Stream subscriber %s disconnected", subscriber_id)

    def _drop(self, subscriber_id: str, queue: asyncio.Queue[str | None]) -> None:
        logger.warning("Dropping stalled stream subscriber %s", subscriber_id)
        self._subscribers.pop(subscriber_id, None)
        while not queue.empty():
            queue.get_nowait()
        queue.put_nowait(None)

    def publish(self, message: dict) -> int:
        """Queue ``message`` for every subscriber; return how many received it."""
        frame = sse_frame(message)
        delivered = 0
        for subscriber_id, queue in list(self._subscribers.items()):
            try:
                queue.put_nowait(frame)
            except asyncio.QueueFull:
                self._drop(subscriber_id, queue)
                continue
            delivered += 1
        return delivered


async def event_stream(
    broadcaster: Broadcaster,
    subscriber_id: str,
    queue: asyncio.Queue[str | None],
    keepalive_seconds: float = 15.0,
) -> AsyncIterator[str]:
    """Yield SSE frames for one subscriber.

    Ends when the transport closes it or the broadcaster drops the subscriber.
    """
    try:
        yield CONNECTED_FRAME
        while True:
            try:
                frame = await asyncio.wait_for(queue.get(), timeout=keepalive_seconds)
            except asyncio.TimeoutError:
                yield KEEPALIVE_FRAME
                continue
            if frame is None:
                return
            yield frame
    finally:
        broadcaster.unsubscribe(subscriber_id)
