import asyncio
import json
import logging
import os
import threading
from collections.abc import AsyncIterator, Awaitable, Callable
from datetime import date, datetime
from typing import Any

from signage.timeutil import isoformat_utc

logger = logging.getLogger(__name__)

STREAM_KEEPALIVE_SEC = float(os.getenv("SIGNAGE_STREAM_KEEPALIVE_SEC", "15"))
CONNECTED_COMMENT = ": connected\n\n"
KEEPALIVE_COMMENT = ": keepalive\n\n"

Listener = Callable[[dict[str, Any]], None]

# Delivered once to every listener when the bus shuts down; never sent to clients.
BUS_CLOSED: dict[str, Any] = {"type": "bus:closed"}


def screen_channel(screen_id: str) -> str:
    return f"screen:{screen_id}"


class NotificationBus:
    """In-process fan-out of change events keyed by channel.

    Delivery is synchronous, best-effort and at-most-once: a listener that is
    not subscribed when `publish` runs never sees the event. Swapping this for
    a broker-backed implementation only has to keep these four methods.
    """

    def __init__(self) -> None:
        self._listeners: dict[str, list[Listener]] = {}
        self._lock = threading.Lock()
        self._closed = False

    def subscribe(self, channel: str, listener: Listener) -> None:
        with self._lock:
            if self._closed:
                raise RuntimeError("Notification bus is closed")
            listeners = self._listeners.setdefault(channel, [])
            if listener not in listeners:
                listeners.append(listener)

    def unsubscribe(self, channel: str, listener: Listener) -> None:
        with self._lock:
            listeners = self._listeners.get(channel)
            if not listeners:
                return
            if listener in listeners:
                listeners.remove(listener)
            if not listeners:
                del self._listeners[channel]

    def publish(self, channel: str, event: dict[str, Any]) -> int:
        with self._lock:
            listeners = list(self._listeners.get(channel, ()))

        delivered = 0
        stale: list[Listener] = []
        for listener in listeners:
            try:
                listener(event)
                delivered += 1
            except Exception:
                logger.exception("Listener on %s failed, dropping it", channel)
                stale.append(listener)

        for listener in stale:
            self.unsubscribe(channel, listener)
        logger.debug("Published %s on %s to %d listener(s)", event.get("type"), channel, delivered)
        return delivered

    def publish_to_screens(self, screen_ids, event: dict[str, Any]) -> int:
        delivered = 0
        for screen_id in sorted({str(sid) for sid in screen_ids}):
            delivered += self.publish(screen_channel(screen_id), event)
        return delivered

    def listener_count(self, channel: str) -> int:
        with self._lock:
            return len(self._listeners.get(channel, ()))

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Stop accepting subscribers and tell current listeners the bus is gone."""
        with self._lock:
            self._closed = True
            listeners = [item for items in self._listeners.values() for item in items]
            self._listeners.clear()
        for listener in listeners:
            try:
                listener(BUS_CLOSED)
            except Exception:
                logger.exception("Listener failed during bus shutdown")


def _json_default(value: Any) -> Any:
    if isinstance(value, datetime):
        return isoformat_utc(value)
    if isinstance(value, date):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def format_sse(event: dict[str, Any]) -> str:
    return f"data: {json.dumps(event, default=_json_default)}\n\n"


async def screen_event_stream(
    bus: NotificationBus,
    screen_id: str,
    is_disconnected: Callable[[], Awaitable[bool]],
    keepalive_sec: float = STREAM_KEEPALIVE_SEC,
) -> AsyncIterator[str]:
    loop = asyncio.get_running_loop()
    queue: asyncio.Queue[dict[str, Any]] = asyncio.Queue()
    channel = screen_channel(screen_id)

    # publish() is called from worker threads, so hand events to the loop thread.
    def listener(event: dict[str, Any]) -> None:
        loop.call_soon_threadsafe(queue.put_nowait, event)

    bus.subscribe(channel, listener)
    logger.info("Event stream opened for %s", channel)
    try:
        yield CONNECTED_COMMENT
        while not bus.closed:
            try:
                event = await asyncio.wait_for(queue.get(), timeout=keepalive_sec)
            except asyncio.TimeoutError:
                if await is_disconnected():
                    break
                yield KEEPALIVE_COMMENT
                continue
            if event is BUS_CLOSED:
                break
            yield format_sse(event)
    finally:
        bus.unsubscribe(channel, listener)
        logger.info("Event stream closed for %s", channel)
