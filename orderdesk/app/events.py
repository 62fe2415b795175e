# events.py

"""In-process fan-out of order and menu events to live connections.

Every connected client (customer confirmation view or staff dashboard) is a
:class:`LiveConnection` with its own bounded :class:`asyncio.Queue`. The
:class:`EventBroadcaster` serialises an event once and offers it to every
registered queue without awaiting any socket, so one slow client cannot
stall delivery to the others. A connection that is closed or whose queue is
full is dropped from the live set during the broadcast.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, AsyncIterator, Dict

from .routes_metrics import broadcast_dropped_total, broadcast_events_total, live_connections

logger = logging.getLogger(__name__)

NEW_ORDER = "new_order"
ORDER_UPDATED = "order_updated"
MENU_UPDATED = "menu_updated"

_CLOSE = None


class LiveConnection:
    """A transient broadcast sink for one connected client.

    The transport side drains :meth:`messages` and writes each frame to the
    socket; the broadcaster only ever calls :meth:`offer`.
    """

    def __init__(self, maxsize: int = 100) -> None:
        self._queue: asyncio.Queue[str | None] = asyncio.Queue(maxsize=maxsize)
        self.closed = False

    def offer(self, message: str) -> bool:
        """Enqueue ``message`` without blocking; ``False`` when not deliverable."""

        if self.closed:
            return False
        try:
            self._queue.put_nowait(message)
        except asyncio.QueueFull:
            return False
        return True

    def close(self) -> None:
        """Mark the connection closed and wake the draining side."""

        if self.closed:
            return
        self.closed = True
        while True:
            try:
                self._queue.get_nowait()
            except asyncio.QueueEmpty:
                break
        self._queue.put_nowait(_CLOSE)

    async def messages(self) -> AsyncIterator[str]:
        """Yield queued frames until the connection is closed."""

        while True:
            item = await self._queue.get()
            if item is _CLOSE:
                return
            yield item

    def pending(self) -> int:
        return self._queue.qsize()


class EventBroadcaster:
    """Maintain the live connection set and fan out events to it.

    The broadcaster holds no order state; it mirrors changes that were
    already committed by the caller.
    """

    def __init__(self) -> None:
        self._connections: set[LiveConnection] = set()

    def __len__(self) -> int:
        return len(self._connections)

    def __contains__(self, connection: object) -> bool:
        return connection in self._connections

    def register(self, connection: LiveConnection) -> None:
        """Add ``connection`` to the live set."""

        self._connections.add(connection)
        live_connections.set(len(self._connections))
        logger.debug("live connection registered (total=%d)", len(self._connections))

    def unregister(self, connection: LiveConnection) -> None:
        """Remove ``connection``; unknown or repeated calls are no-ops."""

        if connection in self._connections:
            self._connections.discard(connection)
            live_connections.set(len(self._connections))
            logger.debug(
                "live connection unregistered (total=%d)", len(self._connections)
            )

    def broadcast(self, event: Dict[str, Any]) -> int:
        """Deliver ``event`` to every open connection and return the count.

        Connections found closed or unable to accept the frame are
        unregistered and closed; failures are never raised to the caller.
        """

        message = json.dumps(event, default=str)
        delivered = 0
        # iterate over a snapshot so register/unregister may run meanwhile
        for connection in tuple(self._connections):
            if connection.offer(message):
                delivered += 1
                continue
            if not connection.closed:
                logger.warning("dropping slow live connection")
                connection.close()
            broadcast_dropped_total.inc()
            self.unregister(connection)
        broadcast_events_total.labels(type=str(event.get("type", "unknown"))).inc()
        return delivered

    def close_all(self) -> None:
        """Close and forget every registered connection."""

        for connection in tuple(self._connections):
            connection.close()
            self.unregister(connection)


def order_event(kind: str, order: Dict[str, Any]) -> Dict[str, Any]:
    """Return a ``new_order`` or ``order_updated`` payload."""

    return {"type": kind, "order": order}


def menu_event(action: str, item: Dict[str, Any] | None = None, item_id: Any = None) -> Dict[str, Any]:
    """Return a ``menu_updated`` payload carrying ``item`` or its ``id``."""

    payload: Dict[str, Any] = {"type": MENU_UPDATED, "action": action}
    if item is not None:
        payload["item"] = item
    else:
        payload["id"] = item_id
    return payload
