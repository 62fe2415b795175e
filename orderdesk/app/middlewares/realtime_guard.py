"""Utilities to guard live WebSocket connections.

This module centralises the per-IP connection limit and the heartbeat
sender for live connections. Limits are read from settings when the
application starts.
"""

from __future__ import annotations

import asyncio
import json
from collections import defaultdict

from ..events import LiveConnection


class ConnectionLimitExceeded(Exception):
    """Raised when an IP already holds the maximum number of connections."""


class ConnectionLimiter:
    """Track open live connections per client IP."""

    def __init__(self, max_per_ip: int = 20) -> None:
        self.max_per_ip = max_per_ip
        self.connections: dict[str, int] = defaultdict(int)

    def register(self, ip: str) -> None:
        """Increment connection count for ``ip`` or raise."""
        if self.connections[ip] >= self.max_per_ip:
            raise ConnectionLimitExceeded(ip)
        self.connections[ip] += 1

    def unregister(self, ip: str) -> None:
        """Decrement connection count for ``ip``."""
        if self.connections[ip] > 0:
            self.connections[ip] -= 1
        if not self.connections[ip]:
            del self.connections[ip]


PING = json.dumps({"type": "ping"})


def heartbeat_task(connection: LiveConnection, interval: float) -> asyncio.Task:
    """Return a task queueing a ping on ``connection`` every ``interval`` seconds.

    The task stops when the connection closes. Consumers should cancel it on
    cleanup.
    """

    async def _hb() -> None:
        while not connection.closed:
            await asyncio.sleep(interval)
            connection.offer(PING)

    return asyncio.create_task(_hb())
