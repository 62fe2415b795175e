"""WebSocket endpoint delivering live order and menu events.

Each accepted socket becomes one :class:`~.events.LiveConnection`
registered with the application's broadcaster. Frames are written from the
connection's own queue, so a stalled socket only ever backs up its own
queue; once that overflows the broadcaster drops it.
"""

from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status
from starlette.websockets import WebSocketState

from .events import LiveConnection
from .middlewares.realtime_guard import ConnectionLimitExceeded, heartbeat_task
from .routes_metrics import ws_messages_total

router = APIRouter()
logger = logging.getLogger(__name__)


async def _watch_disconnect(websocket: WebSocket, connection: LiveConnection) -> None:
    """Close ``connection`` once the client goes away.

    Inbound frames are ignored; the socket is a pure broadcast sink.
    """

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
    except (WebSocketDisconnect, RuntimeError):  # pragma: no cover - network
        pass
    finally:
        connection.close()


@router.websocket("/ws")
async def live_updates(websocket: WebSocket) -> None:
    """Stream every broadcast event to the connected client."""

    app = websocket.app
    settings = app.state.settings
    limiter = app.state.connection_limiter
    broadcaster = app.state.broadcaster

    ip = websocket.client.host if websocket.client else "?"
    try:
        limiter.register(ip)
    except ConnectionLimitExceeded:
        logger.warning("live connection limit reached for %s", ip)
        await websocket.close(code=status.WS_1013_TRY_AGAIN_LATER)
        return

    connection = LiveConnection(maxsize=settings.live_queue_max)
    # register before accepting so no event after the handshake is missed
    broadcaster.register(connection)
    try:
        await websocket.accept()
        watcher = asyncio.create_task(_watch_disconnect(websocket, connection))
        hb_task = heartbeat_task(connection, settings.heartbeat_interval_secs)
        try:
            async for frame in connection.messages():
                await websocket.send_text(frame)
                ws_messages_total.inc()
        except (WebSocketDisconnect, RuntimeError):  # pragma: no cover - network
            logger.debug("live connection from %s dropped mid-send", ip)
        finally:
            watcher.cancel()
            hb_task.cancel()
        if websocket.client_state == WebSocketState.CONNECTED:
            try:
                await websocket.close()
            except RuntimeError:  # pragma: no cover - raced with the client
                pass
    finally:
        connection.close()
        broadcaster.unregister(connection)
        limiter.unregister(ip)
