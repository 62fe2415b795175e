import json

import pytest

from _support import next_event
from orderdesk.app.events import (
    MENU_UPDATED,
    NEW_ORDER,
    EventBroadcaster,
    LiveConnection,
    menu_event,
    order_event,
)


def test_unregister_is_idempotent():
    broadcaster = EventBroadcaster()
    conn = LiveConnection()
    broadcaster.register(conn)
    broadcaster.unregister(conn)
    broadcaster.unregister(conn)
    broadcaster.unregister(LiveConnection())
    assert len(broadcaster) == 0


def test_register_adds_distinct_connections():
    broadcaster = EventBroadcaster()
    first, second = LiveConnection(), LiveConnection()
    broadcaster.register(first)
    broadcaster.register(second)
    assert len(broadcaster) == 2
    assert first in broadcaster and second in broadcaster


@pytest.mark.anyio
async def test_broadcast_reaches_every_open_connection():
    broadcaster = EventBroadcaster()
    connections = [LiveConnection() for _ in range(5)]
    for conn in connections:
        broadcaster.register(conn)
    gone = LiveConnection()
    broadcaster.register(gone)
    broadcaster.unregister(gone)

    delivered = broadcaster.broadcast(order_event(NEW_ORDER, {"id": 1}))

    assert delivered == 5
    for conn in connections:
        assert await next_event(conn) == {"type": "new_order", "order": {"id": 1}}
    assert gone.pending() == 0


def test_closed_connections_are_dropped():
    broadcaster = EventBroadcaster()
    open_conn, closed_conn = LiveConnection(), LiveConnection()
    broadcaster.register(open_conn)
    broadcaster.register(closed_conn)
    closed_conn.close()

    assert broadcaster.broadcast({"type": "ping"}) == 1
    assert closed_conn not in broadcaster
    assert open_conn in broadcaster


def test_overflowing_connection_is_dropped_without_affecting_others():
    broadcaster = EventBroadcaster()
    slow, fast = LiveConnection(maxsize=1), LiveConnection(maxsize=10)
    broadcaster.register(slow)
    broadcaster.register(fast)

    broadcaster.broadcast({"type": "a"})
    delivered = broadcaster.broadcast({"type": "b"})

    assert delivered == 1
    assert slow.closed
    assert slow not in broadcaster
    assert fast.pending() == 2


@pytest.mark.anyio
async def test_close_ends_message_stream():
    conn = LiveConnection()
    conn.offer(json.dumps({"type": "a"}))
    conn.close()
    frames = [frame async for frame in conn.messages()]
    assert frames == []
    assert not conn.offer("late")


def test_close_all_empties_live_set():
    broadcaster = EventBroadcaster()
    conns = [LiveConnection() for _ in range(3)]
    for conn in conns:
        broadcaster.register(conn)
    broadcaster.close_all()
    assert len(broadcaster) == 0
    assert all(conn.closed for conn in conns)


def test_menu_event_shapes():
    assert menu_event("created", item={"id": 3}) == {
        "type": MENU_UPDATED,
        "action": "created",
        "item": {"id": 3},
    }
    assert menu_event("deleted", item_id=3) == {
        "type": MENU_UPDATED,
        "action": "deleted",
        "id": 3,
    }
