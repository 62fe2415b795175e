"""Helpers shared by the order lifecycle tests."""

import asyncio
import json

from orderdesk.app.events import LiveConnection

BURGER_ORDER = {
    "customer_name": "Alice",
    "customer_phone": "555-0100",
    "customer_email": "alice@example.com",
    "notes": "no onions",
    "total_amount": 25.98,
    "items": [
        {"menuItemId": 1, "name": "Classic Burger", "quantity": 2, "price": 12.99}
    ],
}


def order_payload(**overrides) -> dict:
    """Return a fresh copy of :data:`BURGER_ORDER` with ``overrides`` applied."""

    payload = json.loads(json.dumps(BURGER_ORDER))
    payload.update(overrides)
    return payload


async def next_event(connection: LiveConnection, timeout: float = 1.0) -> dict:
    """Return the next queued event on ``connection`` decoded from JSON."""

    frame = await asyncio.wait_for(connection.messages().__anext__(), timeout)
    return json.loads(frame)
