import pytest
from httpx import ASGITransport, AsyncClient

from _support import next_event, order_payload
from orderdesk.app.auth import create_access_token
from orderdesk.app.events import LiveConnection
from orderdesk.app.main import create_app

pytestmark = pytest.mark.anyio


@pytest.fixture
async def app(settings):
    app = create_app(settings)
    async with app.router.lifespan_context(app):
        yield app


@pytest.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


async def test_place_order_returns_envelope(app, client):
    live = LiveConnection()
    app.state.broadcaster.register(live)

    resp = await client.post("/api/orders", json=order_payload())

    assert resp.status_code == 201
    body = resp.json()
    assert body["ok"] is True
    order = body["data"]
    assert order["status"] == "pending"
    assert order["customer_name"] == "Alice"
    assert order["items"][0]["menu_item_id"] == 1
    assert await next_event(live) == {"type": "new_order", "order": order}


@pytest.mark.parametrize(
    "payload",
    [
        {"customer_name": "Alice"},
        order_payload(customer_name=""),
        order_payload(items=[]),
        order_payload(
            items=[{"menuItemId": 1, "name": "Tea", "quantity": 0, "price": 1}],
            total_amount=1,
        ),
        order_payload(total_amount=99),
    ],
)
async def test_place_order_rejects_bad_payload(client, payload):
    resp = await client.post("/api/orders", json=payload)
    assert resp.status_code == 400
    body = resp.json()
    assert body["ok"] is False
    assert body["error"]["code"] == "VALIDATION"


async def test_get_order_is_public(client):
    created = (await client.post("/api/orders", json=order_payload())).json()["data"]
    resp = await client.get(f"/api/orders/{created['id']}")
    assert resp.status_code == 200
    assert resp.json()["data"] == created


async def test_get_unknown_order(client):
    resp = await client.get("/api/orders/9999")
    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "NOT_FOUND"


async def test_status_change_requires_staff(client):
    created = (await client.post("/api/orders", json=order_payload())).json()["data"]
    url = f"/api/orders/{created['id']}/status"

    resp = await client.put(url, json={"status": "preparing"})
    assert resp.status_code == 401

    token = create_access_token({"sub": "guest", "role": "customer"})
    resp = await client.put(
        url, json={"status": "preparing"}, headers={"Authorization": f"Bearer {token}"}
    )
    assert resp.status_code == 403

    resp = await client.put(
        url, json={"status": "preparing"}, headers={"Authorization": "Bearer nope"}
    )
    assert resp.status_code == 401


async def test_status_change_flow(app, client, staff_headers):
    created = (await client.post("/api/orders", json=order_payload())).json()["data"]
    url = f"/api/orders/{created['id']}/status"
    live = LiveConnection()
    app.state.broadcaster.register(live)

    resp = await client.put(url, json={"status": "preparing"}, headers=staff_headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["status"] == "preparing"
    event = await next_event(live)
    assert event["type"] == "order_updated"
    assert event["order"]["id"] == created["id"]

    resp = await client.put(url, json={"status": "pending"}, headers=staff_headers)
    assert resp.status_code == 400
    error = resp.json()["error"]
    assert error["code"] == "INVALID_TRANSITION"
    assert error["details"] == {"current": "preparing", "requested": "pending"}
    assert live.pending() == 0


async def test_status_change_unknown_order_and_status(client, staff_headers):
    resp = await client.put(
        "/api/orders/9999/status", json={"status": "preparing"}, headers=staff_headers
    )
    assert resp.status_code == 404

    created = (await client.post("/api/orders", json=order_payload())).json()["data"]
    resp = await client.put(
        f"/api/orders/{created['id']}/status",
        json={"status": "shipped"},
        headers=staff_headers,
    )
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "INVALID_TRANSITION"


async def test_list_orders(client, staff_headers):
    resp = await client.get("/api/orders")
    assert resp.status_code == 401

    first = (await client.post("/api/orders", json=order_payload())).json()["data"]
    second = (
        await client.post("/api/orders", json=order_payload(customer_name="Bob"))
    ).json()["data"]
    await client.put(
        f"/api/orders/{first['id']}/status",
        json={"status": "cancelled"},
        headers=staff_headers,
    )

    resp = await client.get("/api/orders", headers=staff_headers)
    assert [o["id"] for o in resp.json()["data"]] == [second["id"], first["id"]]

    resp = await client.get("/api/orders?status=cancelled", headers=staff_headers)
    assert [o["id"] for o in resp.json()["data"]] == [first["id"]]

    resp = await client.get("/api/orders?status=shipped", headers=staff_headers)
    assert resp.status_code == 400


async def test_health_and_request_id(client):
    resp = await client.get("/health", headers={"X-Request-ID": "req-123"})
    assert resp.status_code == 200
    assert resp.json()["data"]["status"] == "ok"
    assert resp.headers["X-Request-ID"] == "req-123"


async def test_metrics_exposes_order_counters(client):
    await client.post("/api/orders", json=order_payload())
    resp = await client.get("/metrics")
    assert resp.status_code == 200
    assert "orders_created_total" in resp.text
    assert "http_requests_total" in resp.text
