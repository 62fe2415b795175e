# routes_metrics.py

"""Prometheus metrics and /metrics endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Response
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

# Counters
http_requests_total = Counter(
    "http_requests_total", "Total HTTP requests", ["path", "method", "status"]
)
http_errors_total = Counter("http_errors_total", "Total HTTP errors", ["status"])
http_request_duration_seconds = Histogram(
    "http_request_duration_seconds", "HTTP request latency", ["path", "method"]
)

orders_created_total = Counter("orders_created_total", "Total orders created")
orders_created_total.inc(0)

order_status_transitions_total = Counter(
    "order_status_transitions_total",
    "Applied order status transitions",
    ["from_status", "to_status"],
)
order_transition_rejected_total = Counter(
    "order_transition_rejected_total", "Rejected order status transitions"
)
order_transition_rejected_total.inc(0)

broadcast_events_total = Counter(
    "broadcast_events_total", "Events fanned out to live connections", ["type"]
)
broadcast_dropped_total = Counter(
    "broadcast_dropped_total", "Live connections dropped during broadcast"
)
broadcast_dropped_total.inc(0)

ws_messages_total = Counter("ws_messages_total", "Total WebSocket messages sent")
ws_messages_total.inc(0)

# Gauges
live_connections = Gauge("live_connections", "Currently registered live connections")

router = APIRouter()


@router.get("/metrics")
async def metrics() -> Response:
    """Expose Prometheus metrics in text format."""

    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)
