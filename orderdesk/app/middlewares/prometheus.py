"""Prometheus middleware for HTTP request metrics."""

from __future__ import annotations

import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from ..routes_metrics import (
    http_errors_total,
    http_request_duration_seconds,
    http_requests_total,
)


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Count requests and errors and time them per route template.

    Labels use the matched route path (``/api/orders/{order_id}``) so order
    ids do not explode label cardinality.
    """

    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        route = request.scope.get("route")
        path = route.path if route else "unmatched"
        http_request_duration_seconds.labels(
            path=path, method=request.method
        ).observe(time.perf_counter() - start)
        http_requests_total.labels(
            path=path,
            method=request.method,
            status=str(response.status_code),
        ).inc()
        if 400 <= response.status_code < 600:
            http_errors_total.labels(status=str(response.status_code)).inc()
        return response
