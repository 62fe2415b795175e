from .logging import LoggingMiddleware
from .prometheus import PrometheusMiddleware
from .request_id import RequestIdMiddleware

__all__ = [
    "LoggingMiddleware",
    "PrometheusMiddleware",
    "RequestIdMiddleware",
]
