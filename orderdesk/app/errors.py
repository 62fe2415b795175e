"""Error taxonomy for the order lifecycle.

Each error carries the HTTP status and envelope code it maps to so the
application layer can render it without inspecting the concrete type.
"""

from __future__ import annotations

from typing import Any


class OrderError(Exception):
    """Base class for order lifecycle failures."""

    status_code = 500
    code = "ORDER_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationError(OrderError):
    """Malformed or missing input supplied by the caller."""

    status_code = 400
    code = "VALIDATION"


class NotFoundError(OrderError):
    """Referenced order does not exist."""

    status_code = 404
    code = "NOT_FOUND"


class TransitionError(OrderError):
    """Status change not permitted from the current state."""

    status_code = 400
    code = "INVALID_TRANSITION"

    def __init__(self, current: str, requested: str) -> None:
        super().__init__(
            f"cannot transition from {current!r} to {requested!r}",
            {"current": current, "requested": requested},
        )
        self.current = current
        self.requested = requested


class PersistenceError(OrderError):
    """Storage engine failure; never retried by the core."""

    status_code = 500
    code = "PERSISTENCE"


class StaleStatusError(OrderError):
    """The stored status changed between read and conditional write."""

    status_code = 409
    code = "STALE_STATUS"


__all__ = [
    "OrderError",
    "ValidationError",
    "NotFoundError",
    "TransitionError",
    "PersistenceError",
    "StaleStatusError",
]
