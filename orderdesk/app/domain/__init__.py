"""Domain models and helpers."""

from .order_status import (
    ACTIVE_STATUSES,
    TERMINAL_STATUSES,
    TRANSITIONS,
    OrderStatus,
    can_transition,
    transition,
)

__all__ = [
    "ACTIVE_STATUSES",
    "OrderStatus",
    "TERMINAL_STATUSES",
    "TRANSITIONS",
    "can_transition",
    "transition",
]
