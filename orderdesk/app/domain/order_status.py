"""Order status enumeration and allowed transitions."""

from __future__ import annotations

from enum import Enum

from ..errors import TransitionError


class OrderStatus(str, Enum):
    """Enumerate the lifecycle states for an order."""

    PENDING = "pending"
    PREPARING = "preparing"
    READY = "ready"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# Staff move orders one step at a time; cancellation may short-circuit from
# any non-terminal state.
TRANSITIONS: dict[OrderStatus, list[OrderStatus]] = {
    OrderStatus.PENDING: [OrderStatus.PREPARING, OrderStatus.CANCELLED],
    OrderStatus.PREPARING: [OrderStatus.READY, OrderStatus.CANCELLED],
    OrderStatus.READY: [OrderStatus.COMPLETED, OrderStatus.CANCELLED],
    OrderStatus.COMPLETED: [],
    OrderStatus.CANCELLED: [],
}

TERMINAL_STATUSES = frozenset(s for s, dests in TRANSITIONS.items() if not dests)
ACTIVE_STATUSES = frozenset(TRANSITIONS) - TERMINAL_STATUSES


def _coerce(value: OrderStatus | str) -> OrderStatus | None:
    try:
        return OrderStatus(value)
    except ValueError:
        return None


def can_transition(src: OrderStatus | str, dst: OrderStatus | str) -> bool:
    """Return ``True`` if an order can move from ``src`` to ``dst``."""

    current, requested = _coerce(src), _coerce(dst)
    if current is None or requested is None:
        return False
    return requested in TRANSITIONS[current]


def transition(src: OrderStatus | str, dst: OrderStatus | str) -> OrderStatus:
    """Validate the move from ``src`` to ``dst`` and return the new status.

    Raises :class:`TransitionError` with the offending pair for any move not
    listed in :data:`TRANSITIONS`, including unknown status strings.
    """

    if not can_transition(src, dst):
        raise TransitionError(_label(src), _label(dst))
    return OrderStatus(dst)


def _label(value: OrderStatus | str) -> str:
    return value.value if isinstance(value, OrderStatus) else str(value)
