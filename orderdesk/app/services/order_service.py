"""Order service façade.

Composes the order store, the status transition table and the event
broadcaster behind the two operations the HTTP layer needs: placing an
order and changing its status. Events are published only after the
triggering write has been committed, and a failed broadcast never turns a
successful write into an error.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any
from weakref import WeakValueDictionary

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..domain import OrderStatus, transition
from ..errors import (
    NotFoundError,
    PersistenceError,
    StaleStatusError,
    TransitionError,
    ValidationError,
)
from ..events import NEW_ORDER, ORDER_UPDATED, EventBroadcaster, order_event
from ..repos.orders_repo import OrdersRepo
from ..repos_sqlalchemy.orders_repo_sql import OrdersRepoSQL, serialize_order
from ..routes_metrics import (
    order_status_transitions_total,
    order_transition_rejected_total,
    orders_created_total,
)
from ..schemas import OrderIn

logger = logging.getLogger(__name__)


class OrderService:
    """Place orders and move them through their lifecycle."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        broadcaster: EventBroadcaster,
        repo: OrdersRepo | None = None,
        stale_retries: int = 3,
    ) -> None:
        self._sessions = session_factory
        self._broadcaster = broadcaster
        self._repo = repo or OrdersRepoSQL()
        self._stale_retries = max(1, stale_retries)
        self._locks: WeakValueDictionary[int, asyncio.Lock] = WeakValueDictionary()

    async def place_order(self, data: OrderIn | dict) -> dict:
        """Persist a new ``pending`` order and announce it as ``new_order``."""

        if not isinstance(data, OrderIn):
            try:
                data = OrderIn.model_validate(data)
            except PydanticValidationError as exc:
                errors = exc.errors(
                    include_url=False, include_context=False, include_input=False
                )
                raise ValidationError(
                    "invalid order payload", {"errors": errors}
                ) from None

        customer = {
            "name": data.customer_name,
            "phone": data.customer_phone,
            "email": data.customer_email,
        }
        lines = [
            {
                "menu_item_id": line.menu_item_id,
                "name": line.name,
                "quantity": line.quantity,
                "price": line.price,
            }
            for line in data.items
        ]
        async with self._sessions() as session:
            order = await self._repo.create_order(
                session, customer, lines, data.total_amount, data.notes
            )
            result = serialize_order(order)

        orders_created_total.inc()
        logger.info(
            "order placed id=%s total=%s items=%d",
            result["id"],
            result["total_amount"],
            len(result["items"]),
        )
        self._publish(order_event(NEW_ORDER, result))
        return result

    async def change_order_status(self, order_id: int, requested: str) -> dict:
        """Apply ``requested`` to ``order_id`` if the transition is legal.

        Status changes on one order are serialised by a per-order lock; the
        conditional write additionally guards against writers outside this
        process. Raises :class:`NotFoundError` or :class:`TransitionError`.
        """

        async with self._lock_for(order_id):
            for attempt in range(self._stale_retries):
                async with self._sessions() as session:
                    order = await self._repo.get_order(session, order_id)
                    if order is None:
                        raise NotFoundError(f"order {order_id} not found")
                    current = order.status
                    try:
                        new_status = transition(current, requested)
                    except TransitionError as exc:
                        order_transition_rejected_total.inc()
                        logger.warning(
                            "rejected transition order=%s %s -> %s",
                            order_id,
                            exc.current,
                            exc.requested,
                        )
                        raise
                    try:
                        updated = await self._repo.set_status(
                            session, order_id, new_status, expected=current
                        )
                    except StaleStatusError:
                        logger.info(
                            "order %s changed concurrently, re-reading (attempt %d)",
                            order_id,
                            attempt + 1,
                        )
                        continue
                    result = serialize_order(updated)
                break
            else:
                raise PersistenceError(
                    f"order {order_id} kept changing concurrently; giving up"
                )

        order_status_transitions_total.labels(
            from_status=current, to_status=new_status.value
        ).inc()
        logger.info(
            "order status changed id=%s %s -> %s", order_id, current, new_status.value
        )
        self._publish(order_event(ORDER_UPDATED, result))
        return result

    async def get_order(self, order_id: int) -> dict:
        async with self._sessions() as session:
            order = await self._repo.get_order(session, order_id)
            if order is None:
                raise NotFoundError(f"order {order_id} not found")
            return serialize_order(order)

    async def list_orders(self, status: str | None = None) -> list[dict]:
        """Return hydrated orders newest first, optionally filtered by ``status``."""

        if status is not None:
            try:
                status = OrderStatus(status).value
            except ValueError:
                raise ValidationError(
                    f"unknown status {status!r}", {"status": status}
                ) from None
        async with self._sessions() as session:
            orders = await self._repo.list_orders(session, status)
            return [serialize_order(o) for o in orders]

    def _lock_for(self, order_id: int) -> asyncio.Lock:
        lock = self._locks.get(order_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[order_id] = lock
        return lock

    def _publish(self, event: dict[str, Any]) -> None:
        try:
            self._broadcaster.broadcast(event)
        except Exception:
            logger.exception("broadcast of %s failed", event.get("type"))
