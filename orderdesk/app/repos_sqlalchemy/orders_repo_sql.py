"""SQLAlchemy-backed order store.

The store only persists state: it validates input shape and monetary
consistency, writes an order and its line items in one transaction and
applies status updates. It never decides whether a status change is legal
and never broadcasts; both belong to :mod:`..services.order_service`.

Line items snapshot the menu item's name and unit price as submitted so
historical orders are unaffected by later menu edits.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..domain import OrderStatus
from ..errors import NotFoundError, PersistenceError, StaleStatusError, ValidationError
from ..models import Order, OrderItem, isoformat_utc
from ..repos.orders_repo import OrdersRepo

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _required_text(value: Any, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} is required", {"field": field})
    return value.strip()


def _decimal(value: Any, field: str) -> Decimal:
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number", {"field": field})
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field} must be a number", {"field": field}) from None
    if not amount.is_finite():
        raise ValidationError(f"{field} must be a number", {"field": field})
    return amount


def _money(value: Any, field: str) -> Decimal:
    """Parse a currency amount, rejecting fractions of a cent."""

    amount = _decimal(value, field)
    if amount != amount.quantize(CENT):
        raise ValidationError(
            f"{field} must have at most 2 decimal places", {"field": field}
        )
    return amount.quantize(CENT)


def _normalise_lines(lines: Iterable[dict]) -> list[dict]:
    """Validate submitted lines and return copies ready for insertion."""

    result = []
    for idx, line in enumerate(lines or []):
        quantity = line.get("quantity")
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
            raise ValidationError(
                "quantity must be a positive integer", {"line": idx}
            )
        price = _money(line.get("price"), "price")
        if price < 0:
            raise ValidationError("price must not be negative", {"line": idx})
        menu_item_id = line.get("menu_item_id")
        if isinstance(menu_item_id, bool) or not isinstance(menu_item_id, int):
            raise ValidationError("menu_item_id must be an integer", {"line": idx})
        result.append(
            {
                "menu_item_id": menu_item_id,
                "menu_item_name": _required_text(line.get("name"), "name"),
                "quantity": quantity,
                "price": price,
            }
        )
    if not result:
        raise ValidationError("order must contain at least one item")
    return result


def serialize_item(item: OrderItem) -> dict:
    """Return the public representation of a line item."""

    return {
        "id": item.id,
        "order_id": item.order_id,
        "menu_item_id": item.menu_item_id,
        "menu_item_name": item.menu_item_name,
        "quantity": item.quantity,
        "price": float(item.price),
    }


def serialize_order(order: Order) -> dict:
    """Return the public representation of an order with its line items."""

    return {
        "id": order.id,
        "customer_name": order.customer_name,
        "customer_phone": order.customer_phone,
        "customer_email": order.customer_email,
        "total_amount": float(order.total_amount),
        "status": order.status,
        "notes": order.notes,
        "created_at": isoformat_utc(order.created_at),
        "updated_at": isoformat_utc(order.updated_at),
        "items": [serialize_item(item) for item in order.items],
    }


class OrdersRepoSQL(OrdersRepo):
    """Concrete :class:`OrdersRepo` using SQLAlchemy with an ``AsyncSession``."""

    async def create_order(
        self,
        session: AsyncSession,
        customer: dict,
        lines: list[dict],
        total_amount: Any,
        notes: str | None = None,
    ) -> Order:
        """Persist a ``pending`` order and its ``lines`` atomically.

        ``customer`` holds ``name``, ``phone`` and optionally ``email``. Each
        entry in ``lines`` carries ``menu_item_id``, ``name``, ``quantity``
        and ``price``. ``total_amount`` must be positive and equal the sum of
        ``price * quantity`` exactly; amounts with fractions of a cent are
        rejected rather than rounded.
        """

        name = _required_text(customer.get("name"), "customer_name")
        phone = _required_text(customer.get("phone"), "customer_phone")
        rows = _normalise_lines(lines)

        total = _money(total_amount, "total_amount")
        if total <= 0:
            raise ValidationError("total_amount must be positive")
        expected = sum((r["price"] * r["quantity"] for r in rows), Decimal("0"))
        if total != expected:
            raise ValidationError(
                "total_amount does not match line items",
                {"total_amount": str(total), "expected": str(expected)},
            )

        now = _utcnow()
        order = Order(
            customer_name=name,
            customer_phone=phone,
            customer_email=customer.get("email") or None,
            total_amount=total,
            status=OrderStatus.PENDING.value,
            notes=notes or None,
            created_at=now,
            updated_at=now,
            items=[OrderItem(**row) for row in rows],
        )
        try:
            session.add(order)
            await session.commit()
        except SQLAlchemyError as exc:
            await session.rollback()
            logger.error("failed to store order: %s", exc)
            raise PersistenceError("failed to store order") from exc

        created = await self._load(session, order.id)
        if created is None:  # pragma: no cover - row vanished after commit
            raise PersistenceError("order missing after commit")
        return created

    async def get_order(self, session: AsyncSession, order_id: int) -> Order | None:
        return await self._load(session, order_id)

    async def list_orders(
        self, session: AsyncSession, status: OrderStatus | str | None = None
    ) -> list[Order]:
        """Return hydrated orders newest first, optionally only ``status``."""

        stmt = (
            select(Order)
            .options(selectinload(Order.items))
            .order_by(Order.created_at.desc(), Order.id.desc())
        )
        if status is not None:
            try:
                stmt = stmt.where(Order.status == OrderStatus(status).value)
            except ValueError:
                raise ValidationError(f"unknown status {status!r}") from None
        try:
            result = await session.execute(stmt)
        except SQLAlchemyError as exc:
            raise PersistenceError("failed to list orders") from exc
        return list(result.scalars().all())

    async def set_status(
        self,
        session: AsyncSession,
        order_id: int,
        status: OrderStatus | str,
        expected: OrderStatus | str | None = None,
    ) -> Order:
        """Persist ``status`` for ``order_id`` and bump ``updated_at``.

        When ``expected`` is given the write only applies if the stored status
        still equals it; otherwise :class:`StaleStatusError` is raised so the
        caller can re-read and re-validate. Raises :class:`NotFoundError` for
        unknown ids.
        """

        try:
            new_status = OrderStatus(status)
        except ValueError:
            raise ValidationError(f"unknown status {status!r}") from None

        stmt = update(Order).where(Order.id == order_id)
        if expected is not None:
            stmt = stmt.where(Order.status == OrderStatus(expected).value)
        stmt = stmt.values(status=new_status.value, updated_at=_utcnow())
        try:
            result = await session.execute(stmt)
            if result.rowcount == 0:
                # nothing was written; end the transaction without expiring
                # instances the caller already holds
                current = await session.scalar(
                    select(Order.status).where(Order.id == order_id)
                )
                await session.commit()
                if current is None:
                    raise NotFoundError(f"order {order_id} not found")
                raise StaleStatusError(
                    f"order {order_id} status changed concurrently",
                    {"current": current, "expected": OrderStatus(expected).value},
                )
            await session.commit()
        except SQLAlchemyError as exc:
            await session.rollback()
            logger.error("failed to update order %s: %s", order_id, exc)
            raise PersistenceError("failed to update order status") from exc

        updated = await self._load(session, order_id)
        if updated is None:  # pragma: no cover - row vanished after commit
            raise NotFoundError(f"order {order_id} not found")
        return updated

    async def _load(self, session: AsyncSession, order_id: int) -> Order | None:
        stmt = (
            select(Order)
            .options(selectinload(Order.items))
            .where(Order.id == order_id)
            .execution_options(populate_existing=True)
        )
        try:
            result = await session.execute(stmt)
        except SQLAlchemyError as exc:
            raise PersistenceError("failed to load order") from exc
        return result.scalar_one_or_none()
