"""Database models for menu items, orders and their line items.

These models are kept isolated from any application wiring so that they can
be used in tests or migrations independently."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import declarative_base, relationship

from .domain import OrderStatus

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def isoformat_utc(value: datetime | None) -> str | None:
    """Render a stored timestamp as ISO 8601 with a UTC offset.

    SQLite drops tzinfo on the way back, so naive values are read as UTC.
    """

    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


class MenuItem(Base):
    """Menu catalog entry. Orders copy its name and price at order time."""

    __tablename__ = "menu_items"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Numeric(10, 2), nullable=False)
    category = Column(String, nullable=False)
    image_url = Column(String, nullable=True)
    available = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)


class Order(Base):
    """A customer's placed order and its lifecycle status."""

    __tablename__ = "orders"
    # AUTOINCREMENT keeps SQLite from reusing ids of deleted rows
    __table_args__ = (
        CheckConstraint("total_amount > 0", name="ck_orders_total_positive"),
        {"sqlite_autoincrement": True},
    )

    id = Column(Integer, primary_key=True)
    customer_name = Column(String, nullable=False)
    customer_phone = Column(String, nullable=False)
    customer_email = Column(String, nullable=True)
    total_amount = Column(Numeric(10, 2), nullable=False)
    status = Column(
        String, nullable=False, default=OrderStatus.PENDING.value, index=True
    )
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    items = relationship(
        "OrderItem",
        back_populates="order",
        order_by="OrderItem.id",
        cascade="all, delete-orphan",
        lazy="raise",
    )


class OrderItem(Base):
    """Line item of an order.

    ``menu_item_id`` is a weak reference: the menu entry may be edited or
    removed later, so the name and unit price are snapshotted here.
    """

    __tablename__ = "order_items"
    __table_args__ = (
        CheckConstraint("quantity >= 1", name="ck_order_items_quantity"),
        CheckConstraint("price >= 0", name="ck_order_items_price"),
        {"sqlite_autoincrement": True},
    )

    id = Column(Integer, primary_key=True)
    order_id = Column(
        Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True
    )
    menu_item_id = Column(Integer, nullable=False)
    menu_item_name = Column(String, nullable=False)
    quantity = Column(Integer, nullable=False)
    price = Column(Numeric(10, 2), nullable=False)

    order = relationship("Order", back_populates="items")
