"""Service layer composing repositories and the event broadcaster."""

from .order_service import OrderService

__all__ = ["OrderService"]
