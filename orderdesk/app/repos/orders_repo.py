"""Repository interface for order operations."""

from abc import ABC, abstractmethod


class OrdersRepo(ABC):
    """Contract for order persistence.

    Implementations persist state only; transition legality is checked by
    the caller and broadcasting is the caller's responsibility.
    """

    @abstractmethod
    async def create_order(self, session, customer, lines, total_amount, notes=None):
        """Persist an order together with all of its line items."""
        raise NotImplementedError

    @abstractmethod
    async def get_order(self, session, order_id):
        """Return the hydrated order or ``None``."""
        raise NotImplementedError

    @abstractmethod
    async def list_orders(self, session, status=None):
        """List hydrated orders newest first, optionally filtered by status."""
        raise NotImplementedError

    @abstractmethod
    async def set_status(self, session, order_id, status, expected=None):
        """Store a new status for an order and return the updated order."""
        raise NotImplementedError
