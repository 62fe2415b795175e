"""Repository interface for menu catalog operations."""

from abc import ABC, abstractmethod


class MenuRepo(ABC):
    """Contract for menu catalog persistence."""

    @abstractmethod
    async def list_items(self, session, category=None, available=None):
        """Return menu items ordered by category then name."""
        raise NotImplementedError

    @abstractmethod
    async def get_item(self, session, item_id):
        """Return a single menu item or ``None``."""
        raise NotImplementedError

    @abstractmethod
    async def create_item(self, session, data):
        """Insert a menu item and return it."""
        raise NotImplementedError

    @abstractmethod
    async def update_item(self, session, item_id, changes):
        """Apply a partial update and return the item."""
        raise NotImplementedError

    @abstractmethod
    async def delete_item(self, session, item_id):
        """Remove a menu item."""
        raise NotImplementedError
