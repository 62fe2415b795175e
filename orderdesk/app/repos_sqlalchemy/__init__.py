"""SQLAlchemy-backed repository implementations."""

from .menu_repo_sql import MenuRepoSQL, serialize_menu_item
from .orders_repo_sql import OrdersRepoSQL, serialize_item, serialize_order

__all__ = [
    "MenuRepoSQL",
    "OrdersRepoSQL",
    "serialize_item",
    "serialize_menu_item",
    "serialize_order",
]
