"""SQLAlchemy implementation of the menu repository."""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..errors import NotFoundError, PersistenceError
from ..models import MenuItem, isoformat_utc
from ..repos.menu_repo import MenuRepo

EDITABLE_FIELDS = ("name", "description", "price", "category", "image_url", "available")


def serialize_menu_item(item: MenuItem) -> dict:
    """Return the public representation of a menu item."""

    return {
        "id": item.id,
        "name": item.name,
        "description": item.description,
        "price": float(item.price),
        "category": item.category,
        "image_url": item.image_url,
        "available": item.available,
        "created_at": isoformat_utc(item.created_at),
    }


class MenuRepoSQL(MenuRepo):
    """Concrete MenuRepo using SQLAlchemy with an AsyncSession."""

    async def list_items(
        self,
        session: AsyncSession,
        category: str | None = None,
        available: bool | None = None,
    ) -> list[MenuItem]:
        """Return menu items ordered by category then name."""
        stmt = select(MenuItem).order_by(MenuItem.category, MenuItem.name)
        if category:
            stmt = stmt.where(MenuItem.category == category)
        if available is not None:
            stmt = stmt.where(MenuItem.available.is_(available))
        result = await session.execute(stmt)
        return list(result.scalars().all())

    async def get_item(self, session: AsyncSession, item_id: int) -> MenuItem | None:
        return await session.get(MenuItem, item_id)

    async def create_item(self, session: AsyncSession, data: dict) -> MenuItem:
        values = {k: data[k] for k in EDITABLE_FIELDS if data.get(k) is not None}
        values["price"] = Decimal(str(values["price"]))
        item = MenuItem(**values)
        await self._commit(session, item)
        return item

    async def update_item(
        self, session: AsyncSession, item_id: int, changes: dict
    ) -> MenuItem:
        """Apply non-null ``changes`` to the item, like a COALESCE update."""
        item = await session.get(MenuItem, item_id)
        if item is None:
            raise NotFoundError("Menu item not found")
        for field in EDITABLE_FIELDS:
            value = changes.get(field)
            if value is None:
                continue
            if field == "price":
                value = Decimal(str(value))
            setattr(item, field, value)
        await self._commit(session, item)
        return item

    async def delete_item(self, session: AsyncSession, item_id: int) -> None:
        try:
            result = await session.execute(
                delete(MenuItem).where(MenuItem.id == item_id)
            )
            if result.rowcount == 0:
                await session.rollback()
                raise NotFoundError("Menu item not found")
            await session.commit()
        except SQLAlchemyError as exc:
            await session.rollback()
            raise PersistenceError("failed to delete menu item") from exc

    async def _commit(self, session: AsyncSession, item: MenuItem) -> None:
        try:
            session.add(item)
            await session.commit()
            await session.refresh(item)
        except SQLAlchemyError as exc:
            await session.rollback()
            raise PersistenceError("failed to store menu item") from exc
