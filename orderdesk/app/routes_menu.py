"""Menu catalog routes.

Reads are public; writes require a staff principal and announce the change
to live clients as a ``menu_updated`` event after the commit.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from .auth import User, staff_required
from .deps import get_broadcaster, get_session
from .errors import NotFoundError
from .events import EventBroadcaster, menu_event
from .repos_sqlalchemy import MenuRepoSQL, serialize_menu_item
from .schemas import MenuItemIn, MenuItemPatch
from .utils.responses import ok

router = APIRouter(prefix="/api/menu", tags=["Menu"])
repo = MenuRepoSQL()
logger = logging.getLogger(__name__)


@router.get("")
async def list_menu(
    category: Optional[str] = None,
    available: Optional[bool] = None,
    session: AsyncSession = Depends(get_session),
) -> dict:
    """Return menu items ordered by category and name."""

    items = await repo.list_items(session, category=category, available=available)
    return ok([serialize_menu_item(i) for i in items])


@router.get("/{item_id}")
async def get_menu_item(
    item_id: int, session: AsyncSession = Depends(get_session)
) -> dict:
    item = await repo.get_item(session, item_id)
    if item is None:
        raise NotFoundError("Menu item not found")
    return ok(serialize_menu_item(item))


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_menu_item(
    payload: MenuItemIn,
    session: AsyncSession = Depends(get_session),
    broadcaster: EventBroadcaster = Depends(get_broadcaster),
    user: User = Depends(staff_required),
) -> dict:
    item = serialize_menu_item(await repo.create_item(session, payload.model_dump()))
    logger.info("menu item %s created by %s", item["id"], user.username)
    broadcaster.broadcast(menu_event("created", item=item))
    return ok(item)


@router.put("/{item_id}")
async def update_menu_item(
    item_id: int,
    payload: MenuItemPatch,
    session: AsyncSession = Depends(get_session),
    broadcaster: EventBroadcaster = Depends(get_broadcaster),
    user: User = Depends(staff_required),
) -> dict:
    """Apply a partial update, including toggling availability."""

    changes = payload.model_dump(exclude_none=True)
    item = serialize_menu_item(await repo.update_item(session, item_id, changes))
    logger.info("menu item %s updated by %s", item_id, user.username)
    broadcaster.broadcast(menu_event("updated", item=item))
    return ok(item)


@router.delete("/{item_id}")
async def delete_menu_item(
    item_id: int,
    session: AsyncSession = Depends(get_session),
    broadcaster: EventBroadcaster = Depends(get_broadcaster),
    user: User = Depends(staff_required),
) -> dict:
    await repo.delete_item(session, item_id)
    logger.info("menu item %s deleted by %s", item_id, user.username)
    broadcaster.broadcast(menu_event("deleted", item_id=item_id))
    return ok({"id": item_id, "deleted": True})
