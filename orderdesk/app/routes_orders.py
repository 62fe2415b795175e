"""Order placement and lifecycle routes.

Placing an order and reading a single order are public so the customer
confirmation view can follow its own order; listing and status changes
require a staff principal.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, status

from .auth import User, staff_required
from .deps import get_order_service
from .schemas import OrderIn, StatusIn
from .services import OrderService
from .utils.responses import ok

router = APIRouter(prefix="/api/orders", tags=["Orders"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def place_order(
    payload: OrderIn, service: OrderService = Depends(get_order_service)
) -> dict:
    """Create a ``pending`` order and notify live clients."""

    return ok(await service.place_order(payload))


@router.get("")
async def list_orders(
    status: Optional[str] = None,
    service: OrderService = Depends(get_order_service),
    user: User = Depends(staff_required),
) -> dict:
    """Return orders newest first, optionally filtered by ``status``."""

    return ok(await service.list_orders(status))


@router.get("/{order_id}")
async def get_order(
    order_id: int, service: OrderService = Depends(get_order_service)
) -> dict:
    return ok(await service.get_order(order_id))


@router.put("/{order_id}/status")
async def change_status(
    order_id: int,
    payload: StatusIn,
    service: OrderService = Depends(get_order_service),
    user: User = Depends(staff_required),
) -> dict:
    """Move an order to ``payload.status`` if the transition is allowed."""

    return ok(await service.change_order_status(order_id, payload.status))
