"""Pydantic request models for the HTTP layer.

Shape checks only; business validation (non-empty customer fields,
quantities, totals) is enforced by the order store so every entry point
gets the same rules.
"""

from __future__ import annotations

from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class LineItemIn(BaseModel):
    """One menu selection as submitted by the customer."""

    model_config = ConfigDict(populate_by_name=True)

    menu_item_id: int = Field(..., alias="menuItemId")
    name: str
    quantity: int
    price: Decimal


class OrderIn(BaseModel):
    """Place-order payload."""

    customer_name: str = Field(..., examples=["Alice"])
    customer_phone: str = Field(..., examples=["555-0100"])
    customer_email: Optional[str] = None
    notes: Optional[str] = None
    total_amount: Decimal
    items: List[LineItemIn]


class StatusIn(BaseModel):
    """Change-status payload."""

    status: str = Field(..., examples=["preparing"])


class MenuItemIn(BaseModel):
    """Create payload for a menu item."""

    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    price: Decimal = Field(..., ge=0)
    category: str = Field(..., min_length=1)
    image_url: Optional[str] = None
    available: bool = True


class MenuItemPatch(BaseModel):
    """Partial update for a menu item; ``None`` leaves a field unchanged."""

    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    price: Optional[Decimal] = Field(None, ge=0)
    category: Optional[str] = Field(None, min_length=1)
    image_url: Optional[str] = None
    available: Optional[bool] = None
