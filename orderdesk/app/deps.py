"""FastAPI dependencies resolving lifespan-scoped components from ``app.state``."""

from __future__ import annotations

from typing import AsyncIterator

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession

from .events import EventBroadcaster
from .services import OrderService


def get_order_service(request: Request) -> OrderService:
    return request.app.state.order_service


def get_broadcaster(request: Request) -> EventBroadcaster:
    return request.app.state.broadcaster


async def get_session(request: Request) -> AsyncIterator[AsyncSession]:
    """Yield an ``AsyncSession`` from the application's session factory."""

    async with request.app.state.sessionmaker() as session:
        yield session
