"""Shared fixtures for order lifecycle tests."""

import pathlib
import sys

import pytest

sys.path.append(str(pathlib.Path(__file__).resolve().parents[2]))

from config import Settings  # noqa: E402
from orderdesk.app.auth import create_access_token  # noqa: E402
from orderdesk.app.db import create_engine_and_sessionmaker, create_schema  # noqa: E402
from orderdesk.app.events import EventBroadcaster  # noqa: E402
from orderdesk.app.services import OrderService  # noqa: E402


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def db_url(tmp_path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'orders.db'}"


@pytest.fixture
async def sessions(db_url):
    engine, session_factory = create_engine_and_sessionmaker(db_url)
    await create_schema(engine)
    yield session_factory
    await engine.dispose()


@pytest.fixture
def broadcaster() -> EventBroadcaster:
    return EventBroadcaster()


@pytest.fixture
def service(sessions, broadcaster) -> OrderService:
    return OrderService(sessions, broadcaster)


@pytest.fixture
def settings(db_url) -> Settings:
    return Settings(database_url=db_url)


@pytest.fixture
def staff_headers() -> dict:
    token = create_access_token({"sub": "admin", "role": "admin"})
    return {"Authorization": f"Bearer {token}"}
