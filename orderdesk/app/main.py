# main.py

"""FastAPI application for restaurant ordering with live updates.

The application owns one engine, one :class:`EventBroadcaster` and one
:class:`OrderService` per process; all three are created in the lifespan
hook and exposed on ``app.state`` for the route dependencies.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import Settings, get_settings

from .db import create_engine_and_sessionmaker, create_schema
from .errors import OrderError
from .events import EventBroadcaster
from .middlewares import LoggingMiddleware, PrometheusMiddleware, RequestIdMiddleware
from .middlewares.realtime_guard import ConnectionLimiter
from .obs.logging import configure_logging
from .routes_live import router as live_router
from .routes_menu import router as menu_router
from .routes_metrics import router as metrics_router
from .routes_orders import router as orders_router
from .services import OrderService
from .utils.responses import err, error_payload, ok

logger = logging.getLogger("api")


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the application around ``settings`` (defaults to :func:`get_settings`)."""

    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        engine, session_factory = create_engine_and_sessionmaker(settings.database_url)
        if settings.create_schema:
            await create_schema(engine)
        broadcaster = EventBroadcaster()
        app.state.engine = engine
        app.state.sessionmaker = session_factory
        app.state.broadcaster = broadcaster
        app.state.order_service = OrderService(
            session_factory, broadcaster, stale_retries=settings.status_lock_retries
        )
        logger.info("order service started")
        try:
            yield
        finally:
            broadcaster.close_all()
            await engine.dispose()
            logger.info("order service stopped")

    app = FastAPI(title="Orderdesk API", version="1.0.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.connection_limiter = ConnectionLimiter(settings.max_conn_per_ip)

    if settings.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )
    app.add_middleware(PrometheusMiddleware)
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(RequestIdMiddleware)

    @app.exception_handler(OrderError)
    async def order_error_handler(request: Request, exc: OrderError):
        log_fn = logger.error if exc.status_code >= 500 else logger.warning
        log_fn("%s on %s: %s", exc.code, request.url.path, exc.message)
        return JSONResponse(error_payload(exc), status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        logger.warning("invalid request on %s", request.url.path)
        details = {"errors": exc.errors()}
        return JSONResponse(
            err("VALIDATION", "Invalid request", details), status_code=400
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        logger.warning(exc.detail, extra={"status": exc.status_code})
        return JSONResponse(
            err(exc.status_code, exc.detail),
            status_code=exc.status_code,
            headers=getattr(exc, "headers", None),
        )

    @app.get("/health")
    async def health() -> dict:
        return ok({"status": "ok", "live_connections": len(app.state.broadcaster)})

    app.include_router(orders_router)
    app.include_router(menu_router)
    app.include_router(live_router)
    app.include_router(metrics_router)
    return app


configure_logging(getattr(logging, get_settings().log_level.upper(), logging.INFO))
app = create_app()
