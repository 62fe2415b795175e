"""Request id propagation.

The id arrives in ``X-Request-ID`` or is generated here; it is stored in a
context variable so log records and error envelopes can pick it up without
access to the request.
"""

import re
import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

HEADER = "X-Request-ID"
_VALID_ID = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")

request_id_ctx: ContextVar[str | None] = ContextVar("request_id", default=None)


def current_request_id() -> str | None:
    return request_id_ctx.get(None)


def resolve_request_id(request: Request) -> str:
    """Reuse the id already bound to ``request`` or a well-formed inbound one."""

    existing = getattr(request.state, "request_id", None)
    if existing:
        return existing
    candidate = request.headers.get(HEADER, "")
    return candidate if _VALID_ID.match(candidate) else uuid.uuid4().hex


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Bind a request id for the duration of the request and echo it back."""

    async def dispatch(self, request: Request, call_next):
        req_id = resolve_request_id(request)
        request.state.request_id = req_id
        token = request_id_ctx.set(req_id)
        try:
            response = await call_next(request)
        finally:
            request_id_ctx.reset(token)
        response.headers[HEADER] = req_id
        return response
