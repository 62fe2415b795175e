import json
import logging
import time
import uuid
from datetime import datetime, timezone

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from ..utils.responses import err
from .request_id import HEADER, request_id_ctx, resolve_request_id

# Fields in requests that should be redacted from logs
PII_KEYS = {"customer_phone", "customer_email", "authorization"}

logger = logging.getLogger("api")


def _redact(obj):
    if isinstance(obj, dict):
        return {
            k: ("***" if k.lower() in PII_KEYS else _redact(v)) for k, v in obj.items()
        }
    if isinstance(obj, list):
        return [_redact(v) for v in obj]
    return obj


class LoggingMiddleware(BaseHTTPMiddleware):
    """Emit one structured log line per request with a request ID."""

    async def dispatch(self, request: Request, call_next):
        token = None
        if getattr(request.state, "request_id", None) is None:
            # bind an id when RequestIdMiddleware is not installed outside us
            request.state.request_id = resolve_request_id(request)
            token = request_id_ctx.set(request.state.request_id)
        req_id = request.state.request_id

        start = time.perf_counter()
        error_id = None
        try:
            response = await call_next(request)
        except Exception:
            error_id = str(uuid.uuid4())
            logger.exception(json.dumps({"req_id": req_id, "error_id": error_id}))
            payload = err(500, "Internal Server Error")
            payload["error_id"] = error_id
            response = JSONResponse(payload, status_code=500)
        dur_ms = int((time.perf_counter() - start) * 1000)
        status = response.status_code
        outbound = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "req_id": req_id,
            "method": request.method,
            "route": request.url.path,
            "status": status,
            "latency_ms": dur_ms,
        }
        query = dict(request.query_params)
        if query:
            outbound["query"] = _redact(query)
        if error_id:
            outbound["error_id"] = error_id

        log_fn = logger.error if status >= 500 else logger.info
        log_fn(json.dumps(outbound))

        response.headers[HEADER] = req_id
        if token is not None:
            request_id_ctx.reset(token)
        return response
