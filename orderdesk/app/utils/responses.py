"""Response envelopes shared by every route and error handler."""

from typing import Any, Dict

from fastapi.encoders import jsonable_encoder

from ..errors import OrderError


def ok(data: Any) -> Dict[str, Any]:
    """Wrap ``data`` as ``{"ok": true, "data": ...}``."""
    return {"ok": True, "data": data}


def err(
    code: int | str, message: str, details: Dict[str, Any] | None = None
) -> Dict[str, Any]:
    """Return a failure envelope tagged with the current request id."""
    from ..middlewares.request_id import current_request_id

    error: Dict[str, Any] = {"code": code, "message": message}
    if details:
        error["details"] = jsonable_encoder(details)
    return {"ok": False, "request_id": current_request_id(), "error": error}


def error_payload(exc: OrderError) -> Dict[str, Any]:
    """Render an :class:`OrderError` with its code, message and details."""
    return err(exc.code, exc.message, exc.details)
