"""JSON log output for the order service.

Every record becomes one JSON object on stderr carrying the active request
id. Customer contact details (emails and phone-number-like digit runs) are
masked in the rendered message.
"""

import json
import logging
import re
from datetime import datetime, timezone
from typing import Any

from ..middlewares.request_id import current_request_id

EMAIL_RE = re.compile(r"[\w.+-]+@[\w-]+\.[\w.-]+", re.I)
# ten or more digits, optionally prefixed with + and split by spaces or dashes
PHONE_RE = re.compile(r"\+?\d(?:[\s-]?\d){9,}")

# attributes passed through ``extra=`` that are copied into the JSON line
EXTRA_FIELDS = ("order_id", "from_status", "to_status", "status", "route")


def _redact_pii(text: str) -> str:
    """Mask emails and phone numbers in ``text``."""
    text = EMAIL_RE.sub("***", text)
    return PHONE_RE.sub("***", text)


class RequestIdFilter(logging.Filter):
    """Stamp each record with the request id bound to the current context."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.req_id = current_request_id()
        return True


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        data: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "req_id": getattr(record, "req_id", None),
            "msg": _redact_pii(record.getMessage()),
        }
        for field in EXTRA_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                data[field] = value
        if record.exc_info:
            data["exc"] = _redact_pii(self.formatException(record.exc_info))
        return json.dumps(data, default=str)


def configure_logging(level: int = logging.INFO) -> None:
    """Route all logging through a single JSON stream handler at ``level``."""

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    handler.addFilter(RequestIdFilter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)
    # uvicorn's own access log duplicates LoggingMiddleware's outbound line
    logging.getLogger("uvicorn.access").propagate = False
