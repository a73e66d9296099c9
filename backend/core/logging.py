"""
Structured logging for the Modle service.

- JSON lines in production, one readable line elsewhere.
- The request id lives in a ContextVar and is stamped on every record.
- log_event() is the single helper for game events (modle.result.accepted,
  modle.write.retry, puzzle.created, ...) so user and language are always
  attached the same way.
"""

import json
import logging
import os
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Dict, Optional

LOGGER_NAME = "modle"

request_id_ctx_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

# Record attributes copied into JSON output when present
_STRUCTURED_FIELDS = (
    "user_id",
    "language",
    "event_type",
    "error_code",
    "status",
    "path",
    "method",
    "latency_bucket",
)

_LATENCY_BUCKETS = ((10, "<10ms"), (100, "10-100ms"), (500, "100-500ms"), (1000, "500-1000ms"))


def get_request_id(default: Optional[str] = None) -> Optional[str]:
    """Fetch the current request_id from context (if any)."""
    rid = request_id_ctx_var.get()
    return rid if rid is not None else default


def _format_timestamp(record: logging.LogRecord) -> str:
    return datetime.fromtimestamp(record.created, timezone.utc).isoformat().replace('+00:00', 'Z')


def latency_bucket_ms(latency_ms: float) -> str:
    for limit, label in _LATENCY_BUCKETS:
        if latency_ms < limit:
            return label
    return ">=1000ms"


class RequestIdFilter(logging.Filter):
    """Inject request_id into log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "request_id", None) is None:
            record.request_id = get_request_id()
        return True


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": _format_timestamp(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "request_id": getattr(record, "request_id", None),
        }
        for field in _STRUCTURED_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                payload[field] = value
        return json.dumps(payload, default=str)


class TextFormatter(logging.Formatter):
    """`<ts> INFO [modle] [rid=..] [user=..] [lang=..] modle.result.accepted`"""

    def format(self, record: logging.LogRecord) -> str:
        parts = [_format_timestamp(record), record.levelname, f"[{LOGGER_NAME}]"]
        for label, attr in (("rid", "request_id"), ("user", "user_id"), ("lang", "language")):
            value = getattr(record, attr, None)
            if value:
                parts.append(f"[{label}={value}]")
        parts.append(record.getMessage())
        return " ".join(parts)


def configure_logging(env: str = "development") -> None:
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter() if env.lower() == "production" else TextFormatter())
    handler.addFilter(RequestIdFilter())

    logger.handlers = [handler]
    logger.propagate = True

    # Reduce noise from uvicorn loggers but keep error output
    logging.getLogger("uvicorn").propagate = False
    logging.getLogger("uvicorn.error").propagate = False


def _truncate(value, limit: int = 200) -> str:
    text = str(value)
    return text if len(text) <= limit else text[:limit] + "...<truncated>"


def log_event(
    level: str,
    msg: str,
    *,
    request_id: Optional[str] = None,
    user_id: Optional[str] = None,
    language: Optional[str] = None,
    event_type: Optional[str] = None,
    extra: Optional[Dict[str, object]] = None,
):
    """Log a game event with user, language and request correlation."""
    logger = logging.getLogger(LOGGER_NAME)
    if not logger.handlers:
        # Scripts log before the app configures anything
        configure_logging(os.getenv("ENV", "development"))

    payload = {
        "request_id": request_id or get_request_id(),
        "user_id": user_id,
        "language": language,
        "event_type": event_type or msg,
    }
    for key, value in (extra or {}).items():
        payload[key] = _truncate(value)

    getattr(logger, level, logger.info)(msg, extra=payload)
