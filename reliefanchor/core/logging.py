"""
Structured logging for the reliefanchor logger tree.

- JSON lines in production, one-line pretty output otherwise
- request_id bound per HTTP request through a ContextVar
- Profile events (repairs, token decisions) carry owner_id and event_type
  so they can be filtered without parsing messages
"""

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Dict, Optional

ROOT_LOGGER = "reliefanchor"

request_id_ctx_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

# Copied from `extra` into JSON output when present
_EVENT_FIELDS = ("owner_id", "event_type", "repairs", "reason", "token_owner", "error_code", "status")

_LATENCY_BUCKETS = ((10, "<10ms"), (100, "10-100ms"), (500, "100-500ms"), (1000, "500-1000ms"))


def get_request_id(default: Optional[str] = None) -> Optional[str]:
    rid = request_id_ctx_var.get()
    return rid if rid is not None else default


def latency_bucket_ms(latency_ms: Optional[float]) -> str:
    if latency_ms is None:
        return "unknown"
    for limit, label in _LATENCY_BUCKETS:
        if latency_ms < limit:
            return label
    return ">=1000ms"


def _utc_timestamp(record: logging.LogRecord) -> str:
    return datetime.fromtimestamp(record.created, timezone.utc).isoformat().replace("+00:00", "Z")


class RequestIdFilter(logging.Filter):
    """Fill request_id from context when the call site did not pass one."""

    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "request_id", None) is None:
            record.request_id = get_request_id()
        return True


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": _utc_timestamp(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "request_id": getattr(record, "request_id", None),
        }
        for field in _EVENT_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                payload[field] = value
        return json.dumps(payload, default=str)


class PrettyFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        parts = [_utc_timestamp(record), record.levelname, f"[{ROOT_LOGGER}]"]
        rid = getattr(record, "request_id", None)
        if rid:
            parts.append(f"[rid={rid}]")
        owner = getattr(record, "owner_id", None)
        if owner:
            parts.append(f"[owner={owner}]")
        parts.append(record.getMessage())
        return " ".join(parts)


def configure_logging(env: str = "development") -> None:
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter() if env.lower() == "production" else PrettyFormatter())
    handler.addFilter(RequestIdFilter())

    logger.handlers = [handler]
    logger.propagate = True


def _safe_truncate(value, limit: int = 500) -> str:
    text = str(value)
    if len(text) <= limit:
        return text
    return text[:limit] + "...<truncated>"


def log_event(
    level: str,
    msg: str,
    *,
    owner_id: Optional[str] = None,
    event_type: Optional[str] = None,
    extra: Optional[Dict[str, object]] = None,
    logger: Optional[logging.Logger] = None,
) -> None:
    """Log a profile event with owner_id/event_type set and extra values truncated."""
    payload: Dict[str, object] = {"owner_id": owner_id}
    if event_type:
        payload["event_type"] = event_type
    for key, value in (extra or {}).items():
        payload[key] = value if isinstance(value, (list, tuple)) else _safe_truncate(value)

    target = logger or logging.getLogger(ROOT_LOGGER)
    getattr(target, level, target.info)(msg, extra=payload)
