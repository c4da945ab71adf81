"""
Formatters: JSON lines for the rotating file, plain text for console.
"""
from __future__ import annotations

import json
import logging
import traceback
from datetime import datetime, timezone
from typing import Any, Optional

# Record attributes copied into the JSON payload when present.
_CONTEXT_KEYS = ("session_id", "intent", "provider")


class JsonFormatter(logging.Formatter):
    """One JSON object per line; includes the session id and any intent/provider tags."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": _utc_iso(record.created),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in _CONTEXT_KEYS:
            value = getattr(record, key, None)
            if value is not None:
                payload[key] = value
        if record.exc_info:
            payload["exception"] = "".join(
                traceback.format_exception(*record.exc_info)
            ).strip()
        payload["location"] = f"{record.pathname}:{record.lineno}"
        return json.dumps(payload, default=str, ensure_ascii=False)


def _utc_iso(created: float) -> str:
    return datetime.fromtimestamp(created, tz=timezone.utc).isoformat()


class PlainConsoleFormatter(logging.Formatter):
    """Human-readable console lines, optionally prefixed with the session id."""

    def __init__(self, *, with_session_id: bool = True, datefmt: Optional[str] = None) -> None:
        if with_session_id:
            fmt = "%(asctime)s | %(levelname)-8s | %(session_id)s | %(name)s | %(message)s"
        else:
            fmt = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
        super().__init__(fmt=fmt, datefmt=datefmt or "%Y-%m-%d %H:%M:%S")
