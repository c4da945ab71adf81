"""Per-task session id attached to every log record.

The orchestrator sets the id at the start of a turn; concurrent turns run in
separate asyncio tasks, each with its own copy of the context variable.
"""
from __future__ import annotations

import logging
from contextvars import ContextVar, Token

_NO_SESSION = "-"

_session_id: ContextVar[str] = ContextVar("session_id", default=_NO_SESSION)


def set_session_id(session_id: str) -> Token:
    return _session_id.set(session_id or _NO_SESSION)


def reset_session_id(token: Token) -> None:
    _session_id.reset(token)


def get_session_id() -> str:
    return _session_id.get()


class SessionIdFilter(logging.Filter):
    """Injects ``session_id`` into every record passing through the handler."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "session_id"):
            record.session_id = _session_id.get()  # type: ignore[attr-defined]
        return True
