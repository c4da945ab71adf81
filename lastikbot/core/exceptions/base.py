"""
Base exception type for the chat engine.

Every error raised inside lastikbot derives from LastikbotError so the
orchestrator's error boundary can log a structured payload and still answer
the user with a fixed apology.
"""
from __future__ import annotations

import traceback
from typing import Any, Optional


class LastikbotError(Exception):
    """
    Base exception for all chat engine errors.

    Attributes:
        message: Human-readable error description (never shown to the end user).
        code: Machine-readable slug.
        http_status: Suggested HTTP status if surfaced through an API layer.
        details: Extra context, e.g. endpoint name or offending field.
        cause: Underlying exception (httpx error, SQLAlchemy error, ...).
    """

    default_code: str = "ERROR"
    default_http_status: int = 500

    def __init__(
        self,
        message: str,
        *,
        code: Optional[str] = None,
        http_status: Optional[int] = None,
        details: Optional[dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.http_status = http_status if http_status is not None else self.default_http_status
        self.details: dict[str, Any] = dict(details or {})
        self.cause = cause

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r})"

    def __str__(self) -> str:
        if self.cause is not None:
            return f"{self.message} ({type(self.cause).__name__}: {self.cause})"
        return self.message

    def to_dict(self, *, with_traceback: bool = False) -> dict[str, Any]:
        """Structured form for log records."""
        out: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            out["details"] = self.details
        if self.cause is not None:
            out["cause"] = repr(self.cause)
            if with_traceback:
                out["cause_traceback"] = traceback.format_exception(
                    type(self.cause), self.cause, self.cause.__traceback__
                )
        return out
