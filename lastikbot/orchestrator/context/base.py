"""Abstract conversation-context store."""
from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import AbstractAsyncContextManager
from datetime import datetime, timedelta
from typing import Optional

from lastikbot.orchestrator.context.locks import KeyedLock
from lastikbot.orchestrator.types import ConversationContext, utcnow


class ContextStore(ABC):
    """Loads and saves ``ConversationContext`` per session.

    Callers wrap one turn in ``async with store.locked(session_id)`` so that
    the read-modify-write cycle of a session never interleaves with another
    turn of the same session.
    """

    def __init__(self, idle_minutes: int = 30) -> None:
        self._idle = timedelta(minutes=idle_minutes)
        self._locks = KeyedLock()

    def locked(self, session_id: str) -> AbstractAsyncContextManager[None]:
        return self._locks.hold(session_id)

    def is_idle(self, last_activity: datetime, now: Optional[datetime] = None) -> bool:
        return (now or utcnow()) - last_activity > self._idle

    @abstractmethod
    async def get_or_create(self, session_id: str) -> ConversationContext:
        """Return the session's context (fresh defaults if absent or idle) with ``last_activity`` refreshed."""

    @abstractmethod
    async def save(self, context: ConversationContext) -> None:
        ...

    @abstractmethod
    async def clear(self, session_id: str) -> None:
        ...
