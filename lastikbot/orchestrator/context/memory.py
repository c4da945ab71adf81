"""Process-local context store."""
from __future__ import annotations

import copy
import logging
import threading
from datetime import datetime
from typing import Dict

from lastikbot.orchestrator.context.base import ContextStore
from lastikbot.orchestrator.types import ConversationContext, utcnow

logger = logging.getLogger(__name__)


class InMemoryContextStore(ContextStore):
    """Dict of contexts behind one mutex; idle entries are swept on access.

    Callers get a copy, so nothing they change is visible until ``save``.
    """

    def __init__(self, idle_minutes: int = 30) -> None:
        super().__init__(idle_minutes)
        self._contexts: Dict[str, ConversationContext] = {}
        self._mutex = threading.Lock()

    async def get_or_create(self, session_id: str) -> ConversationContext:
        now = utcnow()
        with self._mutex:
            self._sweep(now, keep=session_id)
            context = self._contexts.get(session_id)
            if context is None or self.is_idle(context.last_activity, now):
                if context is not None:
                    logger.info("Context for session %s was idle; starting over", session_id)
                context = ConversationContext(session_id=session_id)
                self._contexts[session_id] = context
            context.last_activity = now
            return copy.deepcopy(context)

    async def save(self, context: ConversationContext) -> None:
        with self._mutex:
            self._contexts[context.session_id] = copy.deepcopy(context)

    async def clear(self, session_id: str) -> None:
        with self._mutex:
            self._contexts.pop(session_id, None)

    def _sweep(self, now: datetime, keep: str) -> None:
        # Sessions with a turn in progress are never evicted under it.
        stale = [
            sid for sid, ctx in self._contexts.items()
            if sid != keep and self.is_idle(ctx.last_activity, now) and not self._locks.is_locked(sid)
        ]
        for sid in stale:
            del self._contexts[sid]
        if stale:
            logger.debug("Evicted %d idle contexts", len(stale))

    def __len__(self) -> int:
        with self._mutex:
            return len(self._contexts)
