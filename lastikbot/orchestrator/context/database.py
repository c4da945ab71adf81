"""Context store backed by the ``conversation_contexts`` table."""
from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, Optional

from lastikbot.infra.database.models.chat import ConversationContextRecord
from lastikbot.infra.database.repositories.chat import ConversationContextRepository
from lastikbot.orchestrator.context.base import ContextStore
from lastikbot.orchestrator.types import ConversationContext, IntentType, utcnow

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

logger = logging.getLogger(__name__)


def context_to_row(context: ConversationContext) -> Dict[str, Any]:
    return {
        "current_intent": context.current_intent.value if context.current_intent else None,
        "parameters_json": json.dumps(context.collected_parameters, ensure_ascii=False),
        "brand": context.brand,
        "model": context.model,
        "year": context.year,
        "season": context.season,
        "brand_model_invalid_attempts": context.brand_model_invalid_attempts,
        "awaiting_whatsapp_consent": context.awaiting_whatsapp_consent,
        "awaiting_whatsapp_phone": context.awaiting_whatsapp_phone,
        "last_dealer_summary": context.last_dealer_summary,
        "last_activity_at": context.last_activity,
    }


def _parameters(raw: str) -> Dict[str, str]:
    try:
        data = json.loads(raw or "{}")
    except json.JSONDecodeError:
        logger.warning("Stored context parameters are not valid JSON; ignoring them")
        return {}
    if not isinstance(data, dict):
        return {}
    return {str(k): str(v) for k, v in data.items() if v is not None}


def row_to_context(record: ConversationContextRecord) -> ConversationContext:
    intent = IntentType.parse(record.current_intent) if record.current_intent else None
    return ConversationContext(
        session_id=record.session_id,
        current_intent=None if intent is IntentType.UNKNOWN else intent,
        collected_parameters=_parameters(record.parameters_json),
        brand=record.brand,
        model=record.model,
        year=record.year,
        season=record.season,
        brand_model_invalid_attempts=record.brand_model_invalid_attempts or 0,
        awaiting_whatsapp_consent=bool(record.awaiting_whatsapp_consent),
        awaiting_whatsapp_phone=bool(record.awaiting_whatsapp_phone),
        last_dealer_summary=record.last_dealer_summary,
        last_activity=record.last_activity_at,
    )


class DatabaseContextStore(ContextStore):
    """One row per session, loaded and written explicitly each turn."""

    def __init__(
        self,
        session_factory: "async_sessionmaker[AsyncSession]",
        idle_minutes: int = 30,
    ) -> None:
        super().__init__(idle_minutes)
        self._session_factory = session_factory

    async def get_or_create(self, session_id: str) -> ConversationContext:
        now = utcnow()
        async with self._session_factory() as session:
            record = await ConversationContextRepository(session).get_by_id(session_id)
        if record is None:
            return ConversationContext(session_id=session_id, last_activity=now)
        context = row_to_context(record)
        if self.is_idle(context.last_activity, now):
            logger.info("Stored context for session %s was idle; starting over", session_id)
            return ConversationContext(session_id=session_id, last_activity=now)
        context.last_activity = now
        return context

    async def save(self, context: ConversationContext) -> None:
        async with self._session_factory() as session:
            await ConversationContextRepository(session).put(context.session_id, context_to_row(context))
            await session.commit()

    async def clear(self, session_id: str) -> None:
        async with self._session_factory() as session:
            await ConversationContextRepository(session).delete(session_id)
            await session.commit()

    async def purge_idle(self, now: Optional[datetime] = None) -> int:
        """Delete rows whose last activity is older than the idle window."""
        cutoff = (now or utcnow()) - self._idle
        async with self._session_factory() as session:
            removed = await ConversationContextRepository(session).purge_idle(cutoff)
            await session.commit()
        if removed:
            logger.info("Purged %d idle conversation contexts", removed)
        return removed
