"""Repositories for chat sessions, the message log and stored conversation contexts."""
from __future__ import annotations

from datetime import datetime
from typing import Any, ClassVar, Dict, List, Optional

from sqlalchemy import delete, select, update

from lastikbot.infra.database.models.chat import (
    ChatMessage,
    ChatSession,
    ConversationContextRecord,
)
from lastikbot.infra.database.repositories.base import BaseRepository

USER_AGENT_MAX_LENGTH = 500


class ChatSessionRepository(BaseRepository[ChatSession]):
    model: ClassVar[type] = ChatSession

    async def ensure(
        self,
        session_id: str,
        *,
        now: datetime,
        domain: Optional[str] = None,
        user_agent: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> ChatSession:
        """Return the session row, creating it on first sight and refreshing its activity time."""
        session = await self.get_by_id(session_id)
        if session is None:
            return await self.create({
                "session_id": session_id,
                "domain": domain,
                "user_agent": user_agent[:USER_AGENT_MAX_LENGTH] if user_agent else None,
                "ip_address": ip_address,
                "created_at": now,
                "last_activity_at": now,
                "is_active": True,
            })
        return await self.assign(session, {"last_activity_at": now})

    async def deactivate(self, session_id: str) -> bool:
        stmt = (
            update(ChatSession)
            .where(ChatSession.session_id == session_id)
            .values(is_active=False)
        )
        result = await self.session.execute(stmt)
        return (result.rowcount or 0) > 0


class ChatMessageRepository(BaseRepository[ChatMessage]):
    model: ClassVar[type] = ChatMessage

    async def add(
        self,
        session_id: str,
        content: str,
        *,
        is_user: bool,
        timestamp: datetime,
        error_message: Optional[str] = None,
        dealers_json: Optional[str] = None,
        tires_json: Optional[str] = None,
    ) -> ChatMessage:
        return await self.create({
            "session_id": session_id,
            "is_user": is_user,
            "content": content,
            "error_message": error_message,
            "dealers_json": dealers_json,
            "tires_json": tires_json,
            "timestamp": timestamp,
        })

    async def for_session(self, session_id: str, *, last_n: Optional[int] = None) -> List[ChatMessage]:
        stmt = (
            select(ChatMessage)
            .where(ChatMessage.session_id == session_id)
            .order_by(ChatMessage.timestamp, ChatMessage.id)
        )
        result = await self.session.execute(stmt)
        messages = list(result.scalars().all())
        if last_n is not None and last_n > 0:
            messages = messages[-last_n:]
        return messages


class ConversationContextRepository(BaseRepository[ConversationContextRecord]):
    model: ClassVar[type] = ConversationContextRecord

    async def put(self, session_id: str, values: Dict[str, Any]) -> ConversationContextRecord:
        """Insert or overwrite the row for *session_id*."""
        record = await self.get_by_id(session_id)
        if record is None:
            return await self.create({"session_id": session_id, **values})
        return await self.assign(record, values)

    async def purge_idle(self, older_than: datetime) -> int:
        stmt = delete(ConversationContextRecord).where(
            ConversationContextRecord.last_activity_at < older_than
        )
        result = await self.session.execute(stmt)
        return result.rowcount or 0
