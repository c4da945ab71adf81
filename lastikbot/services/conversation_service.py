"""ConversationService: session bootstrap and the append-only message log."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Dict, List, Optional, Protocol, Sequence

from pydantic import BaseModel

from lastikbot.infra.database.repositories.chat import (
    USER_AGENT_MAX_LENGTH,
    ChatMessageRepository,
    ChatSessionRepository,
)
from lastikbot.orchestrator.types import utcnow

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from lastikbot.clients.search.models import Dealer, Tire
    from lastikbot.infra.database.models.chat import ChatMessage, ChatSession

logger = logging.getLogger(__name__)


def dump_items(items: Optional[Sequence[BaseModel]]) -> Optional[str]:
    """JSON text for the dealers/tires attached to a reply; None when there are none."""
    if not items:
        return None
    return json.dumps([item.model_dump(by_alias=True) for item in items], ensure_ascii=False)


class MessageLog(Protocol):
    """Where the orchestrator records sessions and messages."""

    async def ensure_session(
        self,
        session_id: str,
        *,
        domain: Optional[str] = None,
        user_agent: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> None: ...

    async def append(
        self,
        session_id: str,
        content: str,
        *,
        is_user: bool,
        dealers: Optional[List["Dealer"]] = None,
        tires: Optional[List["Tire"]] = None,
        error_message: Optional[str] = None,
    ) -> None: ...


@dataclass
class LoggedMessage:
    session_id: str
    content: str
    is_user: bool
    timestamp: datetime
    dealers_json: Optional[str] = None
    tires_json: Optional[str] = None
    error_message: Optional[str] = None


@dataclass
class LoggedSession:
    session_id: str
    domain: Optional[str]
    user_agent: Optional[str]
    ip_address: Optional[str]
    created_at: datetime
    last_activity_at: datetime
    messages: List[LoggedMessage] = field(default_factory=list)


class InMemoryMessageLog:
    """Message log kept in process memory (console runs and tests)."""

    def __init__(self) -> None:
        self.sessions: Dict[str, LoggedSession] = {}

    async def ensure_session(
        self,
        session_id: str,
        *,
        domain: Optional[str] = None,
        user_agent: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> None:
        now = utcnow()
        session = self.sessions.get(session_id)
        if session is None:
            self.sessions[session_id] = LoggedSession(
                session_id=session_id,
                domain=domain,
                user_agent=user_agent[:USER_AGENT_MAX_LENGTH] if user_agent else None,
                ip_address=ip_address,
                created_at=now,
                last_activity_at=now,
            )
        else:
            session.last_activity_at = now

    async def append(
        self,
        session_id: str,
        content: str,
        *,
        is_user: bool,
        dealers: Optional[List["Dealer"]] = None,
        tires: Optional[List["Tire"]] = None,
        error_message: Optional[str] = None,
    ) -> None:
        if session_id not in self.sessions:
            await self.ensure_session(session_id)
        self.sessions[session_id].messages.append(LoggedMessage(
            session_id=session_id,
            content=content,
            is_user=is_user,
            timestamp=utcnow(),
            dealers_json=dump_items(dealers),
            tires_json=dump_items(tires),
            error_message=error_message,
        ))

    def history(self, session_id: str) -> List[LoggedMessage]:
        session = self.sessions.get(session_id)
        return list(session.messages) if session else []


class ConversationService:
    """Session and message persistence on one ``AsyncSession``; the caller commits."""

    def __init__(self, session: "AsyncSession") -> None:
        self._session = session
        self._session_repo = ChatSessionRepository(session)
        self._message_repo = ChatMessageRepository(session)

    async def ensure_session(
        self,
        session_id: str,
        *,
        domain: Optional[str] = None,
        user_agent: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> "ChatSession":
        return await self._session_repo.ensure(
            session_id,
            now=utcnow(),
            domain=domain,
            user_agent=user_agent,
            ip_address=ip_address,
        )

    async def add_message(
        self,
        session_id: str,
        content: str,
        *,
        is_user: bool,
        dealers: Optional[List["Dealer"]] = None,
        tires: Optional[List["Tire"]] = None,
        error_message: Optional[str] = None,
    ) -> "ChatMessage":
        return await self._message_repo.add(
            session_id,
            content,
            is_user=is_user,
            timestamp=utcnow(),
            error_message=error_message,
            dealers_json=dump_items(dealers),
            tires_json=dump_items(tires),
        )

    async def history(self, session_id: str, *, last_n: Optional[int] = None) -> List["ChatMessage"]:
        return await self._message_repo.for_session(session_id, last_n=last_n)

    async def close_session(self, session_id: str) -> bool:
        ok = await self._session_repo.deactivate(session_id)
        if ok:
            logger.info("Chat session closed: %s", session_id)
        return ok


class DatabaseMessageLog:
    """``MessageLog`` over PostgreSQL; one short transaction per call."""

    def __init__(self, session_factory: "async_sessionmaker[AsyncSession]") -> None:
        self._session_factory = session_factory

    async def ensure_session(
        self,
        session_id: str,
        *,
        domain: Optional[str] = None,
        user_agent: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> None:
        async with self._session_factory() as session:
            svc = ConversationService(session)
            await svc.ensure_session(
                session_id, domain=domain, user_agent=user_agent, ip_address=ip_address,
            )
            await session.commit()

    async def append(
        self,
        session_id: str,
        content: str,
        *,
        is_user: bool,
        dealers: Optional[List["Dealer"]] = None,
        tires: Optional[List["Tire"]] = None,
        error_message: Optional[str] = None,
    ) -> None:
        async with self._session_factory() as session:
            svc = ConversationService(session)
            await svc.ensure_session(session_id)
            await svc.add_message(
                session_id,
                content,
                is_user=is_user,
                dealers=dealers,
                tires=tires,
                error_message=error_message,
            )
            await session.commit()
