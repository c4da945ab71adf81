"""Chat session, message log and conversation-context tables."""
from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from lastikbot.infra.database.models.base import Base, TimestampMixin, _session_pk


class ChatSession(Base):
    """One widget session; created on the first message of a session id."""

    __tablename__ = "chat_sessions"
    __table_args__ = (
        Index("ix_chat_sessions_domain", "domain"),
        Index("ix_chat_sessions_last_activity_at", "last_activity_at"),
    )

    session_id: Mapped[str] = _session_pk()
    domain: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    user_agent: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    ip_address: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default="true")

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(),
    )
    last_activity_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(),
    )

    messages: Mapped[List["ChatMessage"]] = relationship(
        "ChatMessage",
        back_populates="session",
        cascade="all, delete-orphan",
        order_by="ChatMessage.timestamp",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"ChatSession(session_id={self.session_id!r}, domain={self.domain!r})"


class ChatMessage(Base):
    """A user or bot message. Bot replies may carry the dealers/tires shown with them."""

    __tablename__ = "chat_messages"
    __table_args__ = (
        Index("ix_chat_messages_session_id", "session_id"),
        Index("ix_chat_messages_timestamp", "timestamp"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    session_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("chat_sessions.session_id", ondelete="CASCADE"),
        nullable=False,
    )
    is_user: Mapped[bool] = mapped_column(Boolean, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False, server_default="")
    error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    dealers_json: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    tires_json: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(),
    )

    session: Mapped["ChatSession"] = relationship("ChatSession", back_populates="messages")

    def __repr__(self) -> str:
        preview = (self.content or "")[:40]
        return f"ChatMessage(id={self.id!r}, is_user={self.is_user!r}, content={preview!r})"


class ConversationContextRecord(Base, TimestampMixin):
    """Durable copy of a session's dialogue state; parameters are a JSON string."""

    __tablename__ = "conversation_contexts"
    __table_args__ = (
        Index("ix_conversation_contexts_last_activity_at", "last_activity_at"),
    )

    session_id: Mapped[str] = _session_pk()
    current_intent: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    parameters_json: Mapped[str] = mapped_column(Text, nullable=False, server_default="{}")

    brand: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    model: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    year: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    season: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    brand_model_invalid_attempts: Mapped[int] = mapped_column(
        Integer, nullable=False, server_default="0",
    )

    awaiting_whatsapp_consent: Mapped[bool] = mapped_column(
        Boolean, nullable=False, server_default="false",
    )
    awaiting_whatsapp_phone: Mapped[bool] = mapped_column(
        Boolean, nullable=False, server_default="false",
    )
    last_dealer_summary: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    last_activity_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(),
    )

    def __repr__(self) -> str:
        return (
            f"ConversationContextRecord(session_id={self.session_id!r}, "
            f"intent={self.current_intent!r})"
        )
