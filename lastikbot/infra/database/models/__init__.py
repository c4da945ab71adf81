"""
lastikbot.infra.database.models – SQLAlchemy 2.0 ORM models.

Exports Base, mixins, and all model classes.
"""
from lastikbot.infra.database.models.base import Base, TimestampMixin
from lastikbot.infra.database.models.chat import (
    ChatMessage,
    ChatSession,
    ConversationContextRecord,
)

__all__ = [
    "Base",
    "TimestampMixin",
    "ChatSession",
    "ChatMessage",
    "ConversationContextRecord",
]
