"""Repositories for lastikbot database."""
from lastikbot.infra.database.repositories.base import BaseRepository
from lastikbot.infra.database.repositories.chat import (
    ChatMessageRepository,
    ChatSessionRepository,
    ConversationContextRepository,
)

__all__ = [
    "BaseRepository",
    "ChatSessionRepository",
    "ChatMessageRepository",
    "ConversationContextRepository",
]
