"""
lastikbot.infra.database – PostgreSQL async engine, session, models and repositories.

Public API
──────────
  build_engine, build_session_factory, init_db, close_engine, ensure_database_exists
  Base, ChatSession, ChatMessage, ConversationContextRecord (models)
  BaseRepository, ChatSessionRepository, ChatMessageRepository,
  ConversationContextRepository
"""
from lastikbot.infra.database.engine import (
    build_engine,
    build_session_factory,
    close_engine,
    ensure_database_exists,
    init_db,
)
from lastikbot.infra.database.models import (
    Base,
    ChatMessage,
    ChatSession,
    ConversationContextRecord,
)
from lastikbot.infra.database.repositories import (
    BaseRepository,
    ChatMessageRepository,
    ChatSessionRepository,
    ConversationContextRepository,
)

__all__ = [
    "build_engine",
    "build_session_factory",
    "init_db",
    "close_engine",
    "ensure_database_exists",
    "Base",
    "ChatSession",
    "ChatMessage",
    "ConversationContextRecord",
    "BaseRepository",
    "ChatSessionRepository",
    "ChatMessageRepository",
    "ConversationContextRepository",
]
