"""Service layer: conversation persistence and orchestrator wiring."""
from lastikbot.services.conversation_service import (
    ConversationService,
    DatabaseMessageLog,
    InMemoryMessageLog,
    MessageLog,
)
from lastikbot.services.orchestrator_service import OrchestratorService

__all__ = [
    "ConversationService",
    "MessageLog",
    "InMemoryMessageLog",
    "DatabaseMessageLog",
    "OrchestratorService",
]
