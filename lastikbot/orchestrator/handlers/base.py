"""Abstract base handler for the intent handlers."""
from __future__ import annotations

from abc import ABC, abstractmethod

from lastikbot.orchestrator.types import ChatResponse, ConversationContext, IntentDetectionResult


class BaseHandler(ABC):
    """Every intent handler implements ``handle()`` and returns a reply.

    Handlers may mutate *context*; the orchestrator saves it afterwards.
    """

    @abstractmethod
    async def handle(
        self,
        detection: IntentDetectionResult,
        context: ConversationContext,
    ) -> ChatResponse:
        ...
