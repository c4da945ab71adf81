"""DirectHandler: plain LLM answer with the configured system prompt."""
from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from lastikbot.orchestrator.handlers.base import BaseHandler
from lastikbot.orchestrator.timeouts import with_timeout
from lastikbot.orchestrator.types import (
    ChatResponse,
    ConversationContext,
    IntentDetectionResult,
    OrchestratorConfig,
)

if TYPE_CHECKING:
    from lastikbot.clients.llm.base import BaseLLMClient

logger = logging.getLogger(__name__)

UNAVAILABLE_MESSAGE = "Üzgünüm, şu anda yanıt veremiyorum. Lütfen daha sonra tekrar deneyin."


class DirectHandler(BaseHandler):
    """Send the user message straight to the LLM, ignoring any tire-search state."""

    def __init__(self, llm: "BaseLLMClient", config: OrchestratorConfig) -> None:
        self._llm = llm
        self._config = config

    async def handle(
        self,
        detection: IntentDetectionResult,
        context: ConversationContext,
    ) -> ChatResponse:
        timeout = self._config.llm_timeout_seconds
        try:
            answer = await with_timeout(
                self._llm.generate(
                    detection.user_message,
                    system_prompt=self._config.system_prompt,
                    temperature=self._config.temperature,
                    max_tokens=self._config.max_tokens,
                ),
                timeout,
            )
        except asyncio.TimeoutError:
            logger.warning("DirectHandler: LLM call timed out (%.0fs)", timeout or 0)
            return ChatResponse(message=UNAVAILABLE_MESSAGE)
        except Exception as exc:
            logger.error("DirectHandler: LLM call failed: %s", exc)
            return ChatResponse(message=UNAVAILABLE_MESSAGE)

        answer = (answer or "").strip()
        return ChatResponse(message=answer or UNAVAILABLE_MESSAGE)
