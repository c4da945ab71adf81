"""Orchestrator: one chat turn from raw text to reply.

Per turn:
  0. input guard (sanitise, validate, spam check)
  1. canned small-talk match  -> fixed reply, context cleared
  2. WhatsApp follow-up       -> consent / phone steps after a dealer search
  3. intent detection         -> rules first, LLM only when the rules fall short
  4. dispatch                 -> dealer search, tire slot filling or plain LLM answer

Every user message and reply goes to the message log. Nothing raises out of
``process``: unexpected failures become a fixed apology.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Dict, Optional
from uuid import uuid4

from lastikbot.core.exceptions import InputRejectedError
from lastikbot.core.logger import reset_session_id, set_session_id
from lastikbot.orchestrator.classifiers.cache import LabelCache
from lastikbot.orchestrator.classifiers.canned_classifier import CannedClassifier
from lastikbot.orchestrator.classifiers.llm_extractor import GenerativeIntentExtractor, IntentDetector
from lastikbot.orchestrator.classifiers.rule_detector import RuleBasedIntentDetector, VehicleCatalog
from lastikbot.orchestrator.context.base import ContextStore
from lastikbot.orchestrator.context.memory import InMemoryContextStore
from lastikbot.orchestrator.guard import check_input
from lastikbot.orchestrator.handlers.base import BaseHandler
from lastikbot.orchestrator.handlers.dealer_handler import DealerByCityHandler, DealerByLocationHandler
from lastikbot.orchestrator.handlers.direct_handler import DirectHandler
from lastikbot.orchestrator.handlers.tire_handler import TireSearchHandler
from lastikbot.orchestrator.handlers.whatsapp_handler import WhatsAppFollowUp
from lastikbot.orchestrator.types import (
    ChatResponse,
    ConversationContext,
    IntentType,
    OrchestratorConfig,
)

if TYPE_CHECKING:
    from lastikbot.clients.gazetteer import Gazetteer
    from lastikbot.clients.llm.base import BaseLLMClient
    from lastikbot.clients.search import SearchClient
    from lastikbot.services.conversation_service import MessageLog

logger = logging.getLogger(__name__)

ERROR_MESSAGE = "Üzgünüm, bir hata oluştu."


class Orchestrator:
    """Central entry point: takes a user message and a session id, returns a ``ChatResponse``.

    Collaborators are injected. Per-session state lives in the context store;
    the orchestrator itself only holds the label cache.
    """

    def __init__(
        self,
        llm: "BaseLLMClient",
        config: OrchestratorConfig,
        *,
        search: "SearchClient",
        gazetteer: "Gazetteer",
        context_store: Optional[ContextStore] = None,
        message_log: Optional["MessageLog"] = None,
        catalog: Optional[VehicleCatalog] = None,
        label_cache: Optional[LabelCache] = None,
    ) -> None:
        self._llm = llm
        self._config = config
        self._contexts = context_store or InMemoryContextStore(config.context_idle_minutes)
        if message_log is None:
            from lastikbot.services.conversation_service import InMemoryMessageLog
            message_log = InMemoryMessageLog()
        self._messages = message_log

        self._canned = CannedClassifier(llm, config, cache=label_cache)
        self._detector = IntentDetector(
            RuleBasedIntentDetector(gazetteer, catalog),
            GenerativeIntentExtractor(llm, config),
        )
        self._whatsapp = WhatsAppFollowUp()
        self._tire_handler = TireSearchHandler(search, config)
        self._direct_handler = DirectHandler(llm, config)
        self._handlers: Dict[IntentType, BaseHandler] = {
            IntentType.DEALER_SEARCH_BY_LOCATION: DealerByLocationHandler(search, config),
            IntentType.DEALER_SEARCH_BY_CITY_DISTRICT: DealerByCityHandler(search, config),
            IntentType.TIRE_SEARCH: self._tire_handler,
            IntentType.GENERAL_QUESTION: self._direct_handler,
        }

    @property
    def config(self) -> OrchestratorConfig:
        return self._config

    @property
    def context_store(self) -> ContextStore:
        return self._contexts

    async def process(
        self,
        message: str,
        session_id: Optional[str] = None,
        *,
        domain: Optional[str] = None,
        user_agent: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> ChatResponse:
        """Full turn. A missing *session_id* starts a new session; the id is returned in the reply."""
        session_id = session_id or str(uuid4())
        token = set_session_id(session_id)
        try:
            try:
                text = check_input(message, self._config.max_message_length)
            except InputRejectedError as exc:
                return ChatResponse(message=exc.details["reply"], session_id=session_id)

            await self._ensure_session(session_id, domain, user_agent, ip_address)
            try:
                response = await self._turn(text, session_id, domain)
            except Exception as exc:
                logger.exception("Orchestrator: turn failed")
                response = ChatResponse(message=ERROR_MESSAGE)
                await self._log(session_id, response.message, is_user=False, error_message=str(exc))
            return response.with_session(session_id)
        finally:
            reset_session_id(token)

    async def _turn(self, text: str, session_id: str, domain: Optional[str]) -> ChatResponse:
        await self._log(session_id, text, is_user=True)

        category = await self._canned.classify(text)
        if category is not None:
            logger.info("Orchestrator: canned reply (%s)", category.value)
            async with self._contexts.locked(session_id):
                await self._contexts.clear(session_id)
            response = ChatResponse(message=self._config.response_for(category, domain))
        else:
            async with self._contexts.locked(session_id):
                context = await self._contexts.get_or_create(session_id)
                response = await self._converse(text, context)
                await self._save(context)

        await self._log(
            session_id, response.message, is_user=False, dealers=response.dealers, tires=response.tires,
        )
        return response

    async def _converse(self, text: str, context: ConversationContext) -> ChatResponse:
        follow_up = self._whatsapp.step(text, context)
        if follow_up is not None:
            return follow_up

        detection = await self._detector.detect(text, context, self._config.system_prompt)
        context.merge(detection)
        logger.info(
            "Orchestrator: intent=%s source=%s params=%s",
            detection.intent.value, detection.source, detection.parameters,
        )

        if detection.needs_clarification:
            return ChatResponse(message=detection.clarification_message or "")

        intent = detection.intent
        if intent.is_dealer_search:
            context.current_intent = None
            return await self._handlers[intent].handle(detection, context)
        if intent in self._handlers:
            return await self._handlers[intent].handle(detection, context)
        if context.current_intent is IntentType.TIRE_SEARCH:
            return await self._tire_handler.handle(detection, context)
        return await self._direct_handler.handle(detection, context)

    # ── persistence (never blocks the reply) ─────────────────────

    async def _save(self, context: ConversationContext) -> None:
        try:
            await self._contexts.save(context)
        except Exception as exc:
            logger.error("Orchestrator: context save failed: %s", exc)

    async def _ensure_session(
        self,
        session_id: str,
        domain: Optional[str],
        user_agent: Optional[str],
        ip_address: Optional[str],
    ) -> None:
        try:
            await self._messages.ensure_session(
                session_id, domain=domain, user_agent=user_agent, ip_address=ip_address,
            )
        except Exception as exc:
            logger.error("Orchestrator: session bootstrap failed: %s", exc)

    async def _log(self, session_id: str, content: str, *, is_user: bool, **extra: object) -> None:
        try:
            await self._messages.append(session_id, content, is_user=is_user, **extra)  # type: ignore[arg-type]
        except Exception as exc:
            logger.error("Orchestrator: message log write failed: %s", exc)
