"""Lexical matcher: maps small-talk messages to a canned-response category.

Keyword pass first (no LLM). Short messages with no keyword hit are labelled
by the LLM with a closed label set; thanks phrases never reach the LLM.
"""
from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Dict, Optional, Tuple

from lastikbot.orchestrator.classifiers.cache import LabelCache
from lastikbot.orchestrator.text import fold
from lastikbot.orchestrator.timeouts import with_timeout
from lastikbot.orchestrator.types import ChatCategory, OrchestratorConfig

if TYPE_CHECKING:
    from lastikbot.clients.llm.base import BaseLLMClient

logger = logging.getLogger(__name__)

# category -> (substring phrases, whole-message phrases); all folded.
_KEYWORDS: Dict[ChatCategory, Tuple[Tuple[str, ...], Tuple[str, ...]]] = {
    ChatCategory.GREETING: (("merhaba", "selam", "selamun aleykum"), ("hi", "hello", "hey")),
    ChatCategory.HOW_ARE_YOU: (("nasilsin", "nasilsiniz", "how are you", "how's it going"), ()),
    ChatCategory.WHO_ARE_YOU: (
        ("kimsin", "kimsiniz", "sen kimsin", "siz kimsiniz", "who are you", "what are you"),
        (),
    ),
    ChatCategory.WHAT_CAN_YOU_DO: (
        ("ne yapabilirsin", "ne yapabilirsiniz", "what can you do", "what do you do"),
        (),
    ),
    ChatCategory.THANKS: (
        ("tesekkur", "sagol", "sag ol", "thanks", "thank you", "eyvallah", "mutesekkir", "minnettar"),
        ("saol",),
    ),
    ChatCategory.GOODBYE: (("gule gule", "hosca kal", "bay bay", "bye", "goodbye", "see you"), ()),
}

_LABEL_PROMPT = (
    "Sen bir sınıflandırma asistanısın. Kullanıcının aşağıdaki mesajını oku ve hangi kategoriye "
    "ait olduğunu belirle:\n"
    "- greeting (selamlaşma)\n"
    "- how_are_you (nasılsın soruları)\n"
    "- who_are_you (kimsin / neysin soruları)\n"
    "- what_can_you_do (\"ne yapabilirsin\", \"ne işe yarıyorsun\" gibi yetenek soruları)\n"
    "- thanks (teşekkür ifadeleri: teşekkür, sağol, sagol, thanks, thank you, eyvallah)\n"
    "- goodbye (veda cümleleri)\n"
    "- none (hiçbiri değil)\n\n"
    "SADECE bu etiketlerden birini, küçük harflerle ve ek açıklama yazmadan döndür."
)


def _matches(folded: str, category: ChatCategory) -> bool:
    contains, exact = _KEYWORDS[category]
    return folded in exact or any(k in folded for k in contains)


def match_keywords(message: str) -> Optional[ChatCategory]:
    """Keyword pass only. Categories are checked in declaration order."""
    folded = fold(message.strip())
    if not folded:
        return None
    for category in _KEYWORDS:
        if _matches(folded, category):
            return category
    return None


def looks_like_thanks(message: str) -> bool:
    return _matches(fold(message.strip()), ChatCategory.THANKS)


def parse_label(raw: str) -> Optional[ChatCategory]:
    """First whitespace-delimited token of the reply; unknown tokens mean no category."""
    tokens = (raw or "").strip().lower().split()
    if not tokens:
        return None
    try:
        return ChatCategory(tokens[0])
    except ValueError:
        return None


class CannedClassifier:
    """Keyword matcher with an LLM fallback for short messages."""

    def __init__(
        self,
        llm: "BaseLLMClient",
        config: OrchestratorConfig,
        *,
        cache: Optional[LabelCache] = None,
    ) -> None:
        self._llm = llm
        self._config = config
        self._cache = cache if cache is not None else LabelCache()

    async def classify(self, message: str) -> Optional[ChatCategory]:
        category = match_keywords(message)
        if category is not None:
            return category
        if len(message) > self._config.canned_llm_max_length:
            return None
        return await self._classify_with_llm(message)

    async def _classify_with_llm(self, message: str) -> Optional[ChatCategory]:
        if looks_like_thanks(message):
            return ChatCategory.THANKS
        hit, cached = self._cache.get(message)
        if hit:
            return cached
        if not self._llm.is_configured:
            return None
        try:
            raw = await with_timeout(
                self._llm.generate(
                    message,
                    system_prompt=_LABEL_PROMPT,
                    temperature=0.0,
                    max_tokens=self._config.canned_label_max_tokens,
                ),
                self._config.llm_timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.warning("CannedClassifier: label request timed out")
            return ChatCategory.THANKS if looks_like_thanks(message) else None
        except Exception as exc:
            logger.warning("CannedClassifier: label request failed: %s", exc)
            return ChatCategory.THANKS if looks_like_thanks(message) else None
        category = parse_label(raw)
        self._cache.put(message, category)
        logger.debug("CannedClassifier: LLM label %s for '%s'", category, message[:60])
        return category
