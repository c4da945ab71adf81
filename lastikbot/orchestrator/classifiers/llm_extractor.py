"""Layer 2: LLM-based intent extraction, used when the rule layer falls short.

``GenerativeIntentExtractor.extract`` never raises: it returns an
``ExtractionOutcome`` carrying either a parsed result or the error, and
``compose_detection`` decides how that combines with the rule-based result.
"""
from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, Optional

from lastikbot.core.exceptions import ExternalServiceError, IntentParseError, LastikbotError
from lastikbot.orchestrator.timeouts import with_timeout
from lastikbot.orchestrator.types import (
    ConversationContext,
    IntentDetectionResult,
    IntentType,
    OrchestratorConfig,
)

if TYPE_CHECKING:
    from lastikbot.clients.llm.base import BaseLLMClient
    from lastikbot.orchestrator.classifiers.rule_detector import RuleBasedIntentDetector

logger = logging.getLogger(__name__)

PARAMETER_KEYS = ("latitude", "longitude", "city", "district", "brand", "model", "year", "season")

_INTENT_PROMPT = """\
Analyze the following user message and determine the intent. Respond ONLY with a JSON object in this exact format:
{{
  "intent": "DealerSearchByLocation|DealerSearchByCityDistrict|TireSearch|GeneralQuestion",
  "parameters": {{
    "latitude": "<number if mentioned>",
    "longitude": "<number if mentioned>",
    "city": "<city name if mentioned>",
    "district": "<district name if mentioned>",
    "brand": "<vehicle brand if mentioned>",
    "model": "<vehicle model if mentioned>",
    "year": "<year if mentioned>",
    "season": "<summer|winter|all season if mentioned>"
  }},
  "requiresClarification": <true|false>,
  "clarificationMessage": "<message if clarification needed>"
}}

User message: {message}

Examples:
- "En yakın bayi nerede?" -> intent: DealerSearchByLocation, requiresClarification: true (needs lat/long)
- "İstanbul Kadıköy bayi" -> intent: DealerSearchByCityDistrict, city: İstanbul, district: Kadıköy
- "2021 Corolla için yaz lastiği öner" -> intent: TireSearch, brand: Toyota, model: Corolla, year: 2021, season: summer"""

_EMPTY_VALUES = ("null", "none", "n/a", "unknown")


@dataclass(frozen=True)
class ExtractionOutcome:
    """Either a parsed result or the error that prevented one."""

    result: Optional[IntentDetectionResult] = None
    error: Optional[LastikbotError] = None

    @property
    def ok(self) -> bool:
        return self.result is not None

    @classmethod
    def success(cls, result: IntentDetectionResult) -> "ExtractionOutcome":
        return cls(result=result)

    @classmethod
    def failure(cls, error: LastikbotError) -> "ExtractionOutcome":
        return cls(error=error)


def _clean_value(raw: Any) -> Optional[str]:
    """Drop nulls, blanks and echoed template placeholders like "<city name if mentioned>"."""
    if raw is None or isinstance(raw, (dict, list)):
        return None
    text = str(raw).strip()
    if not text or text.startswith("<") or text.lower() in _EMPTY_VALUES:
        return None
    return text


def _lower_keys(data: Dict[str, Any]) -> Dict[str, Any]:
    return {str(k).lower(): v for k, v in data.items()}


def parse_intent_response(raw: str, user_message: str) -> ExtractionOutcome:
    """Parse the JSON object between the first "{" and the last "}"; keys are case-insensitive."""
    text = raw or ""
    start, end = text.find("{"), text.rfind("}")
    if start < 0 or end <= start:
        return ExtractionOutcome.failure(
            IntentParseError("No JSON object in LLM reply", details={"reply": text[:200]})
        )
    try:
        data = json.loads(text[start:end + 1])
    except json.JSONDecodeError as exc:
        return ExtractionOutcome.failure(
            IntentParseError("Malformed JSON in LLM reply", details={"reply": text[:200]}, cause=exc)
        )
    if not isinstance(data, dict):
        return ExtractionOutcome.failure(IntentParseError("LLM reply JSON is not an object"))

    data = _lower_keys(data)
    raw_params = data.get("parameters")
    params = _lower_keys(raw_params) if isinstance(raw_params, dict) else {}
    parameters = {}
    for key in PARAMETER_KEYS:
        value = _clean_value(params.get(key))
        if value is not None:
            parameters[key] = value

    requires = data.get("requiresclarification")
    if isinstance(requires, str):
        requires = requires.strip().lower() == "true"
    return ExtractionOutcome.success(IntentDetectionResult(
        intent=IntentType.parse(data.get("intent")),
        parameters=parameters,
        requires_clarification=bool(requires),
        clarification_message=_clean_value(data.get("clarificationmessage")),
        user_message=user_message,
        source="llm",
    ))


def compose_detection(rule: IntentDetectionResult, outcome: ExtractionOutcome) -> IntentDetectionResult:
    """Combine a rule-based result with the extractor outcome.

    Failed extraction or an inconclusive LLM intent keeps the rule result.
    Otherwise the LLM intent is used, rule-found parameters win and the LLM
    fills in the rest.
    """
    if not outcome.ok:
        return rule
    llm = outcome.result
    if llm is None or llm.intent.is_inconclusive:
        return rule
    parameters = dict(llm.parameters)
    parameters.update({k: v for k, v in rule.parameters.items() if v})
    return IntentDetectionResult(
        intent=llm.intent,
        parameters=parameters,
        requires_clarification=llm.requires_clarification,
        clarification_message=llm.clarification_message,
        user_message=rule.user_message or llm.user_message,
        source="merged",
    )


class GenerativeIntentExtractor:
    """Asks the LLM for a JSON intent object."""

    def __init__(self, llm: "BaseLLMClient", config: OrchestratorConfig) -> None:
        self._llm = llm
        self._config = config

    @property
    def available(self) -> bool:
        return self._llm.is_configured

    async def extract(self, message: str, system_prompt: Optional[str] = None) -> ExtractionOutcome:
        prompt = _INTENT_PROMPT.format(message=message)
        try:
            raw = await with_timeout(
                self._llm.generate(
                    prompt,
                    system_prompt=system_prompt or self._config.system_prompt,
                    temperature=self._config.intent_temperature,
                    max_tokens=self._config.intent_max_tokens,
                ),
                self._config.llm_timeout_seconds,
            )
        except asyncio.TimeoutError as exc:
            logger.warning("Intent extraction timed out (%.0fs)", self._config.llm_timeout_seconds or 0)
            return ExtractionOutcome.failure(ExternalServiceError("Intent extraction timed out", cause=exc))
        except ExternalServiceError as exc:
            logger.error("Intent extraction failed: %s", exc)
            return ExtractionOutcome.failure(exc)
        except Exception as exc:
            logger.error("Intent extraction failed unexpectedly: %s", exc)
            return ExtractionOutcome.failure(ExternalServiceError("Intent extraction failed", cause=exc))

        outcome = parse_intent_response(raw, message)
        if not outcome.ok:
            logger.warning("Intent extraction unusable: %s", outcome.error)
        return outcome


def should_escalate(rule: IntentDetectionResult, context: Optional[ConversationContext]) -> bool:
    """Whether the rule result needs the LLM.

    An ongoing tire search that already holds brand and model never escalates,
    so slot answers like "2019" cannot replace them. Otherwise a tire search
    escalates when brand or model is missing; any other intent escalates only
    when inconclusive.
    """
    if (
        context is not None
        and context.current_intent is IntentType.TIRE_SEARCH
        and context.brand
        and context.model
    ):
        return False
    if rule.intent is IntentType.TIRE_SEARCH:
        return not (rule.param("brand") and rule.param("model"))
    return rule.intent.is_inconclusive


class IntentDetector:
    """Rule-based detection first; LLM extraction only when the rules are not enough."""

    def __init__(
        self,
        rules: "RuleBasedIntentDetector",
        extractor: GenerativeIntentExtractor,
    ) -> None:
        self._rules = rules
        self._extractor = extractor

    async def detect(
        self,
        message: str,
        context: Optional[ConversationContext] = None,
        system_prompt: Optional[str] = None,
    ) -> IntentDetectionResult:
        rule = self._rules.detect(message, context)
        if not should_escalate(rule, context):
            logger.info("Intent via rules: %s", rule.intent.value)
            return rule
        if not self._extractor.available:
            logger.info("LLM not configured; keeping rule intent %s", rule.intent.value)
            return rule
        logger.info("Escalating to LLM extraction (rule intent %s)", rule.intent.value)
        outcome = await self._extractor.extract(message, system_prompt)
        return compose_detection(rule, outcome)
