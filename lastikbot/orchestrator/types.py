"""Core data structures for the Orchestrator layer."""
from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from lastikbot.clients.search.models import Dealer, Tire


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class IntentType(str, Enum):
    """Intent categories. Values are the labels the LLM is asked to emit."""
    UNKNOWN = "Unknown"
    DEALER_SEARCH_BY_LOCATION = "DealerSearchByLocation"
    DEALER_SEARCH_BY_CITY_DISTRICT = "DealerSearchByCityDistrict"
    TIRE_SEARCH = "TireSearch"
    GENERAL_QUESTION = "GeneralQuestion"

    @classmethod
    def parse(cls, raw: Any) -> "IntentType":
        """Case-insensitive lookup by value or member name; anything else is UNKNOWN."""
        text = str(raw or "").strip().lower()
        for member in cls:
            if text in (member.value.lower(), member.name.lower()):
                return member
        return cls.UNKNOWN

    @property
    def is_dealer_search(self) -> bool:
        return self in (IntentType.DEALER_SEARCH_BY_LOCATION, IntentType.DEALER_SEARCH_BY_CITY_DISTRICT)

    @property
    def is_inconclusive(self) -> bool:
        return self in (IntentType.UNKNOWN, IntentType.GENERAL_QUESTION)


class ChatCategory(str, Enum):
    """Canned-response categories recognised by the lexical matcher."""
    GREETING = "greeting"
    HOW_ARE_YOU = "how_are_you"
    WHO_ARE_YOU = "who_are_you"
    WHAT_CAN_YOU_DO = "what_can_you_do"
    THANKS = "thanks"
    GOODBYE = "goodbye"


# Parameter keys mirrored into the ConversationContext slot fields.
TIRE_SLOTS = ("brand", "model", "year", "season")


@dataclass
class IntentDetectionResult:
    """Output of one detection call (rule-based or generative)."""

    intent: IntentType = IntentType.UNKNOWN
    parameters: Dict[str, str] = field(default_factory=dict)
    requires_clarification: bool = False
    clarification_message: Optional[str] = None
    user_message: str = ""
    source: str = "rule"  # "rule", "llm" or "merged"

    def param(self, key: str) -> Optional[str]:
        value = self.parameters.get(key)
        if value is None or not str(value).strip():
            return None
        return str(value).strip()

    @property
    def needs_clarification(self) -> bool:
        return self.requires_clarification and bool(self.clarification_message)


@dataclass
class ConversationContext:
    """Per-session dialogue state. Mutated by the orchestrator while the session lock is held."""

    session_id: str
    current_intent: Optional[IntentType] = None
    collected_parameters: Dict[str, str] = field(default_factory=dict)
    brand: Optional[str] = None
    model: Optional[str] = None
    year: Optional[str] = None
    season: Optional[str] = None
    brand_model_invalid_attempts: int = 0
    awaiting_whatsapp_consent: bool = False
    awaiting_whatsapp_phone: bool = False
    last_dealer_summary: Optional[str] = None
    last_activity: datetime = field(default_factory=utcnow)

    def touch(self) -> None:
        self.last_activity = utcnow()

    def merge(self, result: IntentDetectionResult) -> None:
        """Fold detected parameters into the context; the latest non-empty value wins."""
        if result.intent is IntentType.TIRE_SEARCH:
            self.current_intent = IntentType.TIRE_SEARCH
        for key, value in result.parameters.items():
            if value is None or not str(value).strip():
                continue
            value = str(value).strip()
            self.collected_parameters[key] = value
            if key in TIRE_SLOTS:
                setattr(self, key, value)

    def forget_model(self) -> None:
        self.model = None
        self.collected_parameters.pop("model", None)

    def reset_tire_search(self) -> None:
        self.current_intent = None
        self.brand = None
        self.model = None
        self.year = None
        self.season = None
        self.collected_parameters.clear()
        self.brand_model_invalid_attempts = 0

    def clear_whatsapp(self) -> None:
        self.awaiting_whatsapp_consent = False
        self.awaiting_whatsapp_phone = False
        self.last_dealer_summary = None

    def offer_whatsapp(self, summary: str) -> None:
        self.awaiting_whatsapp_consent = True
        self.awaiting_whatsapp_phone = False
        self.last_dealer_summary = summary

    def slots(self) -> Dict[str, Any]:
        """Everything except the activity timestamp; used to compare two reads."""
        return {f.name: getattr(self, f.name) for f in fields(self) if f.name != "last_activity"}


@dataclass(frozen=True)
class ChatResponse:
    """Reply for one turn. Carries dealers or tires, never both."""

    message: str
    dealers: Optional[List[Dealer]] = None
    tires: Optional[List[Tire]] = None
    session_id: Optional[str] = None

    def __post_init__(self) -> None:
        if self.dealers and self.tires:
            raise ValueError("ChatResponse carries either dealers or tires, not both")

    def with_session(self, session_id: str) -> "ChatResponse":
        return ChatResponse(
            message=self.message, dealers=self.dealers, tires=self.tires, session_id=session_id
        )


_DEFAULT_GREETING = "Merhaba! Bridgestone chatbot'una hoş geldiniz. Size nasıl yardımcı olabilirim?"
_DEFAULT_HOW_ARE_YOU = (
    "Teşekkür ederim, iyiyim! Size nasıl yardımcı olabilirim? "
    "Bridgestone bayileri, lastik önerileri veya başka bir konuda bilgi verebilirim."
)
_DEFAULT_WHO_ARE_YOU = (
    "Ben Bridgestone'un dijital asistanıyım. Size yakın bayileri bulma, araçınıza uygun lastik "
    "önerileri sunma ve Bridgestone hakkında bilgi verme konularında yardımcı olabilirim. "
    "Nasıl yardımcı olabilirim?"
)
_DEFAULT_WHAT_CAN_YOU_DO = (
    "Size şu konularda yardımcı olabilirim:\n\n"
    "📍 Yakınınızdaki Bridgestone bayilerini bulma\n"
    "🏙️ Şehir/ilçe bazında bayi arama\n"
    "🚗 Araçınıza uygun lastik önerileri\n"
    "ℹ️ Bridgestone hakkında genel bilgiler\n\n"
    "Nasıl yardımcı olabilirim?"
)
_DEFAULT_THANKS = "Rica ederim! Başka bir konuda yardımcı olabilir miyim?"
_DEFAULT_GOODBYE = "Hoşça kalın! İyi günler dilerim. İhtiyacınız olduğunda buradayım!"

DEFAULT_SYSTEM_PROMPT = (
    "Sen Bridgestone lastikleri ve bayi konumları için yardımcı bir asistansın. "
    "Kullanıcılara lastik ve bayi bilgisi sağla. Asla <think> etiketi veya herhangi bir içsel "
    "düşünce gösterme. Sadece son cevabı temiz ve Türkçe ver. Sadece Bridgestone lastikleri ve "
    "bayi konumları hakkında soruları cevapla. Başka bir konuda soru gelirse, sadece şu cevabı ver: "
    "\"Üzgünüm, sadece Bridgestone lastikleri ve bayi konumları hakkında sorulara cevap verebilirim. "
    "Size lastik önerileri konusunda yardımcı olabilirim.\""
)


def resolve_response(domain_override: Optional[str], global_default: Optional[str]) -> str:
    """First non-empty of (domain override, global default)."""
    if domain_override and domain_override.strip():
        return domain_override
    return global_default or ""


@dataclass
class CannedResponses:
    """Fixed replies per ChatCategory. Empty string means "not set"."""

    greeting: str = _DEFAULT_GREETING
    how_are_you: str = _DEFAULT_HOW_ARE_YOU
    who_are_you: str = _DEFAULT_WHO_ARE_YOU
    what_can_you_do: str = _DEFAULT_WHAT_CAN_YOU_DO
    thanks: str = _DEFAULT_THANKS
    goodbye: str = _DEFAULT_GOODBYE

    def get(self, category: ChatCategory) -> str:
        return getattr(self, category.value)

    def to_dict(self) -> Dict[str, str]:
        return {c.value: self.get(c) for c in ChatCategory}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]], *, fill_defaults: bool = True) -> "CannedResponses":
        """Build from a dict. Missing keys keep the built-in text, or stay empty
        when ``fill_defaults`` is False (per-domain overrides)."""
        data = data or {}
        base = cls() if fill_defaults else cls.empty()
        values = {}
        for category in ChatCategory:
            raw = data.get(category.value)
            values[category.value] = str(raw) if isinstance(raw, str) and raw.strip() else base.get(category)
        return cls(**values)

    @classmethod
    def empty(cls) -> "CannedResponses":
        return cls(**{c.value: "" for c in ChatCategory})


@dataclass
class OrchestratorConfig:
    """Tunable orchestrator behaviour; persisted as JSON via to_dict/from_dict."""

    system_prompt: str = DEFAULT_SYSTEM_PROMPT
    temperature: float = 0.7
    max_tokens: int = 2000

    intent_temperature: float = 0.3
    intent_max_tokens: int = 500
    canned_label_max_tokens: int = 10

    llm_timeout_seconds: Optional[float] = 120.0
    """Timeout for every LLM call. None = no timeout."""

    max_message_length: int = 400
    canned_llm_max_length: int = 120
    """Messages longer than this never reach the closed-label LLM classifier."""

    context_idle_minutes: int = 30
    max_brand_model_attempts: int = 3
    dealer_summary_limit: int = 5

    context_backend: str = "memory"
    """"memory" (process-local map) or "database" (conversation_contexts table)."""

    canned_responses: CannedResponses = field(default_factory=CannedResponses)
    domain_responses: Dict[str, CannedResponses] = field(default_factory=dict)

    def response_for(self, category: ChatCategory, domain: Optional[str] = None) -> str:
        override = self.domain_responses.get(domain) if domain else None
        return resolve_response(
            override.get(category) if override else None,
            self.canned_responses.get(category),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "system_prompt": self.system_prompt,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
            "intent_temperature": self.intent_temperature,
            "intent_max_tokens": self.intent_max_tokens,
            "canned_label_max_tokens": self.canned_label_max_tokens,
            "llm_timeout_seconds": self.llm_timeout_seconds,
            "max_message_length": self.max_message_length,
            "canned_llm_max_length": self.canned_llm_max_length,
            "context_idle_minutes": self.context_idle_minutes,
            "max_brand_model_attempts": self.max_brand_model_attempts,
            "dealer_summary_limit": self.dealer_summary_limit,
            "context_backend": self.context_backend,
            "canned_responses": self.canned_responses.to_dict(),
            "domain_responses": {d: r.to_dict() for d, r in self.domain_responses.items()},
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]] = None) -> "OrchestratorConfig":
        """Load from a dict (e.g. JSON file). Missing keys use defaults, bad values fall back."""
        if not data:
            return cls()
        defaults = cls()

        def _float(key: str) -> float:
            try:
                return float(data[key])
            except (KeyError, TypeError, ValueError):
                return getattr(defaults, key)

        def _int(key: str, min_val: int = 1) -> int:
            try:
                value = int(data[key])
            except (KeyError, TypeError, ValueError):
                return getattr(defaults, key)
            return value if value >= min_val else getattr(defaults, key)

        timeout = data.get("llm_timeout_seconds", defaults.llm_timeout_seconds)
        if timeout is not None:
            try:
                timeout = float(timeout)
            except (TypeError, ValueError):
                timeout = defaults.llm_timeout_seconds

        backend = str(data.get("context_backend") or "memory").strip().lower()
        if backend not in ("memory", "database"):
            backend = "memory"

        raw_domains = data.get("domain_responses") or {}
        domain_responses = {
            str(domain): CannedResponses.from_dict(values, fill_defaults=False)
            for domain, values in raw_domains.items()
            if isinstance(values, dict)
        }
        return cls(
            system_prompt=str(data.get("system_prompt") or DEFAULT_SYSTEM_PROMPT),
            temperature=_float("temperature"),
            max_tokens=_int("max_tokens"),
            intent_temperature=_float("intent_temperature"),
            intent_max_tokens=_int("intent_max_tokens"),
            canned_label_max_tokens=_int("canned_label_max_tokens"),
            llm_timeout_seconds=timeout,
            max_message_length=_int("max_message_length"),
            canned_llm_max_length=_int("canned_llm_max_length", min_val=0),
            context_idle_minutes=_int("context_idle_minutes"),
            max_brand_model_attempts=_int("max_brand_model_attempts"),
            dealer_summary_limit=_int("dealer_summary_limit"),
            context_backend=backend,
            canned_responses=CannedResponses.from_dict(data.get("canned_responses")),
            domain_responses=domain_responses,
        )
