"""Layer 1: deterministic intent detection from regexes, keywords and lookup tables.

Never calls the LLM and never raises; the first matching step of the cascade wins:

1. labelled coordinates        -> DealerSearchByLocation
2. bare in-range number pair   -> DealerSearchByLocation
3. purchase/dealer/location cue right after a tire search
4. "en yakın" + dealer/purchase cue
5. purchase + location cue (city lookup first)
6. location + dealer cue, or location + action cue
7. known city + dealer/purchase/action/existence cue -> DealerSearchByCityDistrict
8. tire cue, known brand/model, a year, or an ongoing tire search -> TireSearch
9. anything else               -> GeneralQuestion
"""
from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, List, Optional, Pattern, Sequence, Tuple

from lastikbot.orchestrator.text import contains_any, contains_fuzzy, fold, invariant_lower
from lastikbot.orchestrator.types import ConversationContext, IntentDetectionResult, IntentType

if TYPE_CHECKING:
    from lastikbot.clients.gazetteer import Gazetteer

logger = logging.getLogger(__name__)

VEHICLES_PATH = Path(__file__).resolve().parent.parent / "data" / "vehicles.json"

LOCATION_CLARIFICATION = (
    "Konumunuzu almak için izin verir misiniz? Konum butonuna tıklayın veya konumunuzu "
    "manuel olarak paylaşın."
)

LABELLED_COORDINATES = re.compile(
    r"(?:latitude|lat|enlem)[\s:]*([+-]?\d+\.?\d*)[\s,]+(?:longitude|long|lng|boylam)[\s:]*([+-]?\d+\.?\d*)",
    re.IGNORECASE,
)
BARE_COORDINATES = re.compile(r"([+-]?\d+\.?\d+)[\s,]+([+-]?\d+\.?\d+)")
YEAR = re.compile(r"\b(?:19|20)\d{2}\b")

LOCATION_KEYWORDS = ("yakın", "yakınım", "en yakın", "yakındaki", "yakınımdaki", "en yakındaki")
DEALER_KEYWORDS = ("bayi", "bayiler", "dealer", "dealers", "yetkili", "servis", "bayileri", "bayiyi")
PURCHASE_KEYWORDS = (
    "nereden alabilirim", "alabileceğim", "alabilecegim", "satın alabilirim", "alabilirim",
    "nereden", "nereye", "nerede alabilirim", "nerede satın alabilirim",
)
ACTION_KEYWORDS = (
    "listele", "listeler", "göster", "bul", "bulur", "bulabilir", "bulabilir misin",
    "listeler misin", "gösterir misin",
)
EXISTENCE_PHRASES = ("var mı", "var", "bulunur", "bulabilir")
NEAREST_PHRASE = ("en yakın",)

TIRE_KEYWORDS = ("lastik", "tire", "yaz", "kış", "lastiği", "lastikleri")
SEASON_KEYWORDS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("summer", ("yaz", "summer", "yazlık")),
    ("winter", ("kış", "winter", "kışlık")),
    ("all season", ("dört mevsim", "all season", "allseason")),
)


def _fold_all(words: Sequence[str]) -> Tuple[str, ...]:
    return tuple(fold(w) for w in words)


_LOCATION_F = _fold_all(LOCATION_KEYWORDS)
_DEALER_F = _fold_all(DEALER_KEYWORDS)
_PURCHASE_F = _fold_all(PURCHASE_KEYWORDS)
_ACTION_F = _fold_all(ACTION_KEYWORDS)
_EXISTENCE_F = _fold_all(EXISTENCE_PHRASES)
_NEAREST_F = _fold_all(NEAREST_PHRASE)


def parse_labelled_coordinates(text: str) -> Optional[Tuple[float, float]]:
    m = LABELLED_COORDINATES.search(text)
    if not m:
        return None
    try:
        return float(m.group(1)), float(m.group(2))
    except ValueError:
        return None


def parse_bare_coordinates(text: str) -> Optional[Tuple[float, float]]:
    """First "X, Y" / "X Y" number pair, accepted only inside lat/lon ranges."""
    m = BARE_COORDINATES.search(text)
    if not m:
        return None
    try:
        lat, lon = float(m.group(1)), float(m.group(2))
    except ValueError:
        return None
    if -90 <= lat <= 90 and -180 <= lon <= 180:
        return lat, lon
    return None


def normalize_season(raw: Optional[str]) -> str:
    """Map free text to "summer", "winter" or "all season" (the default)."""
    text = invariant_lower(raw or "")
    if "yaz" in text or "summer" in text:
        return "summer"
    if "kış" in text or "winter" in text:
        return "winter"
    return "all season"


@dataclass(frozen=True)
class _Term:
    name: str
    pattern: Pattern[str]


class VehicleCatalog:
    """Known brands and models, loaded once from ``vehicles.json``. List order is match priority."""

    def __init__(self, brands: Sequence[str], models: Sequence[str]) -> None:
        self._brands = self._compile(brands)
        self._models = self._compile(models)

    @staticmethod
    def _compile(names: Sequence[str]) -> List[_Term]:
        terms = []
        for name in names:
            key = invariant_lower(str(name).strip())
            if key:
                terms.append(_Term(key, re.compile(r"\b" + re.escape(key) + r"\b")))
        return terms

    @classmethod
    def from_json(cls, path: Path = VEHICLES_PATH) -> "VehicleCatalog":
        with Path(path).open(encoding="utf-8") as fh:
            payload = json.load(fh)
        return cls(payload.get("brands") or [], payload.get("models") or [])

    @staticmethod
    def _first(terms: List[_Term], lowered: str) -> Optional[str]:
        for term in terms:
            if term.pattern.search(lowered):
                return term.name
        return None

    def find_brand(self, lowered: str) -> Optional[str]:
        return self._first(self._brands, lowered)

    def find_model(self, lowered: str) -> Optional[str]:
        return self._first(self._models, lowered)

    @property
    def brand_count(self) -> int:
        return len(self._brands)

    @property
    def model_count(self) -> int:
        return len(self._models)


class RuleBasedIntentDetector:
    """Keyword/regex/gazetteer cascade. ``detect`` always returns a populated result."""

    def __init__(self, gazetteer: "Gazetteer", catalog: Optional[VehicleCatalog] = None) -> None:
        self._gazetteer = gazetteer
        self._catalog = catalog or VehicleCatalog.from_json()

    def detect(
        self, message: str, context: Optional[ConversationContext] = None
    ) -> IntentDetectionResult:
        lowered = invariant_lower(message)
        result = IntentDetectionResult(user_message=message, source="rule")

        coords = parse_labelled_coordinates(lowered) or parse_bare_coordinates(lowered)
        if coords is not None:
            logger.info("Coordinates detected: lat=%s lon=%s", coords[0], coords[1])
            return self._location(result, coords)

        folded = fold(message)
        has_location = contains_fuzzy(folded, _LOCATION_F)
        has_dealer = contains_fuzzy(folded, _DEALER_F)
        has_purchase = contains_fuzzy(folded, _PURCHASE_F)
        has_action = contains_fuzzy(folded, _ACTION_F)
        logger.info(
            "Rule cues: location=%s dealer=%s purchase=%s action=%s",
            has_location, has_dealer, has_purchase, has_action,
        )
        in_tire_search = context is not None and context.current_intent is IntentType.TIRE_SEARCH

        if in_tire_search and (has_purchase or has_dealer or has_location):
            city = self._gazetteer.find_city(message)
            if city is not None:
                return self._city_district(result, message, city)
            if has_location:
                return self._ask_location(result)

        if contains_fuzzy(folded, _NEAREST_F) and (has_dealer or has_purchase):
            return self._ask_location(result)

        if has_purchase and has_location:
            city = self._gazetteer.find_city(message)
            if city is not None:
                return self._city_district(result, message, city)
            return self._ask_location(result)

        if has_location and (has_dealer or has_action):
            return self._ask_location(result)

        city = self._gazetteer.find_city(message)
        if city is not None and self._has_search_cue(folded):
            return self._city_district(result, message, city)

        return self._tire_or_general(result, message, lowered, in_tire_search)

    @staticmethod
    def _has_search_cue(folded: str) -> bool:
        return any(
            contains_any(folded, words)
            for words in (_DEALER_F, _PURCHASE_F, _ACTION_F, _EXISTENCE_F)
        )

    @staticmethod
    def _location(result: IntentDetectionResult, coords: Tuple[float, float]) -> IntentDetectionResult:
        result.intent = IntentType.DEALER_SEARCH_BY_LOCATION
        result.parameters["latitude"] = str(coords[0])
        result.parameters["longitude"] = str(coords[1])
        result.requires_clarification = False
        return result

    @staticmethod
    def _ask_location(result: IntentDetectionResult) -> IntentDetectionResult:
        result.intent = IntentType.DEALER_SEARCH_BY_LOCATION
        result.requires_clarification = True
        result.clarification_message = LOCATION_CLARIFICATION
        return result

    def _city_district(self, result: IntentDetectionResult, message: str, city: str) -> IntentDetectionResult:
        result.intent = IntentType.DEALER_SEARCH_BY_CITY_DISTRICT
        result.parameters["city"] = city
        district = self._gazetteer.find_district(message, city)
        if district:
            result.parameters["district"] = district
        logger.info("City/district detected: %s / %s", city, district or "-")
        return result

    def _tire_or_general(
        self, result: IntentDetectionResult, message: str, lowered: str, in_tire_search: bool
    ) -> IntentDetectionResult:
        brand = self._catalog.find_brand(lowered)
        model = self._catalog.find_model(lowered)
        year = YEAR.search(message)
        has_tire_cue = contains_any(lowered, TIRE_KEYWORDS)

        if not (has_tire_cue or brand or model or year or in_tire_search):
            result.intent = IntentType.GENERAL_QUESTION
            return result

        result.intent = IntentType.TIRE_SEARCH
        if brand:
            result.parameters["brand"] = brand
        if model:
            result.parameters["model"] = model
        if year:
            result.parameters["year"] = year.group(0)
        for season, words in SEASON_KEYWORDS:
            if contains_any(lowered, words):
                result.parameters["season"] = season
                break
        if has_tire_cue and not (brand or model):
            logger.info("Tire cue without a known brand/model; leaving extraction to the LLM")
        return result
