"""Dealer search handlers: by coordinates and by city/district."""
from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Optional, Tuple

from lastikbot.orchestrator.formatter import build_dealer_summary, format_api_message
from lastikbot.orchestrator.handlers.base import BaseHandler
from lastikbot.orchestrator.handlers.whatsapp_handler import CONSENT_QUESTION
from lastikbot.orchestrator.text import capitalize_turkish
from lastikbot.orchestrator.types import (
    ChatResponse,
    ConversationContext,
    IntentDetectionResult,
    OrchestratorConfig,
)

if TYPE_CHECKING:
    from lastikbot.clients.search import DealerSearchResult, SearchClient

logger = logging.getLogger(__name__)

MISSING_COORDINATES_MESSAGE = (
    "Konum bilgileriniz eksik görünüyor. Lütfen konum butonuna tıklayın veya enlem ve boylam "
    "bilgilerinizi paylaşın (örnek: Latitude 41.0082, Longitude 28.9784)."
)
NO_NEARBY_DEALER_MESSAGE = "Yakınınızda bir bayi bulunamadı."
MISSING_CITY_MESSAGE = "Lütfen şehir adını belirtin."

_LATITUDE = re.compile(r"(?:latitude|lat|enlem)[\s:]*([+-]?\d+\.?\d*)", re.IGNORECASE)
_LONGITUDE = re.compile(r"(?:longitude|long|lng|boylam)[\s:]*([+-]?\d+\.?\d*)", re.IGNORECASE)
_NUMBER_PAIR = re.compile(r"([+-]?\d+\.?\d*)[\s,]+([+-]?\d+\.?\d*)")


def _to_float(raw: Optional[str]) -> Optional[float]:
    if raw is None:
        return None
    try:
        return float(str(raw).strip().replace(",", "."))
    except ValueError:
        return None


def resolve_coordinates(detection: IntentDetectionResult) -> Tuple[Optional[float], Optional[float]]:
    """Coordinates from the detected parameters, else re-read from the user message."""
    lat = _to_float(detection.param("latitude"))
    lon = _to_float(detection.param("longitude"))
    if lat is not None and lon is not None:
        return lat, lon

    text = detection.user_message or ""
    if lat is None:
        m = _LATITUDE.search(text)
        lat = _to_float(m.group(1)) if m else None
    if lon is None:
        m = _LONGITUDE.search(text)
        lon = _to_float(m.group(1)) if m else None
    if lat is None or lon is None:
        m = _NUMBER_PAIR.search(text)
        if m:
            first, second = _to_float(m.group(1)), _to_float(m.group(2))
            if first is not None and second is not None:
                lat = first if lat is None else lat
                lon = second if lon is None else lon
    return lat, lon


class _DealerHandlerBase(BaseHandler):
    def __init__(self, search: "SearchClient", config: OrchestratorConfig) -> None:
        self._search = search
        self._config = config

    def _offer(self, result: "DealerSearchResult", context: ConversationContext) -> ChatResponse:
        """Found dealers: remember a summary and ask about the WhatsApp hand-off."""
        message = format_api_message(result.message) or f"{len(result.dealers)} adet bayi bulundu"
        context.offer_whatsapp(build_dealer_summary(result.dealers, self._config.dealer_summary_limit))
        return ChatResponse(message=f"{message}\n\n{CONSENT_QUESTION}", dealers=result.dealers)


class DealerByLocationHandler(_DealerHandlerBase):
    async def handle(
        self,
        detection: IntentDetectionResult,
        context: ConversationContext,
    ) -> ChatResponse:
        lat, lon = resolve_coordinates(detection)
        if lat is None or lon is None:
            return ChatResponse(message=MISSING_COORDINATES_MESSAGE)

        logger.info("Searching dealers near lat=%s lon=%s", lat, lon)
        result = await self._search.search_dealers_by_location(lat, lon)
        if not result.found:
            return ChatResponse(message=format_api_message(result.message) or NO_NEARBY_DEALER_MESSAGE)
        return self._offer(result, context)


class DealerByCityHandler(_DealerHandlerBase):
    async def handle(
        self,
        detection: IntentDetectionResult,
        context: ConversationContext,
    ) -> ChatResponse:
        city = detection.param("city")
        if not city:
            return ChatResponse(message=MISSING_CITY_MESSAGE)
        city = capitalize_turkish(city)
        district = capitalize_turkish(detection.param("district") or "")

        logger.info("Searching dealers in %s / %s", city, district or "-")
        result = await self._search.search_dealers_by_city_district(city, district)
        if not result.found:
            area = f"{city} {district}" if district else city
            return ChatResponse(
                message=format_api_message(result.message) or f"{area} bölgesinde bayi bulunamadı."
            )
        return self._offer(result, context)
