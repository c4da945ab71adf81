"""Tire search slot filling: brand -> model -> brand/model check -> year -> search."""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from lastikbot.orchestrator.classifiers.rule_detector import normalize_season
from lastikbot.orchestrator.formatter import display_brand, display_model, format_api_message
from lastikbot.orchestrator.handlers.base import BaseHandler
from lastikbot.orchestrator.types import (
    ChatResponse,
    ConversationContext,
    IntentDetectionResult,
    OrchestratorConfig,
)

if TYPE_CHECKING:
    from lastikbot.clients.search import SearchClient

logger = logging.getLogger(__name__)

ASK_BRAND = "Araç markasını belirtir misiniz? (Örnek: Toyota, Ford, BMW)"
ASK_MODEL = "Marka: {brand}. Araç modelini belirtir misiniz? (Örnek: Corolla, Focus, 3 Series)"
ASK_YEAR = "Marka: {brand}, Model: {model}. Araç yılını belirtir misiniz? (Örnek: 2020, 2021)"
MISMATCH_WARNING = "Girdiğiniz marka/model eşleşmedi. Lütfen doğru marka ve modeli girin."
REENTER_MODEL = "Lütfen model bilgisini yeniden girin."
TOO_MANY_ATTEMPTS = "Marka / model bilgisi yanlış girildi, lütfen tekrar deneyiniz."


def _pick(detection: IntentDetectionResult, key: str, fallback: Optional[str]) -> Optional[str]:
    value = detection.param(key)
    if value:
        return value
    return fallback if fallback and fallback.strip() else None


def _parse_year(raw: Optional[str]) -> Optional[int]:
    if not raw:
        return None
    try:
        return int(raw.strip())
    except ValueError:
        return None


class TireSearchHandler(BaseHandler):
    """Asks for whatever is missing; searches once brand, model and year are known."""

    def __init__(self, search: "SearchClient", config: OrchestratorConfig) -> None:
        self._search = search
        self._config = config

    async def handle(
        self,
        detection: IntentDetectionResult,
        context: ConversationContext,
    ) -> ChatResponse:
        brand = _pick(detection, "brand", context.brand)
        model = _pick(detection, "model", context.model)
        year_raw = _pick(detection, "year", context.year)
        season = _pick(detection, "season", context.season)

        for key, value in (("brand", brand), ("model", model), ("year", year_raw), ("season", season)):
            if value and not getattr(context, key):
                setattr(context, key, value)

        if not brand:
            return ChatResponse(message=ASK_BRAND)
        if not model:
            return ChatResponse(message=ASK_MODEL.format(brand=display_brand(brand)))

        validation = await self._search.validate_brand_model(brand, model)
        if validation.is_mismatch:
            return self._mismatch(context, validation.message)
        context.brand_model_invalid_attempts = 0

        year = _parse_year(year_raw)
        if year is None:
            return ChatResponse(
                message=ASK_YEAR.format(brand=display_brand(brand), model=display_model(model))
            )

        season = normalize_season(season)
        logger.info("Searching tires: brand=%s model=%s year=%s season=%s", brand, model, year, season)
        result = await self._search.search_tires(brand, model, year, season)
        context.reset_tire_search()

        if not result.success:
            fallback = f"{year} {brand} {model} için {season} lastik bulunamadı."
            return ChatResponse(message=format_api_message(result.message or fallback))
        return ChatResponse(
            message=result.message or f"{len(result.tires)} adet lastik bulundu",
            tires=result.tires,
        )

    def _mismatch(self, context: ConversationContext, api_message: Optional[str]) -> ChatResponse:
        context.brand_model_invalid_attempts += 1
        context.forget_model()
        attempts = context.brand_model_invalid_attempts
        logger.info("Brand/model mismatch (attempt %d/%d)", attempts, self._config.max_brand_model_attempts)
        if attempts >= self._config.max_brand_model_attempts:
            context.reset_tire_search()
            return ChatResponse(message=TOO_MANY_ATTEMPTS)
        warning = format_api_message(api_message) if api_message and api_message.strip() else MISMATCH_WARNING
        return ChatResponse(message=f"{warning}\n{REENTER_MODEL}")
