"""
Bridgestone dealer/tire search API over httpx.

Endpoints (GET, relative to SEARCH_API_BASE_URL):
    /SearchDealers?lat=&longitude=
    /SearchByLocation?city=&district=
    /Search?brand=&model=&year=

Transport or payload errors never escape the public methods: they are logged
and turned into an unsuccessful result with no message, so callers fall back
to their own user-facing text.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional, Protocol

import httpx
from pydantic import ValidationError as PydanticValidationError

from lastikbot.clients.search.models import (
    BrandModelValidation,
    DealerSearchResult,
    Tire,
    TireSearchResult,
)
from lastikbot.config import SearchApiConfig
from lastikbot.core.exceptions import SearchApiError

logger = logging.getLogger(__name__)


class SearchClient(Protocol):
    """What the orchestrator needs from a dealer/tire search backend."""

    async def search_dealers_by_location(self, latitude: float, longitude: float) -> DealerSearchResult: ...

    async def search_dealers_by_city_district(self, city: str, district: str) -> DealerSearchResult: ...

    async def search_tires(self, brand: str, model: str, year: int, season: str) -> TireSearchResult: ...

    async def validate_brand_model(self, brand: str, model: str) -> BrandModelValidation: ...


class BridgestoneSearchClient:
    """Async client; pass ``http_client`` to share a pool or inject a mock transport."""

    def __init__(
        self,
        config: Optional[SearchApiConfig] = None,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._config = config or SearchApiConfig.from_env()
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            base_url=self._config.base_url,
            timeout=self._config.timeout_seconds,
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _get_json(self, path: str, params: Dict[str, Any]) -> Any:
        url = f"{self._config.base_url}/{path}"
        logger.info("Calling search API: %s params=%s", path, params)
        try:
            response = await self._client.get(url, params=params)
            response.raise_for_status()
            return response.json()
        except httpx.TimeoutException as exc:
            raise SearchApiError(
                f"{path} timed out", details={"endpoint": path}, cause=exc
            ) from exc
        except httpx.HTTPStatusError as exc:
            raise SearchApiError(
                f"{path} returned HTTP {exc.response.status_code}",
                details={"endpoint": path, "status": exc.response.status_code},
                cause=exc,
            ) from exc
        except (httpx.HTTPError, json.JSONDecodeError) as exc:
            raise SearchApiError(f"{path} failed", details={"endpoint": path}, cause=exc) from exc

    async def _dealer_search(self, path: str, params: Dict[str, Any]) -> DealerSearchResult:
        try:
            payload = await self._get_json(path, params)
            if not isinstance(payload, dict):
                raise SearchApiError(f"{path} returned {type(payload).__name__}, expected object")
            return DealerSearchResult.model_validate(payload)
        except SearchApiError as exc:
            logger.error("Dealer search failed: %s", exc, extra={"error": exc.to_dict()})
        except PydanticValidationError as exc:
            logger.error("Dealer search payload invalid (%s): %s", path, exc)
        return DealerSearchResult(success=False)

    async def search_dealers_by_location(self, latitude: float, longitude: float) -> DealerSearchResult:
        return await self._dealer_search("SearchDealers", {"lat": latitude, "longitude": longitude})

    async def search_dealers_by_city_district(self, city: str, district: str) -> DealerSearchResult:
        return await self._dealer_search("SearchByLocation", {"city": city, "district": district or ""})

    async def _query_tires(self, params: Dict[str, Any]) -> TireSearchResult:
        payload = await self._get_json("Search", params)
        return parse_tire_payload(payload)

    async def search_tires(self, brand: str, model: str, year: int, season: str) -> TireSearchResult:
        # The endpoint has no season filter.
        try:
            return await self._query_tires({"brand": brand, "model": model, "year": year})
        except SearchApiError as exc:
            logger.error("Tire search failed (season=%s): %s", season, exc, extra={"error": exc.to_dict()})
        except PydanticValidationError as exc:
            logger.error("Tire search payload invalid: %s", exc)
        return TireSearchResult()

    async def validate_brand_model(self, brand: str, model: str) -> BrandModelValidation:
        """Query without a year; the wrapped form with success=false means the pair does not exist.

        Transport failures count as a match so an API outage does not burn the user's attempts.
        """
        try:
            result = await self._query_tires({"brand": brand, "model": model})
        except (SearchApiError, PydanticValidationError) as exc:
            logger.warning("Brand/model validation skipped: %s", exc)
            return BrandModelValidation(is_mismatch=False)
        if result.api_success is False:
            return BrandModelValidation(is_mismatch=True, message=result.message)
        return BrandModelValidation(is_mismatch=False)


def parse_tire_payload(payload: Any) -> TireSearchResult:
    """Accept either ``[tire, ...]`` or ``{"success": .., "message": .., "data": [...]}``."""
    if isinstance(payload, list):
        return TireSearchResult(tires=_tires(payload))
    if isinstance(payload, dict):
        lowered = {str(k).lower(): v for k, v in payload.items()}
        message = lowered.get("message")
        success = lowered.get("success")
        return TireSearchResult(
            tires=_tires(lowered.get("data") or []),
            message=str(message) if message and str(message).strip() else None,
            api_success=_parse_flag(success),
        )
    raise SearchApiError(f"Search returned {type(payload).__name__}, expected list or object")


def _parse_flag(raw: Any) -> Optional[bool]:
    """``true``/``"true"``/``1`` style success flags; None when absent or unrecognised."""
    if raw is None or isinstance(raw, bool):
        return raw
    if isinstance(raw, (int, float)):
        return bool(raw)
    text = str(raw).strip().lower()
    if text in ("true", "1", "yes"):
        return True
    if text in ("false", "0", "no"):
        return False
    return None


def _tires(items: List[Any]) -> List[Tire]:
    return [Tire.model_validate(item) for item in items if isinstance(item, dict)]
