"""Pydantic v2 models for the dealer/tire search API payloads."""
from __future__ import annotations

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


def _parse_decimal(raw: Any) -> Optional[float]:
    """Float from a value that may use a comma as decimal separator ("41,0082")."""
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        return float(raw)
    text = str(raw).strip().replace(",", ".")
    if not text:
        return None
    try:
        return float(text)
    except ValueError:
        return None


class _ApiModel(BaseModel):
    """Field names are matched case-insensitively against the payload keys."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def _match_keys_case_insensitively(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        known = {}
        for name, info in cls.model_fields.items():
            known[name.lower()] = name
            if info.alias:
                known[info.alias.lower()] = info.alias
        return {known.get(str(k).lower(), k): v for k, v in data.items()}


class Dealer(_ApiModel):
    unvan1: str = ""
    unvan2: str = ""
    il: str = ""
    ilce: str = ""
    adres1: str = ""
    adres2: str = ""
    telefon1: str = ""
    email: str = ""
    enlem: str = ""
    boylam: str = ""
    distance: Optional[float] = None
    google_maps_url: str = Field(default="", alias="googleMapsUrl")

    @field_validator(
        "unvan1", "unvan2", "il", "ilce", "adres1", "adres2",
        "telefon1", "email", "enlem", "boylam", "google_maps_url",
        mode="before",
    )
    @classmethod
    def _none_to_empty(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("distance", mode="before")
    @classmethod
    def _distance(cls, value: Any) -> Optional[float]:
        return _parse_decimal(value)

    @property
    def full_name(self) -> str:
        return f"{self.unvan1} {self.unvan2}".strip()

    @property
    def full_address(self) -> str:
        return f"{self.adres1} {self.adres2}".strip()

    @property
    def latitude(self) -> Optional[float]:
        return _parse_decimal(self.enlem)

    @property
    def longitude(self) -> Optional[float]:
        return _parse_decimal(self.boylam)


class Tire(_ApiModel):
    content: str = ""
    description: str = ""
    available_sizes: str = Field(default="", alias="availableSizes")
    product_url: str = Field(default="", alias="productUrl")
    season: str = ""

    @field_validator("content", "description", "available_sizes", "product_url", "season", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @property
    def name(self) -> str:
        return self.content

    @property
    def product_urls(self) -> List[str]:
        return [u.strip() for u in self.product_url.split(",") if u.strip()]


class DealerSearchResult(_ApiModel):
    """Dealer endpoints answer {data, success, message}."""

    success: bool = False
    message: Optional[str] = None
    dealers: List[Dealer] = Field(default_factory=list, alias="data")

    @field_validator("message", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Optional[str]:
        if value is None or not str(value).strip():
            return None
        return str(value)

    @field_validator("dealers", mode="before")
    @classmethod
    def _none_to_list(cls, value: Any) -> Any:
        return [] if value is None else value

    @property
    def found(self) -> bool:
        return self.success and bool(self.dealers)


class TireSearchResult(BaseModel):
    """Normalised outcome of the tire endpoint (bare list or wrapped object)."""

    tires: List[Tire] = Field(default_factory=list)
    message: Optional[str] = None
    api_success: Optional[bool] = None
    """The wrapped form's ``success`` flag; None for the bare-list form."""

    @property
    def success(self) -> bool:
        return bool(self.tires)


class BrandModelValidation(BaseModel):
    is_mismatch: bool = False
    message: Optional[str] = None
