"""Post-processing for text that comes back from the search API.

Generative output is never passed through here.
"""
from __future__ import annotations

import re
from typing import Iterable, List, Optional, Pattern, Tuple

from lastikbot.clients.search.models import Dealer
from lastikbot.orchestrator.text import turkish_upper

DEALER_SUMMARY_HEADER = "Bayi listesi:"

DISPLAY_BRANDS = (
    "TOYOTA", "DACIA", "FORD", "BMW", "MERCEDES", "MERCEDES-BENZ", "AUDI", "VOLKSWAGEN", "RENAULT",
    "PEUGEOT", "CITROEN", "OPEL", "FIAT", "HYUNDAI", "KIA", "NISSAN", "HONDA", "MAZDA", "SUBARU",
    "SUZUKI", "MITSUBISHI", "VOLVO", "SKODA", "SEAT", "CHEVROLET", "JEEP", "LAND ROVER", "MINI",
    "ALFA ROMEO", "LEXUS", "INFINITI", "ACURA", "GENESIS", "BENTLEY", "PORSCHE", "FERRARI",
    "LAMBORGHINI", "MASERATI", "ASTON MARTIN", "JAGUAR", "ROLLS-ROYCE", "TESLA", "BYD", "GEELY",
)
DISPLAY_MODELS = (
    "COROLLA", "DUSTER", "FOCUS", "FIESTA", "GOLF", "PASSAT", "POLO", "CIVIC", "ACCORD", "CR-V",
    "ELANTRA", "SONATA", "RIO", "CERATO", "SENTRA", "ALTIMA", "MAZDA3", "MAZDA6", "IMPREZA",
    "OUTBACK", "YARIS", "CAMRY", "RAV4", "HILUX", "SANDERO", "LOGAN", "CLIO", "MEGANE", "ASTRA",
    "CORSA", "TIGUAN", "A3", "A4", "A6", "3 SERIES", "5 SERIES", "C-CLASS", "E-CLASS",
    "HR-V", "PRIUS", "AURIS", "AVENSIS", "COROLLA VERSO", "LAND CRUISER", "PRADO",
)

_PUNCTUATION_GAP = re.compile(r"([.!?;])([^\s])")


def _title(part: str) -> str:
    return part[:1].upper() + part[1:].lower() if part else part


def display_brand(brand: str) -> str:
    """"LAND ROVER" -> "Land Rover", "MERCEDES" -> "Mercedes-Benz", "BMW" -> "BMW"."""
    if not brand or not brand.strip():
        return brand
    upper = brand.upper()
    if upper == "BMW":
        return "BMW"
    if upper in ("MERCEDES", "MERCEDES-BENZ"):
        return "Mercedes-Benz"
    if " " in brand:
        return " ".join(_title(p) for p in brand.split(" "))
    if "-" in brand:
        return "-".join(_title(p) for p in brand.split("-"))
    return _title(brand)


def display_model(model: str) -> str:
    """"3 SERIES" -> "3 Series", "CR-V" -> "CR-V", "COROLLA" -> "Corolla"."""
    if not model or not model.strip():
        return model
    upper = model.upper()
    if "SERIES" in upper or "CLASS" in upper:
        return " ".join(_title(p) for p in model.split(" "))
    if "-" in model:
        return "-".join(p[:1].upper() + p[1:].upper() for p in model.split("-"))
    return _title(model)


def _replacements(names: Iterable[str], render) -> List[Tuple[Pattern[str], str]]:
    return [
        (re.compile(r"\b" + re.escape(name) + r"\b", re.IGNORECASE), render(name))
        for name in names
    ]


_BRAND_FIXES = _replacements(DISPLAY_BRANDS, display_brand)
_MODEL_FIXES = _replacements(DISPLAY_MODELS, display_model)


def format_api_message(message: Optional[str]) -> Optional[str]:
    """Capitalise, restore brand/model casing and put a space after sentence punctuation."""
    if message is None or not message.strip():
        return message
    text = message.strip()
    text = turkish_upper(text[0]) + text[1:]
    for pattern, proper in _BRAND_FIXES + _MODEL_FIXES:
        text = pattern.sub(lambda _m, value=proper: value, text)
    return _PUNCTUATION_GAP.sub(r"\1 \2", text)


def format_dealer_line(dealer: Dealer) -> str:
    if dealer.distance is None:
        return f"- {dealer.full_name}"
    return f"- {dealer.full_name} ({dealer.distance:.2f} km)"


def build_dealer_summary(dealers: List[Dealer], limit: int = 5) -> str:
    """Short plain-text list used in the WhatsApp hand-off; empty string for no dealers."""
    if not dealers:
        return ""
    lines = [format_dealer_line(d) for d in dealers[:limit]]
    return DEALER_SUMMARY_HEADER + "\n" + "\n".join(lines)
