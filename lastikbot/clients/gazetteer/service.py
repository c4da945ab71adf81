"""
Province (il) and district (ilçe) name lookup.

Data files use the public il/ilçe dump layout:
    il.json   {"data": [{"id": "34", "name": "İstanbul"}, ...]}
    ilce.json {"data": [{"il_id": "34", "name": "Kadıköy"}, ...]}

The bundled il.json lists all 81 provinces, but ilce.json only carries the
districts of the larger cities. Elsewhere a district is not recognised and the
dealer search runs for the whole city. Point GAZETTEER_DATA_DIR (or
``data_dir``) at a directory with the full dump to cover every district.

Names are matched on the folded (accent-free, lower-case) message at a word
start and may carry a Turkish case suffix ("İstanbul'da", "izmirdeki").
"""
from __future__ import annotations

import json
import logging
import os
import re
import threading
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Pattern, Protocol, Tuple

from lastikbot.orchestrator.text import fold

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).parent / "data"

# Folded case/possessive suffixes accepted after a place name.
_SUFFIXES = (
    "daki", "deki", "taki", "teki", "dan", "den", "tan", "ten", "da", "de", "ta", "te",
    "nin", "nun", "in", "un", "ya", "ye", "li", "lu", "a", "e", "i", "u",
)
_SUFFIX_GROUP = "(?:'?(?:" + "|".join(_SUFFIXES) + "))?"


class Gazetteer(Protocol):
    def find_city(self, text: str) -> Optional[str]: ...

    def find_district(self, text: str, city: Optional[str] = None) -> Optional[str]: ...


def _name_pattern(folded_name: str) -> Pattern[str]:
    return re.compile(r"(?<![a-z0-9])" + re.escape(folded_name) + _SUFFIX_GROUP + r"(?![a-z0-9])")


class _Entry:
    __slots__ = ("name", "folded", "pattern")

    def __init__(self, name: str) -> None:
        self.name = name
        self.folded = fold(name)
        self.pattern = _name_pattern(self.folded)


def _best_match(folded_text: str, entries: Iterable[_Entry]) -> Optional[str]:
    """Earliest match in the text wins; on a tie the longer name wins."""
    best: Optional[Tuple[int, int, str]] = None
    for entry in entries:
        match = entry.pattern.search(folded_text)
        if match is None:
            continue
        key = (match.start(), -len(entry.folded), entry.name)
        if best is None or key < best:
            best = key
    return best[2] if best else None


class TurkishLocationService:
    """Loads the JSON files once (thread-safe) and answers city/district lookups."""

    def __init__(self, data_dir: Optional[Path] = None) -> None:
        data_dir = data_dir or os.environ.get("GAZETTEER_DATA_DIR") or DATA_DIR
        self._data_dir = Path(data_dir)
        self._cities: Dict[str, _Entry] = {}
        self._districts: Dict[str, List[_Entry]] = {}
        self._loaded = False
        self._lock = threading.Lock()

    def _ensure_loaded(self) -> None:
        if self._loaded:
            return
        with self._lock:
            if self._loaded:
                return
            try:
                self._load()
            except (OSError, ValueError) as exc:
                logger.error("Gazetteer data could not be loaded from %s: %s", self._data_dir, exc)
                self._cities, self._districts = {}, {}
            self._loaded = True

    def _load(self) -> None:
        ids_to_city: Dict[str, str] = {}
        for row in _read_rows(self._data_dir / "il.json"):
            name = str(row.get("name") or "").strip()
            if not name:
                continue
            entry = _Entry(name)
            self._cities[entry.folded] = entry
            if row.get("id") is not None:
                ids_to_city[str(row["id"])] = entry.folded
        district_count = 0
        for row in _read_rows(self._data_dir / "ilce.json"):
            name = str(row.get("name") or "").strip()
            city_key = ids_to_city.get(str(row.get("il_id")))
            if not name or city_key is None:
                continue
            self._districts.setdefault(city_key, []).append(_Entry(name))
            district_count += 1
        logger.info("Gazetteer loaded: %d cities, %d districts", len(self._cities), district_count)

    def find_city(self, text: str) -> Optional[str]:
        self._ensure_loaded()
        folded = fold(text)
        if not folded:
            return None
        return _best_match(folded, self._cities.values())

    def find_district(self, text: str, city: Optional[str] = None) -> Optional[str]:
        """Search the given city's districts, or every district when city is unknown."""
        self._ensure_loaded()
        folded = fold(text)
        if not folded:
            return None
        city_key = fold(city) if city else ""
        if city_key and city_key in self._districts:
            return _best_match(folded, self._districts[city_key])
        return _best_match(folded, (e for entries in self._districts.values() for e in entries))

    def is_valid_city(self, city: str) -> bool:
        self._ensure_loaded()
        return bool(city) and fold(city) in self._cities

    def is_valid_district(self, district: str, city: str) -> bool:
        self._ensure_loaded()
        if not district or not city:
            return False
        folded = fold(district)
        return any(e.folded == folded for e in self._districts.get(fold(city), ()))


def _read_rows(path: Path) -> List[dict]:
    if not path.exists():
        logger.warning("Gazetteer file missing: %s", path)
        return []
    with path.open(encoding="utf-8") as fh:
        payload = json.load(fh)
    rows = payload.get("data") if isinstance(payload, dict) else None
    return [r for r in rows or [] if isinstance(r, dict)]
