"""Turkish-aware text helpers shared by the classifiers, formatter and gazetteer.

``str.lower()`` maps "İ" to "i" + U+0307 and ``str.upper()`` maps "i" to "I",
both wrong for Turkish, so casing goes through the helpers below.
"""
from __future__ import annotations

import re
import unicodedata
from typing import Iterable, List

_TR_LOWER = str.maketrans({"İ": "i", "I": "ı"})
_TR_UPPER = str.maketrans({"i": "İ", "ı": "I"})

# Separators used when splitting a message into tokens for fuzzy matching.
_TOKEN_SPLIT = re.compile(r"[ \t\r\n,.;:!?\-_]+")

SHORT_MESSAGE_LENGTH = 10


def turkish_lower(text: str) -> str:
    return text.translate(_TR_LOWER).lower()


def turkish_upper(text: str) -> str:
    return text.translate(_TR_UPPER).upper()


def invariant_lower(text: str) -> str:
    """Lowercase with "İ" mapped to plain "i" (no combining dot left behind)."""
    return text.replace("İ", "i").lower()


def fold(text: str) -> str:
    """Accent-insensitive form: strip combining marks, map ı/İ to i, lowercase.

    "Yakınımdaki" -> "yakinimdaki", "GÖSTER" -> "goster".
    """
    if not text or not text.strip():
        return ""
    decomposed = unicodedata.normalize("NFD", text)
    chars = []
    for ch in decomposed:
        if unicodedata.category(ch) == "Mn":
            continue
        if ch in ("ı", "İ"):
            ch = "i"
        chars.append(ch.lower())
    return unicodedata.normalize("NFC", "".join(chars))


def tokenize(text: str) -> List[str]:
    return [t for t in _TOKEN_SPLIT.split(text) if t]


def levenshtein(a: str, b: str) -> int:
    if a == b:
        return 0
    if not a:
        return len(b)
    if not b:
        return len(a)
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i]
        for j, cb in enumerate(b, start=1):
            cost = 0 if ca == cb else 1
            current.append(min(previous[j] + 1, current[j - 1] + 1, previous[j - 1] + cost))
        previous = current
    return previous[-1]


def contains_fuzzy(folded_message: str, folded_keywords: Iterable[str], max_distance: int = 1) -> bool:
    """Keyword containment tolerant of a single typo.

    Both arguments must already be folded. Tries a plain substring match, then
    per-token edit distance, then (for very short messages) whole-message
    edit distance.
    """
    keywords = [k for k in folded_keywords if k]
    if not folded_message or not keywords:
        return False
    if any(k in folded_message for k in keywords):
        return True
    for token in tokenize(folded_message):
        if any(levenshtein(token, k) <= max_distance for k in keywords):
            return True
    if len(folded_message) <= SHORT_MESSAGE_LENGTH:
        return any(levenshtein(folded_message, k) <= max_distance for k in keywords)
    return False


def contains_any(text: str, needles: Iterable[str]) -> bool:
    return any(n in text for n in needles)


def capitalize_turkish(text: str) -> str:
    """Upper-case the first letter and lower-case the rest, Turkish rules.

    "istanbul" -> "İstanbul", "ığdır" -> "Iğdır", "KADIKÖY" -> "Kadıköy".
    """
    if not text or not text.strip():
        return text
    return turkish_upper(text[0]) + turkish_lower(text[1:])
