"""Input guard: sanitise a raw user message and reject what must not reach the pipeline."""
from __future__ import annotations

import logging
import re

from lastikbot.core.exceptions import InputRejectedError

logger = logging.getLogger(__name__)

INVALID_INPUT_MESSAGE = "Geçersiz mesaj. Lütfen en fazla 400 karakterlik bir mesaj yazın."
SPAM_MESSAGE = "Mesajınız spam olarak algılandı. Lütfen sorunuzu sade bir şekilde yazın."

_TAG = re.compile(r"<.*?>", re.DOTALL)
_INJECTION_TOKENS = re.compile(r"<script|javascript:|onerror=|onclick=", re.IGNORECASE)
_WHITESPACE = re.compile(r"\s+")
_LONG_REPEAT = re.compile(r"(.)\1{20,}")
_SPAM_REPEAT = re.compile(r"(.)\1{10,}")
_SPAM_TOKENS = re.compile(r"(https?://\S+|www\.\S+|@\S+|#\w+)", re.IGNORECASE)

MAX_SPAM_TOKENS = 3


def sanitize(text: str) -> str:
    """Strip HTML tags and script-injection tokens, collapse whitespace."""
    if not text or not text.strip():
        return ""
    text = _TAG.sub("", text)
    text = _INJECTION_TOKENS.sub("", text)
    return _WHITESPACE.sub(" ", text).strip()


def is_valid(text: str, max_length: int = 400) -> bool:
    if not text or not text.strip():
        return False
    if len(text) > max_length:
        return False
    return not _LONG_REPEAT.search(text)


def is_spam(text: str) -> bool:
    if not text or not text.strip():
        return False
    if len(_SPAM_TOKENS.findall(text)) > MAX_SPAM_TOKENS:
        return True
    return bool(_SPAM_REPEAT.search(text))


def check_input(raw: str, max_length: int = 400) -> str:
    """Return the sanitised message or raise ``InputRejectedError``.

    The error's ``details["reply"]`` holds the fixed text to show the user.
    """
    text = sanitize(raw or "")
    if not is_valid(text, max_length):
        logger.warning("Input rejected: invalid (length=%d)", len(raw or ""))
        raise InputRejectedError(
            "Message failed validation",
            details={"reply": INVALID_INPUT_MESSAGE, "length": len(raw or "")},
        )
    if is_spam(text):
        logger.warning("Input rejected: spam")
        raise InputRejectedError("Message looks like spam", details={"reply": SPAM_MESSAGE})
    return text
