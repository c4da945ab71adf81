"""WhatsApp hand-off after a dealer search: consent question, then phone number."""
from __future__ import annotations

import logging
from typing import Optional

from lastikbot.orchestrator.text import contains_fuzzy, fold, tokenize
from lastikbot.orchestrator.types import ChatResponse, ConversationContext

logger = logging.getLogger(__name__)

CONSENT_QUESTION = "Bayi listesini WhatsApp'ınıza göndermemi ister misiniz? (Evet/Hayır)"
PHONE_PROMPT = "Telefon numaranızı başında 0 olmadan yazın, bayi listesini WhatsApp ile ileteyim."
INVALID_PHONE_MESSAGE = "Geçerli bir telefon numarası girin (örnek: 5301234567 veya +905301234567)."
SUMMARY_PLACEHOLDER = "Bayi listesi hazır."

PHONE_MIN_DIGITS = 10
PHONE_MAX_DIGITS = 13

# Folded forms. Negatives are checked first ("gondermeyin" contains "gonder").
NEGATIVE_WORDS = ("hayir", "istemiyorum", "istemem", "gondermeyin", "gonderme", "gerek yok")
AFFIRMATIVE_WORDS = ("evet", "gonder", "gonderin", "tamam", "olur", "isterim", "tesekkurler")
AFFIRMATIVE_TOKENS = ("ok", "okey", "okay", "yes")


def is_negative(message: str) -> bool:
    return contains_fuzzy(fold(message), NEGATIVE_WORDS)


def is_affirmative(message: str) -> bool:
    folded = fold(message)
    if contains_fuzzy(folded, AFFIRMATIVE_WORDS):
        return True
    return any(token in AFFIRMATIVE_TOKENS for token in tokenize(folded))


def phone_digits(message: str) -> str:
    return "".join(ch for ch in message if ch.isdigit())


class WhatsAppFollowUp:
    """Runs before intent detection. ``step`` returns a reply, or None to continue the turn."""

    def step(self, message: str, context: ConversationContext) -> Optional[ChatResponse]:
        if context.awaiting_whatsapp_consent:
            if is_negative(message):
                logger.info("WhatsApp offer declined")
                context.clear_whatsapp()
            elif is_affirmative(message):
                logger.info("WhatsApp offer accepted; asking for phone")
                context.awaiting_whatsapp_consent = False
                context.awaiting_whatsapp_phone = True
                return ChatResponse(message=PHONE_PROMPT)

        if context.awaiting_whatsapp_phone:
            return self._collect_phone(message, context)
        return None

    @staticmethod
    def _collect_phone(message: str, context: ConversationContext) -> ChatResponse:
        digits = phone_digits(message)
        if not PHONE_MIN_DIGITS <= len(digits) <= PHONE_MAX_DIGITS:
            return ChatResponse(message=INVALID_PHONE_MESSAGE)
        summary = context.last_dealer_summary or SUMMARY_PLACEHOLDER
        context.awaiting_whatsapp_phone = False
        context.last_dealer_summary = None
        logger.info("Dealer list queued for WhatsApp (%d digits)", len(digits))
        return ChatResponse(
            message=f"Teşekkürler. Bayi listesini {digits} numarasına WhatsApp ile ilettim.\n\n{summary}"
        )
