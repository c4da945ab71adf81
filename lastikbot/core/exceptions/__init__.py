"""
Chat engine exception system.

Usage:
    from lastikbot.core.exceptions import LastikbotError, SearchApiError

    raise SearchApiError("Dealer search failed", details={"endpoint": "SearchDealers"})
"""
from lastikbot.core.exceptions.base import LastikbotError
from lastikbot.core.exceptions.errors import (
    ConfigurationError,
    ExternalServiceError,
    InputRejectedError,
    IntentParseError,
    SearchApiError,
    ValidationError,
)

__all__ = [
    "LastikbotError",
    "ConfigurationError",
    "ValidationError",
    "ExternalServiceError",
    "InputRejectedError",
    "SearchApiError",
    "IntentParseError",
]
