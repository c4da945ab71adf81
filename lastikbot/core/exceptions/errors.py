"""
Concrete exception types.
"""
from __future__ import annotations

from lastikbot.core.exceptions.base import LastikbotError


class ConfigurationError(LastikbotError):
    """Invalid or missing configuration (env vars, settings JSON)."""

    default_code = "CONFIGURATION_ERROR"
    default_http_status = 500


class ValidationError(LastikbotError):
    default_code = "VALIDATION_ERROR"
    default_http_status = 400


class InputRejectedError(ValidationError):
    """User message failed the input guard (empty, too long, repeated chars)."""

    default_code = "INPUT_REJECTED"


class ExternalServiceError(LastikbotError):
    """LLM provider, database or other dependency failed."""

    default_code = "EXTERNAL_SERVICE_ERROR"
    default_http_status = 502


class SearchApiError(ExternalServiceError):
    """Dealer/tire search API returned an error or could not be reached."""

    default_code = "SEARCH_API_ERROR"


class IntentParseError(ExternalServiceError):
    """LLM reply for intent extraction contained no usable JSON."""

    default_code = "INTENT_PARSE_ERROR"
