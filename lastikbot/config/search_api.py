"""
lastikbot.config.search_api – external HTTP endpoints.

SearchApiConfig: Bridgestone dealer/tire search API.
    SEARCH_API_BASE_URL (default https://test.bridgestone.com.tr/api/ai), SEARCH_API_TIMEOUT (30 s).

OllamaConfig: local Ollama server used as the default LLM provider.
    OLLAMA_BASE_URL (default http://localhost:11434), OLLAMA_TIMEOUT (120 s),
    OLLAMA_PING_TIMEOUT (10 s).
"""
from __future__ import annotations

import os
from dataclasses import dataclass

from lastikbot.config._validators import require_http_url, require_positive

DEFAULT_SEARCH_API_BASE_URL = "https://test.bridgestone.com.tr/api/ai"
DEFAULT_OLLAMA_BASE_URL = "http://localhost:11434"


@dataclass(frozen=True)
class SearchApiConfig:
    base_url: str = DEFAULT_SEARCH_API_BASE_URL
    timeout_seconds: float = 30.0

    def __post_init__(self) -> None:
        # frozen: normalise through object.__setattr__
        object.__setattr__(self, "base_url", require_http_url(self.base_url, "SEARCH_API_BASE_URL"))
        require_positive(self.timeout_seconds, "SEARCH_API_TIMEOUT")

    @classmethod
    def from_env(cls) -> SearchApiConfig:
        return cls(
            base_url=os.environ.get("SEARCH_API_BASE_URL", DEFAULT_SEARCH_API_BASE_URL),
            timeout_seconds=float(os.environ.get("SEARCH_API_TIMEOUT", "30")),
        )


@dataclass(frozen=True)
class OllamaConfig:
    base_url: str = DEFAULT_OLLAMA_BASE_URL
    timeout_seconds: float = 120.0
    ping_timeout_seconds: float = 10.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "base_url", require_http_url(self.base_url, "OLLAMA_BASE_URL"))
        require_positive(self.timeout_seconds, "OLLAMA_TIMEOUT")
        require_positive(self.ping_timeout_seconds, "OLLAMA_PING_TIMEOUT")

    @classmethod
    def from_env(cls) -> OllamaConfig:
        return cls(
            base_url=os.environ.get("OLLAMA_BASE_URL", DEFAULT_OLLAMA_BASE_URL),
            timeout_seconds=float(os.environ.get("OLLAMA_TIMEOUT", "120")),
            ping_timeout_seconds=float(os.environ.get("OLLAMA_PING_TIMEOUT", "10")),
        )


def load_search_api_config() -> SearchApiConfig:
    return SearchApiConfig.from_env()


def load_ollama_config() -> OllamaConfig:
    return OllamaConfig.from_env()
