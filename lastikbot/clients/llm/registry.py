"""
LLM provider registry: map provider name -> build client from config dict.
"""
from __future__ import annotations

from typing import Any, Callable, Dict

from lastikbot.clients.llm.base import BaseLLMClient
from lastikbot.clients.llm.config import LLMConfig


class LLMRegistry:
    """Maps provider id to a builder that takes a config dict and returns BaseLLMClient."""

    def __init__(self) -> None:
        self._builders: Dict[str, Callable[[Dict[str, Any]], BaseLLMClient]] = {}

    def register(self, provider: str, builder: Callable[[Dict[str, Any]], BaseLLMClient]) -> None:
        self._builders[provider.lower()] = builder

    def get(self, provider: str) -> Callable[[Dict[str, Any]], BaseLLMClient] | None:
        return self._builders.get(provider.lower())

    @property
    def providers(self) -> list[str]:
        return sorted(self._builders)

    def build(self, provider: str, config: Dict[str, Any]) -> BaseLLMClient:
        """Build a client for this provider. Raises KeyError if unknown provider."""
        builder = self.get(provider)
        if builder is None:
            raise KeyError(f"Unknown LLM provider: {provider!r}. Registered: {self.providers}")
        return builder(config)

    def build_from_config(self, config: LLMConfig) -> BaseLLMClient:
        return self.build(config.provider, config.to_dict())


# Default registry with all built-in providers pre-registered.
default_registry = LLMRegistry()

from lastikbot.clients.llm.providers.gemini import gemini_builder  # noqa: E402
from lastikbot.clients.llm.providers.noop import noop_builder  # noqa: E402
from lastikbot.clients.llm.providers.ollama import ollama_builder  # noqa: E402
from lastikbot.clients.llm.providers.openai import openai_builder  # noqa: E402

default_registry.register("ollama", ollama_builder)
default_registry.register("openai", openai_builder)
default_registry.register("gemini", gemini_builder)
default_registry.register("noop", noop_builder)
