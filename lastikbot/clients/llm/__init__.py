"""
LLM clients used by the chat engine (intent extraction, canned-label fallback, general answers).

build_llm_client() picks the provider from LLM_PROVIDER (ollama, openai, gemini, noop);
tests hand the orchestrator a NoOpLLMClient or a scripted fake instead.
"""
from typing import Optional

from lastikbot.clients.llm.base import BaseLLMClient, LLMMessage
from lastikbot.clients.llm.config import LLMConfig
from lastikbot.clients.llm.registry import LLMRegistry, default_registry


def build_llm_client(config: Optional[LLMConfig] = None) -> BaseLLMClient:
    """Client for *config*, or for the LLM_* environment when omitted."""
    return default_registry.build_from_config(config or LLMConfig.from_env())


__all__ = [
    "BaseLLMClient",
    "LLMMessage",
    "LLMConfig",
    "LLMRegistry",
    "build_llm_client",
    "default_registry",
]
