"""LLM provider implementations. Registered on default_registry by lastikbot.clients.llm.registry."""
from lastikbot.clients.llm.providers.gemini import GeminiLLMClient
from lastikbot.clients.llm.providers.noop import NoOpLLMClient
from lastikbot.clients.llm.providers.ollama import OllamaLLMClient
from lastikbot.clients.llm.providers.openai import OpenAILLMClient

__all__ = ["GeminiLLMClient", "NoOpLLMClient", "OllamaLLMClient", "OpenAILLMClient"]
