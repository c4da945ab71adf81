"""Ollama provider over its HTTP API (``/api/chat``, ``/api/tags``)."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from lastikbot.clients.llm.base import BaseLLMClient, LLMMessage
from lastikbot.config import OllamaConfig
from lastikbot.core.exceptions import ExternalServiceError

logger = logging.getLogger(__name__)


class OllamaLLMClient(BaseLLMClient):
    """Local Ollama server. No API key; non-streaming chat."""

    def __init__(
        self,
        model: str = "hermes3:8b",
        *,
        config: Optional[OllamaConfig] = None,
        temperature: float = 0.7,
        max_tokens: Optional[int] = 2000,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._model = model
        self._config = config or OllamaConfig.from_env()
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._client = http_client or httpx.AsyncClient(timeout=self._config.timeout_seconds)

    @property
    def provider(self) -> str:
        return "ollama"

    def _url(self, path: str) -> str:
        return f"{self._config.base_url}/{path.lstrip('/')}"

    async def complete(
        self,
        prompt: str,
        *,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> str:
        return await self.chat(
            [{"role": "user", "content": prompt}], temperature=temperature, max_tokens=max_tokens
        )

    async def chat(
        self,
        messages: List[LLMMessage],
        *,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> str:
        options: Dict[str, Any] = {"temperature": self._temperature if temperature is None else temperature}
        tokens = self._max_tokens if max_tokens is None else max_tokens
        if tokens is not None:
            options["num_predict"] = tokens
        body = {"model": self._model, "messages": list(messages), "stream": False, "options": options}
        try:
            response = await self._client.post(self._url("api/chat"), json=body)
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise ExternalServiceError(
                "Ollama chat failed", details={"model": self._model}, cause=exc
            ) from exc
        message = payload.get("message") if isinstance(payload, dict) else None
        if not isinstance(message, dict):
            return ""
        return str(message.get("content") or "")

    async def test_connection(self) -> bool:
        try:
            response = await self._client.get(
                self._url("api/tags"), timeout=self._config.ping_timeout_seconds
            )
        except httpx.HTTPError as exc:
            logger.error("Ollama connection test failed: %s", exc)
            return False
        return response.is_success

    async def list_models(self) -> List[str]:
        """Model names installed on the server; empty list on any failure."""
        try:
            response = await self._client.get(
                self._url("api/tags"), timeout=self._config.ping_timeout_seconds
            )
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("Fetching Ollama models failed: %s", exc)
            return []
        models = payload.get("models") if isinstance(payload, dict) else None
        names = [str(m.get("name") or "") for m in models or [] if isinstance(m, dict)]
        return [n for n in names if n]


def ollama_builder(config: Dict[str, Any]) -> OllamaLLMClient:
    env = OllamaConfig.from_env()
    ollama_config = OllamaConfig(
        base_url=config.get("base_url") or env.base_url,
        timeout_seconds=float(config.get("timeout", env.timeout_seconds)),
        ping_timeout_seconds=env.ping_timeout_seconds,
    )
    return OllamaLLMClient(
        model=config.get("model") or "hermes3:8b",
        config=ollama_config,
        temperature=float(config.get("temperature", 0.7)),
        max_tokens=config.get("max_tokens"),
    )
