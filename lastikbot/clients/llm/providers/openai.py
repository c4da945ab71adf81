"""OpenAI LLM provider: BaseLLMClient implementation + registry builder."""
from __future__ import annotations

import logging
import os
from typing import Any, Dict, List, Optional

from openai import AsyncOpenAI, OpenAIError

from lastikbot.clients.llm.base import BaseLLMClient, LLMMessage
from lastikbot.clients.llm.providers.noop import NoOpLLMClient
from lastikbot.core.exceptions import ExternalServiceError

logger = logging.getLogger(__name__)


class OpenAILLMClient(BaseLLMClient):
    """OpenAI-compatible chat completions client (GPT-4o-mini, vLLM, LM Studio, ...)."""

    def __init__(
        self,
        model: str = "gpt-4o-mini",
        *,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
        timeout: float = 120.0,
    ) -> None:
        self._model = model
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._client = AsyncOpenAI(api_key=api_key, base_url=base_url, timeout=timeout)

    @property
    def provider(self) -> str:
        return "openai"

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
        """Native chat with system-prompt support."""
        kwargs: Dict[str, Any] = {
            "model": self._model,
            "messages": list(messages),
            "temperature": self._temperature if temperature is None else temperature,
        }
        tokens = self._max_tokens if max_tokens is None else max_tokens
        if tokens is not None:
            kwargs["max_tokens"] = tokens
        try:
            response = await self._client.chat.completions.create(**kwargs)
        except OpenAIError as exc:
            raise ExternalServiceError(
                "OpenAI chat completion failed", details={"model": self._model}, cause=exc
            ) from exc
        return response.choices[0].message.content or ""

    async def test_connection(self) -> bool:
        try:
            await self._client.models.list()
            return True
        except OpenAIError as exc:
            logger.warning("OpenAI connection test failed: %s", exc)
            return False


def openai_builder(config: Dict[str, Any]) -> BaseLLMClient:
    api_key = config.get("api_key") or os.environ.get("OPENAI_API_KEY")
    if not api_key and not config.get("base_url"):
        return NoOpLLMClient(reason="openai")
    return OpenAILLMClient(
        model=config.get("model") or "gpt-4o-mini",
        api_key=api_key or "not-needed",
        base_url=config.get("base_url"),
        temperature=float(config.get("temperature", 0.7)),
        max_tokens=config.get("max_tokens"),
        timeout=float(config.get("timeout", 120.0)),
    )
