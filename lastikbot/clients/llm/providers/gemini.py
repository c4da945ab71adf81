"""Google Gemini LLM provider: BaseLLMClient implementation + registry builder."""
from __future__ import annotations

import logging
import os
from typing import Any, Dict, List, Optional

from google import genai
from google.genai import errors as genai_errors
from google.genai import types as genai_types

from lastikbot.clients.llm.base import BaseLLMClient, LLMMessage
from lastikbot.clients.llm.providers.noop import NoOpLLMClient
from lastikbot.core.exceptions import ExternalServiceError

logger = logging.getLogger(__name__)


class GeminiLLMClient(BaseLLMClient):
    """Google Gemini client (gemini-2.0-flash, gemini-1.5-pro, ...)."""

    def __init__(
        self,
        model: str = "gemini-2.0-flash",
        *,
        api_key: Optional[str] = None,
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
    ) -> None:
        self._model = model
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._client = genai.Client(api_key=api_key)

    @property
    def provider(self) -> str:
        return "gemini"

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
        """Native chat with system-instruction support."""
        system_parts: List[str] = []
        history: List[Dict[str, Any]] = []
        for msg in messages:
            content = (msg.get("content") or "").strip()
            if not content:
                continue
            role = msg.get("role", "user")
            if role == "system":
                system_parts.append(content)
            else:
                history.append({
                    "role": "model" if role == "assistant" else "user",
                    "parts": [{"text": content}],
                })

        cfg_kwargs: Dict[str, Any] = {
            "temperature": self._temperature if temperature is None else temperature,
        }
        tokens = self._max_tokens if max_tokens is None else max_tokens
        if tokens is not None:
            cfg_kwargs["max_output_tokens"] = tokens
        if system_parts:
            cfg_kwargs["system_instruction"] = "\n\n".join(system_parts)

        try:
            response = await self._client.aio.models.generate_content(
                model=self._model,
                contents=history,
                config=genai_types.GenerateContentConfig(**cfg_kwargs),
            )
        except genai_errors.APIError as exc:
            raise ExternalServiceError(
                "Gemini generate_content failed", details={"model": self._model}, cause=exc
            ) from exc
        return response.text or ""

    async def test_connection(self) -> bool:
        try:
            await self.complete("Say OK", max_tokens=5)
            return True
        except ExternalServiceError as exc:
            logger.warning("Gemini connection test failed: %s", exc)
            return False


def gemini_builder(config: Dict[str, Any]) -> BaseLLMClient:
    api_key = config.get("api_key") or os.environ.get("GEMINI_API_KEY") or os.environ.get("GOOGLE_API_KEY")
    if not api_key:
        return NoOpLLMClient(reason="gemini")
    return GeminiLLMClient(
        model=config.get("model") or "gemini-2.0-flash",
        api_key=api_key,
        temperature=float(config.get("temperature", 0.7)),
        max_tokens=config.get("max_tokens"),
    )
