from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Literal, Optional, TypedDict


class LLMMessage(TypedDict):
    role: Literal["system", "user", "assistant"]
    content: str


class BaseLLMClient(ABC):
    """Text generation backend: prompt + system prompt + sampling knobs in, text out.

    Providers raise ``ExternalServiceError`` on transport/API failure; callers
    decide how to degrade.
    """

    @property
    @abstractmethod
    def provider(self) -> str:
        ...

    @property
    def is_configured(self) -> bool:
        """False when the client cannot reach a real model (e.g. missing API key)."""
        return True

    @abstractmethod
    async def complete(
        self,
        prompt: str,
        *,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> str:
        ...

    async def chat(
        self,
        messages: List[LLMMessage],
        *,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> str:
        """Send a conversation with an optional system message.

        Default implementation concatenates all messages into a single prompt
        and calls ``complete()``. Providers with native system-prompt APIs override it.
        """
        parts: List[str] = []
        for msg in messages:
            role = msg.get("role", "user")
            content = (msg.get("content") or "").strip()
            if not content:
                continue
            if role == "system":
                parts.insert(0, f"[System instructions]\n{content}\n")
            else:
                parts.append(f"{role}: {content}")
        return await self.complete("\n".join(parts), temperature=temperature, max_tokens=max_tokens)

    async def generate(
        self,
        prompt: str,
        *,
        system_prompt: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> str:
        messages: List[LLMMessage] = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})
        return await self.chat(messages, temperature=temperature, max_tokens=max_tokens)

    @abstractmethod
    async def test_connection(self) -> bool:
        ...
