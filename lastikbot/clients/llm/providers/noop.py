"""No-op LLM client when no provider is configured. Returns a fixed message."""
from __future__ import annotations

from typing import Any, Dict, Optional

from lastikbot.clients.llm.base import BaseLLMClient

NOOP_MESSAGE = (
    "Dil modeli henüz yapılandırılmadı. Lütfen LLM_PROVIDER ve LLM_API_KEY "
    "ortam değişkenlerini tanımlayın."
)


class NoOpLLMClient(BaseLLMClient):
    """Placeholder client when a keyed provider has no API key."""

    def __init__(self, reason: Optional[str] = None) -> None:
        self.reason = reason

    @property
    def provider(self) -> str:
        return "noop"

    @property
    def is_configured(self) -> bool:
        return False

    async def complete(
        self,
        prompt: str,
        *,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> str:
        return NOOP_MESSAGE

    async def test_connection(self) -> bool:
        return False


def noop_builder(config: Dict[str, Any]) -> NoOpLLMClient:
    return NoOpLLMClient(reason=config.get("reason"))
