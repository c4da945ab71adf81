from __future__ import annotations

import os
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Optional

DEFAULT_PROVIDER = "ollama"
DEFAULT_MODEL = "hermes3:8b"


@dataclass
class LLMConfig:
    """One configured LLM instance (provider + model + credentials)."""

    model: str = DEFAULT_MODEL
    provider: str = DEFAULT_PROVIDER
    api_key: Optional[str] = None
    base_url: Optional[str] = None

    temperature: float = 0.7
    max_tokens: Optional[int] = 2000
    timeout: float = 120.0

    # Provider-specific options
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_env(cls) -> "LLMConfig":
        """LLM_PROVIDER, LLM_MODEL, LLM_API_KEY, LLM_BASE_URL."""
        return cls(
            provider=os.environ.get("LLM_PROVIDER", DEFAULT_PROVIDER).strip().lower(),
            model=os.environ.get("LLM_MODEL", DEFAULT_MODEL),
            api_key=os.environ.get("LLM_API_KEY") or None,
            base_url=os.environ.get("LLM_BASE_URL") or None,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary, filtering out None values."""
        return {k: v for k, v in asdict(self).items() if v is not None}
