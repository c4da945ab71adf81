"""
lastikbot.config.postgres – PostgreSQL settings for the conversation store.

Env vars: DATABASE_URL, DB_POOL_SIZE, DB_MAX_OVERFLOW, DB_POOL_TIMEOUT, DB_POOL_RECYCLE,
DB_ECHO, DB_APPLICATION_NAME.
"""
from __future__ import annotations

import os
from dataclasses import dataclass

from lastikbot.config._validators import parse_bool, require_int_at_least

_DEFAULT_URL = "postgresql://localhost/lastikbot"
_DEFAULT_APP_NAME = "lastikbot"


def _validate_url(url: str) -> str:
    url = (url or "").strip()
    if not url:
        raise ValueError("DATABASE_URL is required and must be non-empty")
    if not url.startswith(("postgresql://", "postgres://", "postgresql+asyncpg://")):
        raise ValueError(
            "DATABASE_URL must start with postgresql://, postgres:// or postgresql+asyncpg://"
        )
    return url


@dataclass(frozen=True)
class PostgresConfig:
    """
    Connection and pool settings. Validated on construction.
    """

    url: str
    pool_size: int = 5
    max_overflow: int = 10
    pool_timeout: int = 30
    pool_recycle: int = 1800
    echo: bool = False
    application_name: str = _DEFAULT_APP_NAME

    def __post_init__(self) -> None:
        _validate_url(self.url)
        require_int_at_least(self.pool_size, "pool_size", 1)
        require_int_at_least(self.max_overflow, "max_overflow", 0)
        require_int_at_least(self.pool_timeout, "pool_timeout", 1)
        require_int_at_least(self.pool_recycle, "pool_recycle", 1)
        if not isinstance(self.echo, bool):
            raise ValueError("echo must be a boolean")
        if not self.application_name.strip():
            raise ValueError("application_name must be a non-empty string")

    @classmethod
    def from_env(cls, **overrides: object) -> PostgresConfig:
        """
        Build config from environment variables; keyword overrides win over env.
        """
        env_int = {
            "pool_size": ("DB_POOL_SIZE", 5),
            "max_overflow": ("DB_MAX_OVERFLOW", 10),
            "pool_timeout": ("DB_POOL_TIMEOUT", 30),
            "pool_recycle": ("DB_POOL_RECYCLE", 1800),
        }

        def _int(attr: str) -> int:
            if overrides.get(attr) is not None:
                return int(overrides[attr])  # type: ignore[arg-type]
            env_name, default = env_int[attr]
            return int(os.environ.get(env_name, default))

        url = overrides.get("url") or os.environ.get("DATABASE_URL", _DEFAULT_URL)
        echo_raw = overrides.get("echo")
        if echo_raw is None:
            echo_raw = os.environ.get("DB_ECHO")
        return cls(
            url=_validate_url(str(url)),
            pool_size=_int("pool_size"),
            max_overflow=_int("max_overflow"),
            pool_timeout=_int("pool_timeout"),
            pool_recycle=_int("pool_recycle"),
            echo=parse_bool(echo_raw, False),
            application_name=str(
                overrides.get("application_name")
                or os.environ.get("DB_APPLICATION_NAME", _DEFAULT_APP_NAME)
            ),
        )


def load_postgres_config(**overrides: object) -> PostgresConfig:
    """Load and validate PostgreSQL config. Raises ValueError on invalid values."""
    return PostgresConfig.from_env(**overrides)
