"""
Runtime config loaded from env.

load_postgres_config() for the conversation store,
load_search_api_config() for the dealer/tire API and the local Ollama server.
"""
from lastikbot.config.postgres import PostgresConfig, load_postgres_config
from lastikbot.config.search_api import (
    OllamaConfig,
    SearchApiConfig,
    load_ollama_config,
    load_search_api_config,
)

__all__ = [
    "PostgresConfig",
    "load_postgres_config",
    "SearchApiConfig",
    "load_search_api_config",
    "OllamaConfig",
    "load_ollama_config",
]
