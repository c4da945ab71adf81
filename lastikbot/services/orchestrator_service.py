"""OrchestratorService: build a fully-wired Orchestrator from config and env."""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Optional, Union

from lastikbot.clients.gazetteer import TurkishLocationService
from lastikbot.clients.llm import LLMConfig, build_llm_client
from lastikbot.clients.search import BridgestoneSearchClient
from lastikbot.config import load_search_api_config
from lastikbot.core.exceptions import ConfigurationError
from lastikbot.orchestrator.context.base import ContextStore
from lastikbot.orchestrator.context.memory import InMemoryContextStore
from lastikbot.orchestrator.orchestrator import Orchestrator
from lastikbot.orchestrator.types import OrchestratorConfig
from lastikbot.services.conversation_service import DatabaseMessageLog, InMemoryMessageLog

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from lastikbot.clients.gazetteer import Gazetteer
    from lastikbot.clients.llm.base import BaseLLMClient
    from lastikbot.clients.search import SearchClient

logger = logging.getLogger(__name__)


class OrchestratorService:
    """Factory for a ready-to-use ``Orchestrator``.

    Anything not passed in is built from the environment: the LLM from
    ``LLMConfig.from_env()``, the search client from ``SEARCH_API_*``.
    """

    @staticmethod
    def load_config(path: Union[str, Path, None]) -> OrchestratorConfig:
        """Read an ``OrchestratorConfig`` JSON file; no path means defaults."""
        if path is None:
            return OrchestratorConfig()
        try:
            data = json.loads(Path(path).read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise ConfigurationError(
                f"Cannot read orchestrator config {path}", details={"path": str(path)}, cause=exc,
            ) from exc
        if not isinstance(data, dict):
            raise ConfigurationError("Orchestrator config must be a JSON object", details={"path": str(path)})
        return OrchestratorConfig.from_dict(data)

    @staticmethod
    def build(
        config: Optional[OrchestratorConfig] = None,
        *,
        llm_client: Optional["BaseLLMClient"] = None,
        llm_config: Optional[LLMConfig] = None,
        search: Optional["SearchClient"] = None,
        gazetteer: Optional["Gazetteer"] = None,
        session_factory: Optional["async_sessionmaker[AsyncSession]"] = None,
    ) -> Orchestrator:
        config = config or OrchestratorConfig()
        llm = llm_client or build_llm_client(llm_config)
        search = search or BridgestoneSearchClient(load_search_api_config())
        gazetteer = gazetteer or TurkishLocationService()

        context_store: ContextStore
        if config.context_backend == "database":
            if session_factory is None:
                raise ConfigurationError("context_backend=database needs a session factory")
            from lastikbot.orchestrator.context.database import DatabaseContextStore
            context_store = DatabaseContextStore(session_factory, config.context_idle_minutes)
        else:
            context_store = InMemoryContextStore(config.context_idle_minutes)

        message_log = DatabaseMessageLog(session_factory) if session_factory else InMemoryMessageLog()

        orch = Orchestrator(
            llm,
            config,
            search=search,
            gazetteer=gazetteer,
            context_store=context_store,
            message_log=message_log,
        )
        logger.info(
            "OrchestratorService: built orchestrator llm=%s llm_configured=%s context=%s message_log=%s",
            llm.provider,
            llm.is_configured,
            config.context_backend,
            "database" if session_factory else "memory",
        )
        return orch
