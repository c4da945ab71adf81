#!/usr/bin/env python3
"""
Lastikbot sohbet konsolu – orchestrator'ı elle denemek için.

Varsayılan olarak bellek içi depolar kullanılır; config dosyasında
"context_backend": "database" varsa DATABASE_URL üzerindeki sohbet deposu açılır.

Kullanım:
  python -m lastikbot.scripts.chat_cli

Env: LLM_PROVIDER, LLM_MODEL, LLM_API_KEY, LLM_BASE_URL, SEARCH_API_BASE_URL, DATABASE_URL
Orchestrator ayarları: ~/.lastikbot-orchestrator.json (yoksa varsayılanlar)
"""
from __future__ import annotations

import asyncio
import os
from pathlib import Path
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError

from lastikbot.clients.search import BridgestoneSearchClient
from lastikbot.config import load_search_api_config
from lastikbot.core.exceptions import ConfigurationError
from lastikbot.core.logger import LoggerConfig, configure, get_logger
from lastikbot.infra.database import close_engine, init_db
from lastikbot.orchestrator.orchestrator import Orchestrator
from lastikbot.orchestrator.types import ChatResponse
from lastikbot.services.orchestrator_service import OrchestratorService

ORCHESTRATOR_CONFIG_PATH = Path.home() / ".lastikbot-orchestrator.json"
EXIT_WORDS = ("çık", "exit", "quit", "q")

# Test edilebilirlik: input/print fonksiyonları değiştirilebilir
_input_fn = input
_print_fn = print
_default_input_fn = input
_default_print_fn = print


def _set_io(input_fn=None, print_fn=None) -> None:
    """Test için I/O enjekte et. None = değiştirme."""
    global _input_fn, _print_fn
    if input_fn is not None:
        _input_fn = input_fn
    if print_fn is not None:
        _print_fn = print_fn


def _reset_io() -> None:
    global _input_fn, _print_fn
    _input_fn = _default_input_fn
    _print_fn = _default_print_fn


def _out(msg: str = "") -> None:
    _print_fn(msg)


def render_response(response: ChatResponse) -> List[str]:
    """Reply text plus a short listing of attached dealers or tires."""
    text_lines = response.message.splitlines() or [""]
    lines = [f"  Bot: {text_lines[0]}"] + [f"       {line}" for line in text_lines[1:]]
    for dealer in response.dealers or []:
        distance = f" ({dealer.distance:.2f} km)" if dealer.distance is not None else ""
        lines.append(f"    • {dealer.full_name}{distance} – {dealer.il}/{dealer.ilce} {dealer.telefon1}".rstrip())
    for tire in response.tires or []:
        sizes = f" [{tire.available_sizes}]" if tire.available_sizes else ""
        lines.append(f"    • {tire.name}{sizes}")
    return lines


async def run_chat(orch: Orchestrator, session_id: Optional[str] = None) -> Optional[str]:
    """Read-eval loop; returns the session id used (None if nothing was sent)."""
    _out("  Sohbet başladı. Çıkmak için 'çık' veya 'exit' yazın.\n")
    while True:
        try:
            text = _input_fn("  Siz: ").strip()
        except (EOFError, KeyboardInterrupt):
            break
        if not text:
            continue
        if text.lower() in EXIT_WORDS:
            break
        response = await orch.process(text, session_id, domain="cli")
        session_id = response.session_id
        for line in render_response(response):
            _out(line)
        _out()
    return session_id


def _setup_logging() -> str:
    """Rotating file + console logging; log dir default = proje kökü/logs. Returns log file path."""
    config = LoggerConfig.from_env()
    if not (config.log_dir or "").strip():
        project_root = Path(__file__).resolve().parent.parent.parent
        config = config.with_overrides(log_dir=str(project_root / "logs"))
    log_dir = Path(config.log_dir)
    try:
        os.makedirs(log_dir, exist_ok=True)
    except OSError as e:
        _out(f"  Uyarı: Log klasörü oluşturulamadı: {log_dir} ({e})")
    configure(config)
    log_path = log_dir / f"{config.log_file_basename}.log"
    get_logger(__name__).info("Chat console started; log file: %s", log_path)
    return str(log_path)


async def _open_chat_store():
    """Session factory for the Postgres chat store, or None to stay in memory."""
    try:
        return await init_db()
    except (OSError, ValueError, SQLAlchemyError) as e:
        get_logger(__name__).warning("Chat store unavailable, using memory: %s", e)
        _out(f"  Uyarı: Veritabanına bağlanılamadı, bellek içi depo kullanılıyor ({e})")
        await close_engine()
        return None


async def main() -> None:
    log_path = _setup_logging()
    _out(f"  Log dosyası: {log_path}")

    config_path = ORCHESTRATOR_CONFIG_PATH if ORCHESTRATOR_CONFIG_PATH.exists() else None
    try:
        orch_cfg = OrchestratorService.load_config(config_path)
    except ConfigurationError as e:
        _out(f"  Config hatası: {e}")
        return
    session_factory = await _open_chat_store() if orch_cfg.context_backend == "database" else None
    if session_factory is None:
        orch_cfg.context_backend = "memory"

    search = BridgestoneSearchClient(load_search_api_config())
    try:
        orch = OrchestratorService.build(orch_cfg, search=search, session_factory=session_factory)
        await run_chat(orch)
    finally:
        await search.aclose()
        if session_factory is not None:
            await close_engine()
    _out("\n  Sohbet sonlandı.")


if __name__ == "__main__":
    asyncio.run(main())
