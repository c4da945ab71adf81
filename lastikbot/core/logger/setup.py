"""
Logger setup: console plus rotating JSON file, both stamped with the chat session id.
"""
from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Optional

from lastikbot.core.logger.config import LoggerConfig
from lastikbot.core.logger.context import SessionIdFilter
from lastikbot.core.logger.formatters import JsonFormatter, PlainConsoleFormatter

_default_config: Optional[LoggerConfig] = None


def _attach(root: logging.Logger, handler: logging.Handler, level: int, formatter: logging.Formatter) -> None:
    handler.setLevel(level)
    handler.addFilter(SessionIdFilter())
    handler.setFormatter(formatter)
    root.addHandler(handler)


def _file_handler(config: LoggerConfig) -> Optional[RotatingFileHandler]:
    if not (config.file_rotating and (config.log_dir or "").strip()):
        return None
    try:
        os.makedirs(config.log_dir, exist_ok=True)
    except OSError:
        logging.getLogger(config.root_name or "lastikbot").warning(
            "Could not create log dir %s, skipping file handler", config.log_dir
        )
        return None
    return RotatingFileHandler(
        os.path.join(config.log_dir, f"{config.log_file_basename}.log"),
        maxBytes=config.max_bytes,
        backupCount=config.backup_count,
        encoding="utf-8",
    )


def configure(config: Optional[LoggerConfig] = None) -> None:
    """
    Configure the package root logger. If config is None, uses LoggerConfig.from_env().
    Call once at application startup; calling again replaces the handlers.
    """
    global _default_config
    config = config or LoggerConfig.from_env()
    _default_config = config

    level = getattr(logging, config.level.upper(), logging.INFO)
    root = logging.getLogger(config.root_name or "lastikbot")
    root.setLevel(level)
    root.handlers.clear()
    root.propagate = False

    if config.console:
        _attach(
            root,
            logging.StreamHandler(),
            level,
            PlainConsoleFormatter(with_session_id=config.console_session_id),
        )
    file_handler = _file_handler(config)
    if file_handler is not None:
        _attach(root, file_handler, level, JsonFormatter())


def get_logger(name: str, config: Optional[LoggerConfig] = None) -> logging.Logger:
    """
    Return a logger for the given name, configuring the package root on first use.
    Use get_logger(__name__) so names stay under the configured root.
    """
    if _default_config is None:
        configure(config)
    return logging.getLogger(name)
