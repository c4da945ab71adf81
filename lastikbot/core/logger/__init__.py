"""
Project logger: rotating file (JSON) + console, session-aware.

Usage:
    from lastikbot.core.logger import get_logger, configure, LoggerConfig, set_session_id

    # Configure once at startup (optional; from_env() if not called)
    configure(LoggerConfig(level="DEBUG", log_dir="/var/log/lastikbot"))

    # Or from env: LOG_LEVEL, LOG_DIR, LOG_FILE_BASENAME, LOG_MAX_BYTES, LOG_BACKUP_COUNT, etc.
    configure()

    logger = get_logger(__name__)
    set_session_id("9c1f...")   # every record in this task now carries session_id
    logger.info("Turn started")
"""
from lastikbot.core.logger.config import LoggerConfig
from lastikbot.core.logger.context import (
    SessionIdFilter,
    get_session_id,
    reset_session_id,
    set_session_id,
)
from lastikbot.core.logger.formatters import JsonFormatter, PlainConsoleFormatter
from lastikbot.core.logger.setup import configure, get_logger

__all__ = [
    "LoggerConfig",
    "JsonFormatter",
    "PlainConsoleFormatter",
    "SessionIdFilter",
    "configure",
    "get_logger",
    "get_session_id",
    "set_session_id",
    "reset_session_id",
]
