"""
lastikbot.infra.database.engine – async engine and session factory for the chat store.

The chat store holds three tables: chat_sessions, chat_messages and
conversation_contexts. There is no migration tool; ``init_db`` creates
whatever is missing and hands back the session factory.
"""
from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Any, Dict, Optional, Tuple

import asyncpg
from sqlalchemy.engine import URL, make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from lastikbot.infra.database.models import Base

if TYPE_CHECKING:
    from lastikbot.config import PostgresConfig

logger = logging.getLogger(__name__)

ASYNC_DRIVER = "postgresql+asyncpg"
MAINTENANCE_DB = "postgres"

# CREATE DATABASE cannot take a bound parameter; only plain identifiers are created.
_DBNAME_PATTERN = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")

_engine: Optional[AsyncEngine] = None
_session_factory: Optional[async_sessionmaker[AsyncSession]] = None


def async_url(raw: str) -> URL:
    """``postgres://`` / ``postgresql://`` URL rewritten for the asyncpg driver."""
    return make_url(raw).set(drivername=ASYNC_DRIVER)


def maintenance_dsn(raw: str) -> Tuple[Optional[str], str]:
    """(target database name, plain asyncpg DSN for the maintenance database)."""
    url = make_url(raw)
    admin = url.set(drivername="postgresql", database=MAINTENANCE_DB)
    return url.database, admin.render_as_string(hide_password=False)


def _resolve(config: Optional["PostgresConfig"]) -> "PostgresConfig":
    if config is not None:
        return config
    from lastikbot.config import load_postgres_config
    return load_postgres_config()


async def ensure_database_exists(config: Optional["PostgresConfig"] = None) -> bool:
    """Create the target database when the server is reachable and it is missing.

    Returns True only when a database was created.
    """
    dbname, admin_dsn = maintenance_dsn(_resolve(config).url)
    if not dbname or dbname == MAINTENANCE_DB:
        return False
    if not _DBNAME_PATTERN.match(dbname):
        logger.warning("Not creating database with unusual name %r", dbname)
        return False
    try:
        conn = await asyncpg.connect(admin_dsn)
    except (OSError, asyncpg.PostgresError) as exc:
        logger.warning("Maintenance database unreachable, skipping create: %s", exc)
        return False
    try:
        if await conn.fetchval("SELECT 1 FROM pg_database WHERE datname = $1", dbname):
            return False
        await conn.execute(f'CREATE DATABASE "{dbname}"')
        logger.info("Created chat store database %s", dbname)
        return True
    finally:
        await conn.close()


def build_engine(
    config: Optional["PostgresConfig"] = None,
    *,
    use_null_pool: bool = False,
) -> AsyncEngine:
    """Process-wide engine; the first call's settings win until ``close_engine``."""
    global _engine
    if _engine is not None:
        return _engine

    config = _resolve(config)
    options: Dict[str, Any] = {
        "echo": config.echo,
        "connect_args": {
            "server_settings": {"application_name": config.application_name, "jit": "off"},
        },
    }
    if use_null_pool:
        options["poolclass"] = NullPool
    else:
        options.update(
            pool_size=config.pool_size,
            max_overflow=config.max_overflow,
            pool_timeout=config.pool_timeout,
            pool_recycle=config.pool_recycle,
            pool_pre_ping=True,
        )
    url = async_url(config.url)
    _engine = create_async_engine(url, **options)
    logger.info(
        "Chat store engine ready: %s (pool=%s)",
        url.render_as_string(hide_password=True),
        "null" if use_null_pool else config.pool_size,
    )
    return _engine


def build_session_factory(engine: Optional[AsyncEngine] = None) -> async_sessionmaker[AsyncSession]:
    global _session_factory
    if _session_factory is None:
        _session_factory = async_sessionmaker(
            engine or build_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
    return _session_factory


async def init_db(config: Optional["PostgresConfig"] = None) -> async_sessionmaker[AsyncSession]:
    """Create the database (if allowed) and the chat tables; return the session factory."""
    config = _resolve(config)
    await ensure_database_exists(config)
    engine = build_engine(config)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Chat store tables ready: %s", ", ".join(sorted(Base.metadata.tables)))
    return build_session_factory(engine)


async def close_engine() -> None:
    """Dispose the pool and forget the cached engine and session factory."""
    global _engine, _session_factory
    engine, _engine, _session_factory = _engine, None, None
    if engine is not None:
        await engine.dispose()
        logger.info("Chat store engine disposed")
