"""Engine construction and schema bootstrap for the log store."""

from __future__ import annotations

import logging
import time
from typing import Any

from sqlalchemy import event, exc, text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from httplog.config.settings import DatabaseConfig

# Import models so they are attached to Base.metadata before table creation
from httplog.models import Base  # noqa: F401 - ensures metadata is registered
from httplog.models import HttpLogEntry  # noqa: F401

logger = logging.getLogger(__name__)

_CHECKED_IN_AT = "checked_in_at"


def _install_idle_timeout(engine: AsyncEngine, idle_timeout: float) -> None:
    """Discard pooled connections that sat idle longer than ``idle_timeout``."""

    @event.listens_for(engine.sync_engine, "checkin")
    def _on_checkin(dbapi_connection: Any, connection_record: Any) -> None:
        connection_record.info[_CHECKED_IN_AT] = time.monotonic()

    @event.listens_for(engine.sync_engine, "checkout")
    def _on_checkout(
        dbapi_connection: Any,
        connection_record: Any,
        connection_proxy: Any,
    ) -> None:
        checked_in_at = connection_record.info.pop(_CHECKED_IN_AT, None)
        if checked_in_at is None:
            return
        idle_for = time.monotonic() - checked_in_at
        if idle_for > idle_timeout:
            # The pool invalidates the record and retries with a fresh connection.
            raise exc.DisconnectionError(
                f"connection idle for {idle_for:.0f}s exceeds {idle_timeout}s"
            )


def create_engine(config: DatabaseConfig, *, echo: bool = False) -> AsyncEngine:
    """Create an async engine with bounded pool size and connection lifetimes."""

    url = make_url(config.url)
    engine_options: dict[str, Any] = {
        "echo": echo,
        "pool_pre_ping": True,
    }

    if url.get_backend_name() != "sqlite":
        engine_options.update(
            pool_size=config.pool_size,
            max_overflow=config.max_overflow,
            pool_recycle=config.pool_recycle_seconds,
            pool_timeout=config.connect_timeout_seconds,
        )

    engine = create_async_engine(url, **engine_options)
    _install_idle_timeout(engine, config.pool_idle_timeout_seconds)
    return engine


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


async def ping(engine: AsyncEngine) -> None:
    """Round-trip a trivial statement to prove the backend is reachable."""

    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))


async def init_models(engine: AsyncEngine) -> None:
    """Create the httplog table and its indexes if they do not exist."""

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    logger.info("Ensured httplog table and indexes.")
