"""SQLAlchemy-backed log store."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, List, Optional, Sequence, TypeVar

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from httplog.application.interfaces import LogStoreInterface
from httplog.config.settings import DatabaseConfig
from httplog.database import create_engine, create_session_factory, init_models, ping
from httplog.errors import NotFoundError, PersistenceError
from httplog.models.httplog import HttpLogEntry
from httplog.telemetry import record_inserted, record_store_error
from httplog.views.httplog import LogRecord

logger = logging.getLogger(__name__)

T = TypeVar("T")

_UPSERT_DIALECTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class SQLAlchemyLogStore(LogStoreInterface):
    """SQLAlchemy implementation of the log store.

    The store owns its engine (and therefore the connection pool). Inserts
    are idempotent on ``id``; bulk inserts run in a single transaction, so a
    failing record rolls back the whole batch.
    """

    def __init__(
        self,
        engine: AsyncEngine,
        *,
        operation_timeout: Optional[float] = None,
    ):
        self._engine = engine
        self._sessions = create_session_factory(engine)
        self._operation_timeout = operation_timeout
        self._closed = False

    @classmethod
    async def open(
        cls,
        config: DatabaseConfig,
        *,
        echo: bool = False,
    ) -> "SQLAlchemyLogStore":
        """Build the pool, check connectivity and bootstrap the schema."""

        engine = create_engine(config, echo=echo)
        store = cls(engine, operation_timeout=config.operation_timeout_seconds)
        try:
            await store._run("ping", ping(engine), timeout=config.connect_timeout_seconds)
            await store.ensure_schema()
        except PersistenceError:
            await engine.dispose()
            raise
        except Exception as exc:
            await engine.dispose()
            record_store_error("open")
            raise PersistenceError("open", exc) from exc

        logger.info("Connected log store to %s", engine.url.render_as_string(hide_password=True))
        return store

    async def ensure_schema(self) -> None:
        await self._run("ensure_schema", init_models(self._engine))

    async def insert(self, record: LogRecord) -> None:
        await self._run("insert", self._insert_one(record))

    async def bulk_insert(self, records: Sequence[LogRecord]) -> None:
        if not records:
            return
        await self._run("bulk_insert", self._insert_many(records))

    async def find_by_url(self, url: str) -> List[LogRecord]:
        return await self._run("find_by_url", self._find("url", url))

    async def find_by_username(self, username: str) -> List[LogRecord]:
        return await self._run("find_by_username", self._find("username", username))

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self._engine.dispose()
        logger.info("Log store connections released.")

    async def _insert_one(self, record: LogRecord) -> None:
        async with self._sessions() as session, session.begin():
            inserted = await self._execute_insert(session, record)
        record_inserted(inserted)

    async def _insert_many(self, records: Sequence[LogRecord]) -> None:
        inserted = 0
        async with self._sessions() as session, session.begin():
            for index, record in enumerate(records):
                try:
                    inserted += await self._execute_insert(session, record)
                except SQLAlchemyError as exc:
                    raise PersistenceError(
                        "bulk_insert",
                        f"record {index} (id={record.id!r}): {exc}",
                    ) from exc
        record_inserted(inserted)

    async def _execute_insert(self, session: AsyncSession, record: LogRecord) -> int:
        """Insert one row, returning 1 when written and 0 on an id conflict."""

        result = await session.execute(self._insert_statement(record))
        if result.rowcount == 0:
            logger.debug("Ignoring duplicate log record id=%s", record.id)
            return 0
        return 1

    def _insert_statement(self, record: LogRecord) -> Any:
        dialect = self._engine.dialect.name
        insert = _UPSERT_DIALECTS.get(dialect)
        if insert is None:
            raise PersistenceError("insert", f"unsupported database dialect '{dialect}'")

        values = {
            "id": record.id,
            "url": record.url,
            "method": record.method,
            "time_in": record.time_in,
            "time_out": record.time_out,
            "duration": record.duration,
            "return_code": record.return_code,
            "username": record.username,
            "userole": record.userole,
            "org_id": record.org_id,
            "user_agent": record.user_agent,
            "error_msg": record.error_msg,
        }
        return (
            insert(HttpLogEntry)
            .values(**values)
            .on_conflict_do_nothing(index_elements=["id"])
        )

    async def _find(self, field: str, value: str) -> List[LogRecord]:
        column = getattr(HttpLogEntry, field)
        async with self._sessions() as session:
            result = await session.execute(
                select(HttpLogEntry)
                .where(column == value)
                .order_by(HttpLogEntry.time_in.desc())
            )
            rows = result.scalars().all()

        if not rows:
            raise NotFoundError(field, value)
        return [LogRecord.model_validate(row) for row in rows]

    async def _run(
        self,
        operation: str,
        awaitable: Awaitable[T],
        *,
        timeout: Optional[float] = None,
    ) -> T:
        """Await a store call, translating backend failures into PersistenceError.

        Task cancellation is left to propagate so abandoned requests stop
        holding a connection.
        """

        limit = timeout if timeout is not None else self._operation_timeout
        try:
            if limit is None:
                return await awaitable
            return await asyncio.wait_for(awaitable, limit)
        except NotFoundError:
            raise
        except PersistenceError:
            record_store_error(operation)
            raise
        except asyncio.TimeoutError as exc:
            record_store_error(operation)
            raise PersistenceError(operation, f"timed out after {limit}s") from exc
        except (SQLAlchemyError, OSError, PydanticValidationError) as exc:
            record_store_error(operation)
            raise PersistenceError(operation, exc) from exc


__all__ = ["SQLAlchemyLogStore"]
