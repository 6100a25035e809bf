"""Shared fixtures for the HTTP log service tests."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional, Sequence

import pytest
import pytest_asyncio

from httplog.application.interfaces import LogStoreInterface
from httplog.config.settings import DatabaseConfig
from httplog.database import create_engine
from httplog.errors import NotFoundError
from httplog.infrastructure.persistence.repositories_sqlalchemy import SQLAlchemyLogStore
from httplog.views import LogRecord

BASE_TIME = datetime(2024, 5, 1, 12, 0, 0, 250000, tzinfo=timezone.utc)

SQLITE_MEMORY_URL = "sqlite+aiosqlite://"


class FakeLogStore(LogStoreInterface):
    """In-memory stand-in for the SQLAlchemy store."""

    def __init__(self) -> None:
        self.records: Dict[str, LogRecord] = {}
        self.bulk_calls: List[List[LogRecord]] = []
        self.error: Optional[Exception] = None
        self.closed = False

    def _maybe_fail(self) -> None:
        if self.error is not None:
            raise self.error

    async def insert(self, record: LogRecord) -> None:
        self._maybe_fail()
        self.records.setdefault(record.id, record)

    async def bulk_insert(self, records: Sequence[LogRecord]) -> None:
        self._maybe_fail()
        self.bulk_calls.append(list(records))
        for record in records:
            self.records.setdefault(record.id, record)

    async def _find(self, field: str, value: str) -> List[LogRecord]:
        self._maybe_fail()
        matches = [r for r in self.records.values() if getattr(r, field) == value]
        if not matches:
            raise NotFoundError(field, value)
        return sorted(matches, key=lambda r: r.time_in, reverse=True)

    async def find_by_url(self, url: str) -> List[LogRecord]:
        return await self._find("url", url)

    async def find_by_username(self, username: str) -> List[LogRecord]:
        return await self._find("username", username)

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def make_record() -> Callable[..., LogRecord]:
    """Factory producing valid records with overridable fields."""

    def _make(record_id: str = "req-1", offset_ms: int = 0, **overrides) -> LogRecord:
        time_in = BASE_TIME + timedelta(milliseconds=offset_ms)
        fields = {
            "id": record_id,
            "url": "https://api.example.com/data",
            "method": "GET",
            "time_in": time_in,
            "time_out": time_in + timedelta(milliseconds=50),
            "duration": 50,
            "return_code": 200,
            "username": "apiuser",
            "userole": "user",
            "org_id": "myorg",
            "user_agent": "curl/8.4.0",
            "error_msg": "",
        }
        fields.update(overrides)
        return LogRecord(**fields)

    return _make


@pytest.fixture
def fake_store() -> FakeLogStore:
    return FakeLogStore()


@pytest_asyncio.fixture
async def sqlite_store():
    """A real SQLAlchemy store over an in-memory SQLite database."""

    engine = create_engine(DatabaseConfig(dsn=SQLITE_MEMORY_URL))
    store = SQLAlchemyLogStore(engine)
    await store.ensure_schema()
    try:
        yield store
    finally:
        await store.close()
