"""Behavioural tests for the SQLAlchemy log store over SQLite."""

from __future__ import annotations

import asyncio

import pytest
from sqlalchemy import func, select, text

from httplog.errors import NotFoundError, PersistenceError
from httplog.models import HttpLogEntry
from httplog.views import LogRecord


async def _row_count(store) -> int:
    async with store._sessions() as session:
        result = await session.execute(select(func.count()).select_from(HttpLogEntry))
        return result.scalar_one()


@pytest.mark.asyncio
async def test_insert_round_trips_every_field(sqlite_store, make_record):
    record = make_record("rt-1", error_msg="upstream timeout", return_code=504)

    await sqlite_store.insert(record)

    by_url = await sqlite_store.find_by_url(record.url)
    by_username = await sqlite_store.find_by_username(record.username)
    assert by_url == [record]
    assert by_username == [record]


@pytest.mark.asyncio
async def test_duplicate_insert_is_silent_and_keeps_first_row(sqlite_store, make_record):
    original = make_record("dup-1", method="GET")
    retry = make_record("dup-1", method="DELETE")

    await sqlite_store.insert(original)
    await sqlite_store.insert(retry)

    assert await _row_count(sqlite_store) == 1
    stored = await sqlite_store.find_by_url(original.url)
    assert stored[0].method == "GET"


@pytest.mark.asyncio
async def test_find_by_url_orders_newest_first(sqlite_store, make_record):
    older = make_record("a", offset_ms=0)
    newer = make_record("b", offset_ms=5_000)

    await sqlite_store.insert(older)
    await sqlite_store.insert(newer)

    results = await sqlite_store.find_by_url(older.url)
    assert [r.id for r in results] == ["b", "a"]


@pytest.mark.asyncio
async def test_find_by_url_matches_exactly(sqlite_store, make_record):
    await sqlite_store.insert(make_record("x", url="https://example.com/a"))

    with pytest.raises(NotFoundError):
        await sqlite_store.find_by_url("https://example.com/")


@pytest.mark.asyncio
async def test_lookups_without_matches_raise_not_found(sqlite_store, make_record):
    await sqlite_store.insert(make_record("present"))

    with pytest.raises(NotFoundError) as url_exc:
        await sqlite_store.find_by_url("https://nowhere.example.com")
    with pytest.raises(NotFoundError) as user_exc:
        await sqlite_store.find_by_username("ghost")

    assert url_exc.value.field == "url"
    assert user_exc.value.field == "username"


@pytest.mark.asyncio
async def test_bulk_insert_persists_in_order(sqlite_store, make_record):
    records = [
        make_record("bulk-1", username="user1", offset_ms=0),
        make_record("bulk-2", username="user2", offset_ms=10),
    ]

    await sqlite_store.bulk_insert(records)

    assert await sqlite_store.find_by_username("user1") == [records[0]]
    assert await sqlite_store.find_by_username("user2") == [records[1]]


@pytest.mark.asyncio
async def test_bulk_insert_skips_duplicates(sqlite_store, make_record):
    existing = make_record("same")
    await sqlite_store.insert(existing)

    await sqlite_store.bulk_insert([existing, make_record("other"), existing])

    assert await _row_count(sqlite_store) == 2


@pytest.mark.asyncio
async def test_bulk_insert_is_all_or_nothing(sqlite_store, make_record):
    valid = make_record("ok-1", username="batch")
    broken = LogRecord.model_construct(
        **{**make_record("bad-2", username="batch").model_dump(), "url": None}
    )
    trailing = make_record("ok-3", username="batch")

    with pytest.raises(PersistenceError) as exc_info:
        await sqlite_store.bulk_insert([valid, broken, trailing])

    assert exc_info.value.operation == "bulk_insert"
    assert "record 1" in str(exc_info.value)
    assert await _row_count(sqlite_store) == 0
    with pytest.raises(NotFoundError):
        await sqlite_store.find_by_username("batch")


@pytest.mark.asyncio
async def test_bulk_insert_of_empty_batch_is_noop(sqlite_store):
    await sqlite_store.bulk_insert([])

    assert await _row_count(sqlite_store) == 0


@pytest.mark.asyncio
async def test_insert_constraint_violation_raises_persistence_error(sqlite_store, make_record):
    broken = LogRecord.model_construct(**{**make_record("bad").model_dump(), "method": None})

    with pytest.raises(PersistenceError) as exc_info:
        await sqlite_store.insert(broken)

    assert exc_info.value.operation == "insert"
    assert exc_info.value.__cause__ is not None


@pytest.mark.asyncio
async def test_operation_timeout_raises_persistence_error(sqlite_store):
    with pytest.raises(PersistenceError) as exc_info:
        await sqlite_store._run("find_by_url", asyncio.sleep(1), timeout=0.01)

    assert "timed out" in str(exc_info.value)


@pytest.mark.asyncio
async def test_ensure_schema_is_idempotent_and_creates_indexes(sqlite_store):
    await sqlite_store.ensure_schema()

    async with sqlite_store._sessions() as session:
        result = await session.execute(
            text("SELECT name FROM sqlite_master WHERE type = 'index' AND tbl_name = 'httplog'")
        )
        index_names = {row[0] for row in result}

    assert {
        "idx_httplog_url_time_in",
        "idx_httplog_username_time_in",
        "idx_httplog_time_in",
    } <= index_names


@pytest.mark.asyncio
async def test_close_can_be_called_twice(sqlite_store):
    await sqlite_store.close()
    await sqlite_store.close()
