"""Pydantic schemas for HTTP log records."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator


def _as_utc(value: datetime) -> datetime:
    """Return the timestamp in UTC, treating naive values as UTC."""

    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class LogRecord(BaseModel):
    """One observed HTTP request/response transaction."""

    id: str
    url: str
    method: str
    time_in: datetime
    time_out: datetime
    duration: int = Field(..., description="Request duration in milliseconds")
    return_code: int
    username: str
    userole: str
    org_id: str
    user_agent: str
    error_msg: str = ""

    model_config = ConfigDict(from_attributes=True)

    @field_validator("time_in", "time_out")
    @classmethod
    def normalise_timestamp(cls, value: datetime) -> datetime:
        return _as_utc(value)

    @field_validator("error_msg", mode="before")
    @classmethod
    def default_error_msg(cls, value: str | None) -> str:
        return "" if value is None else value


LogRecordAdapter = TypeAdapter(LogRecord)
LogRecordListAdapter = TypeAdapter(List[LogRecord])


__all__ = ["LogRecord", "LogRecordAdapter", "LogRecordListAdapter"]
