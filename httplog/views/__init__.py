"""Pydantic schemas used as views in the MVC architecture."""

from .common import ErrorResponse, HealthResponse
from .httplog import LogRecord, LogRecordAdapter, LogRecordListAdapter

__all__ = [
    "ErrorResponse",
    "HealthResponse",
    "LogRecord",
    "LogRecordAdapter",
    "LogRecordListAdapter",
]
