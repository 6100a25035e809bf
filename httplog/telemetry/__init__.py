"""Telemetry helpers and metrics."""

from .metrics import (
    ERROR_COUNTER,
    RECORDS_INSERTED,
    REQUEST_COUNT,
    REQUEST_LATENCY,
    STORE_ERRORS,
    observe_request,
    record_inserted,
    record_store_error,
)

__all__ = [
    "ERROR_COUNTER",
    "RECORDS_INSERTED",
    "REQUEST_COUNT",
    "REQUEST_LATENCY",
    "STORE_ERRORS",
    "observe_request",
    "record_inserted",
    "record_store_error",
]
