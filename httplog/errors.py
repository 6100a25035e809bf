"""Error taxonomy shared by the log store and the HTTP layer."""

from __future__ import annotations


class HttpLogError(Exception):
    """Base class for errors raised by the HTTP log service."""


class ValidationError(HttpLogError):
    """Raised when request input is malformed or missing."""


class NotFoundError(HttpLogError):
    """Raised when a lookup matches zero stored records."""

    def __init__(self, field: str, value: str) -> None:
        self.field = field
        self.value = value
        super().__init__(f"no logs found for {field}={value!r}")


class PersistenceError(HttpLogError):
    """Raised when the backing store cannot complete an operation."""

    def __init__(self, operation: str, cause: BaseException | str) -> None:
        self.operation = operation
        self.cause = cause
        super().__init__(f"{operation} failed: {cause}")


__all__ = ["HttpLogError", "ValidationError", "NotFoundError", "PersistenceError"]
