"""SQLAlchemy models for the HTTP log service."""

from .base import Base
from .httplog import HttpLogEntry  # noqa: F401

__all__ = [
    "Base",
    "HttpLogEntry",
]
