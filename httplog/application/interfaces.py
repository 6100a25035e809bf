from abc import ABC, abstractmethod
from typing import List, Sequence

from httplog.views.httplog import LogRecord


class LogStoreInterface(ABC):
    """Persistence contract for HTTP log records"""

    @abstractmethod
    async def insert(self, record: LogRecord) -> None:
        """Persist one record; a duplicate id is a silent no-op."""

    @abstractmethod
    async def bulk_insert(self, records: Sequence[LogRecord]) -> None:
        """Persist records in order, all-or-nothing."""

    @abstractmethod
    async def find_by_url(self, url: str) -> List[LogRecord]:
        """Return records for the url, newest first; NotFoundError when none."""

    @abstractmethod
    async def find_by_username(self, username: str) -> List[LogRecord]:
        """Return records for the username, newest first; NotFoundError when none."""

    @abstractmethod
    async def close(self) -> None:
        ...
