"""File storage port — where design file bytes live.

Domain code programs against this interface; the local filesystem adapter
serves development and tests, the HTTP adapter talks to a remote store.
"""

from abc import ABC, abstractmethod
from datetime import datetime


class FileNotStored(Exception):
    """The requested path does not exist in the store."""


class FileStorage(ABC):
    @abstractmethod
    def save(self, path: str, data: bytes, content_type: str | None = None) -> str:
        """Store ``data`` under ``path`` and return its public URL."""
        ...

    @abstractmethod
    def open_range(self, path: str, start: int, end: int) -> bytes:
        """Return bytes ``start..end`` inclusive."""
        ...

    @abstractmethod
    def size(self, path: str) -> int: ...

    @abstractmethod
    def signed_url(self, path: str, expires_at: datetime) -> str:
        """A download URL for ``path`` that stops working at ``expires_at``."""
        ...
