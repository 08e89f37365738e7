"""Abstract interface for attachment file storage."""

from __future__ import annotations

from abc import ABC, abstractmethod


class StorageError(Exception):
    """Raised when a storage backend cannot complete an operation."""


class FileStorage(ABC):
    """Stores opaque blobs under backend-generated keys."""

    @abstractmethod
    async def upload(self, filename: str, content_type: str | None, data: bytes) -> str:
        """Store ``data`` and return the key it was stored under."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Delete the object for ``key``; deleting a missing key is not an error."""

    @abstractmethod
    def get_url(self, key: str) -> str:
        """Return a URL or path from which the object can be served."""
