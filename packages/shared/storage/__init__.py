"""File storage backends for attachments."""

from .base import FileStorage, StorageError
from .local import LocalFileStorage

__all__ = ["FileStorage", "LocalFileStorage", "StorageError"]
