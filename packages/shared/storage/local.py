"""Local filesystem storage backend."""

from __future__ import annotations

import logging
import os
from pathlib import Path, PurePosixPath
from uuid import uuid4

import aiofiles  # type: ignore[import-untyped]
import aiofiles.os  # type: ignore[import-untyped]

from .base import FileStorage, StorageError

logger = logging.getLogger(__name__)


class LocalFileStorage(FileStorage):
    """Stores files under ``base_path/<uuid>/<filename>``."""

    def __init__(self, base_path: str | Path, base_url: str = "/files") -> None:
        self.base_path = Path(base_path).resolve()
        self.base_url = base_url.rstrip("/")

    def _resolve(self, key: str) -> Path:
        path = (self.base_path / key).resolve()
        if not path.is_relative_to(self.base_path) or path == self.base_path:
            raise StorageError(f"Invalid storage key: {key!r}")
        return path

    @staticmethod
    def _safe_filename(filename: str) -> str:
        name = PurePosixPath(filename.replace("\\", "/")).name
        if name in {"", ".", ".."}:
            return "file"
        return name

    async def upload(self, filename: str, content_type: str | None, data: bytes) -> str:  # noqa: ARG002
        key = f"{uuid4()}/{self._safe_filename(filename)}"
        path = self._resolve(key)
        try:
            await aiofiles.os.makedirs(path.parent, exist_ok=True)
            async with aiofiles.open(path, "wb") as f:
                await f.write(data)
        except OSError as exc:
            logger.error("Failed to write %s: %s", path, exc)
            raise StorageError(f"Failed to store file: {exc}") from exc

        logger.debug("Stored %d bytes at %s", len(data), key)
        return key

    async def delete(self, key: str) -> None:
        path = self._resolve(key)
        try:
            await aiofiles.os.remove(path)
        except FileNotFoundError:
            pass
        except OSError as exc:
            raise StorageError(f"Failed to delete file: {exc}") from exc

        # Drop the per-upload directory once it is empty
        parent = path.parent
        if parent != self.base_path and parent.is_dir() and not os.listdir(parent):
            try:
                await aiofiles.os.rmdir(parent)
            except OSError as exc:
                logger.debug("Could not remove directory %s: %s", parent, exc)

    def get_url(self, key: str) -> str:
        return f"{self.base_url}/{key}"
