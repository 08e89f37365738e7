"""Downloads remote cover images and stores them as asset attachments."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from io import BytesIO
from pathlib import PurePosixPath
from typing import TYPE_CHECKING
from urllib.parse import unquote, urlsplit

import httpx
from PIL import Image, UnidentifiedImageError

from shared.plugins.metrics import record_image_ingestion

from .plugin_import_errors import (
    AttachmentPersistenceError,
    ImageDownloadError,
    ImageIngestError,
    ImageStorageError,
    InvalidImageContentError,
)

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from shared.database.models import Attachment
    from shared.database.repositories.attachment_repository import AttachmentRepository
    from shared.storage import FileStorage
    from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_MAX_BYTES = 10 * 1024 * 1024
DEFAULT_FILENAME = "cover"
COVER_DESCRIPTION = "Imported cover image"
UNKNOWN_CONTENT_TYPE = "application/octet-stream"

_EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
}


@dataclass(frozen=True)
class DownloadedImage:
    data: bytes
    header_content_type: str
    truncated: bool = False


def sniff_content_type(data: bytes) -> str:
    """Identify an image format from its leading bytes using Pillow."""
    try:
        with Image.open(BytesIO(data)) as img:
            mime = Image.MIME.get(img.format or "")
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError):
        return UNKNOWN_CONTENT_TYPE
    return mime or UNKNOWN_CONTENT_TYPE


def resolve_content_type(header_value: str | None, data: bytes) -> str:
    """Prefer an ``image/*`` Content-Type header; otherwise sniff the bytes.

    Media type parameters such as ``; charset=`` are dropped.
    """
    media_type = (header_value or "").split(";", 1)[0].strip().lower()
    if media_type.startswith("image/"):
        return media_type
    return sniff_content_type(data)


def derive_filename(image_url: str, content_type: str) -> str:
    """Last decoded URL path segment (query excluded), with an extension if it has none.

    Encoded separators are decoded first, so the result never contains a path.
    """
    name = PurePosixPath(unquote(urlsplit(image_url).path)).name.rsplit("\\", 1)[-1].strip()
    if name in {"", ".", ".."}:
        name = DEFAULT_FILENAME
    if "." not in name:
        name += _EXTENSIONS.get(content_type, "")
    return name


class ImageIngestor:
    """Downloads, validates and persists a remote image as an Attachment.

    Bounds: one overall deadline for the download (30s by default), a body
    cap (10 MiB by default, excess is dropped), and an ``image/*`` content
    type gate. If the attachment row cannot be written after the upload
    succeeded, the uploaded object is deleted again.
    """

    def __init__(
        self,
        storage: FileStorage,
        attachment_repo: AttachmentRepository,
        *,
        db_session: AsyncSession | None = None,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        max_bytes: int = DEFAULT_MAX_BYTES,
    ):
        self.storage = storage
        self.attachment_repo = attachment_repo
        self.db_session = db_session
        self.timeout = timeout
        self.max_bytes = max_bytes
        self._http_client = http_client

    async def ingest(self, asset_id: str, image_url: str) -> Attachment:
        """Download ``image_url`` and attach it to ``asset_id``.

        Raises:
            ImageDownloadError: Timeout, transport error or non-2xx response
            InvalidImageContentError: The body is not an image
            ImageStorageError: Upload to file storage failed
            AttachmentPersistenceError: The attachment row could not be saved
        """
        try:
            attachment = await self._ingest(asset_id, image_url)
        except ImageIngestError as exc:
            record_image_ingestion(exc.code)
            raise
        record_image_ingestion("success")
        return attachment

    async def _ingest(self, asset_id: str, image_url: str) -> Attachment:
        image = await self.download(image_url)
        content_type = resolve_content_type(image.header_content_type, image.data)
        if not content_type.startswith("image/"):
            raise InvalidImageContentError(image_url, content_type)

        filename = derive_filename(image_url, content_type)
        try:
            key = await self.storage.upload(filename, content_type, image.data)
        except Exception as exc:
            logger.error("Failed to store cover image for asset %s: %s", asset_id, exc, exc_info=True)
            raise ImageStorageError(f"failed to store image: {exc}") from exc

        try:
            attachment = await self.attachment_repo.create(
                asset_id=asset_id,
                file_key=key,
                file_name=filename,
                file_size=len(image.data),
                content_type=content_type,
                description=COVER_DESCRIPTION,
            )
            if self.db_session is not None:
                await self.db_session.commit()
        except asyncio.CancelledError:
            await self._discard_upload(key)
            raise
        except Exception as exc:
            logger.error("Failed to record attachment for asset %s: %s", asset_id, exc, exc_info=True)
            if self.db_session is not None:
                await self.db_session.rollback()
            cleaned = await self._discard_upload(key)
            raise AttachmentPersistenceError(f"failed to save attachment: {exc}", cleanup_succeeded=cleaned) from exc

        logger.info(
            "Attached cover image %s (%d bytes, %s) to asset %s",
            filename,
            len(image.data),
            content_type,
            asset_id,
        )
        return attachment

    async def download(self, image_url: str) -> DownloadedImage:
        """Fetch at most ``max_bytes`` of ``image_url`` within ``timeout`` seconds."""
        try:
            async with asyncio.timeout(self.timeout), self._client() as client:
                async with client.stream("GET", image_url) as response:
                    if not response.is_success:
                        raise ImageDownloadError(
                            image_url,
                            f"failed to download image: status {response.status_code}",
                            status_code=response.status_code,
                        )
                    data, truncated = await self._read_capped(response)
                    header_content_type = response.headers.get("content-type", "")
        except TimeoutError as exc:
            raise ImageDownloadError(image_url, f"image download timed out after {self.timeout:g}s") from exc
        except httpx.HTTPError as exc:
            raise ImageDownloadError(image_url, f"failed to download image: {exc}") from exc

        if truncated:
            logger.warning("Image at %s exceeds %d bytes, keeping the first %d", image_url, self.max_bytes, len(data))
        return DownloadedImage(data=data, header_content_type=header_content_type, truncated=truncated)

    async def _read_capped(self, response: httpx.Response) -> tuple[bytes, bool]:
        buffer = bytearray()
        async for chunk in response.aiter_bytes():
            remaining = self.max_bytes - len(buffer)
            if len(chunk) > remaining:
                buffer.extend(chunk[:remaining])
                return bytes(buffer), True
            buffer.extend(chunk)
        return bytes(buffer), False

    @asynccontextmanager
    async def _client(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._http_client is not None:
            yield self._http_client
            return
        async with httpx.AsyncClient(follow_redirects=True, timeout=httpx.Timeout(self.timeout)) as client:
            yield client

    async def _discard_upload(self, key: str) -> bool:
        try:
            await self.storage.delete(key)
        except Exception as exc:
            logger.error("Failed to delete orphaned upload %s: %s", key, exc, exc_info=True)
            return False
        logger.info("Deleted orphaned upload %s", key)
        return True
