"""Exceptions raised by the plugin search/import pipeline.

Every ``PluginImportError`` carries a ``kind`` and a ``public_message``. The
public message is safe to show to API callers. Upstream and internal causes
are logged server-side and never echoed. Cancellation is deliberately not part
of this hierarchy: ``asyncio.CancelledError`` always propagates unchanged.

Exception hierarchy follows the pattern from shared.database.exceptions.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Who is at fault for a failure."""

    USER = "user"
    UPSTREAM = "upstream"
    INTERNAL = "internal"


class PluginImportError(Exception):
    """Base exception for search and import failures."""

    kind: ErrorKind = ErrorKind.INTERNAL
    code: str = "import_failed"

    def __init__(self, public_message: str, plugin_id: str | None = None) -> None:
        self.public_message = public_message
        self.plugin_id = plugin_id
        super().__init__(public_message)


# User errors


class PluginNotFoundError(PluginImportError):
    kind = ErrorKind.USER
    code = "plugin_not_found"

    def __init__(self, plugin_id: str) -> None:
        super().__init__(f"plugin '{plugin_id}' not found", plugin_id)


class PluginDisabledError(PluginImportError):
    """Plugin is administratively disabled, e.g. missing credentials."""

    kind = ErrorKind.USER
    code = "plugin_disabled"

    def __init__(self, plugin_id: str, reason: str) -> None:
        self.reason = reason
        super().__init__(f"plugin '{plugin_id}' is disabled: {reason}", plugin_id)


class InvalidImportRequestError(PluginImportError):
    """Caller-correctable problem with a search or import request."""

    kind = ErrorKind.USER
    code = "invalid_request"

    def __init__(self, message: str, plugin_id: str | None = None, field: str | None = None) -> None:
        self.field = field
        super().__init__(message, plugin_id)


# Upstream errors


class UpstreamSearchError(PluginImportError):
    kind = ErrorKind.UPSTREAM
    code = "upstream_search_failed"

    def __init__(self, plugin_id: str) -> None:
        super().__init__("search service temporarily unavailable", plugin_id)


class UpstreamFetchError(PluginImportError):
    kind = ErrorKind.UPSTREAM
    code = "upstream_fetch_failed"

    def __init__(self, plugin_id: str) -> None:
        super().__init__("failed to fetch data from external source", plugin_id)


class UpstreamNotFoundError(PluginImportError):
    """The external source reported that the record does not exist."""

    kind = ErrorKind.UPSTREAM
    code = "external_item_not_found"

    def __init__(self, plugin_id: str, external_id: str) -> None:
        self.external_id = external_id
        super().__init__("item not found in external source", plugin_id)


class MalformedUpstreamDataError(PluginImportError):
    kind = ErrorKind.UPSTREAM
    code = "malformed_upstream_data"

    def __init__(self, plugin_id: str, detail: str = "missing name") -> None:
        self.detail = detail
        super().__init__(f"external source returned invalid data ({detail})", plugin_id)


# Internal errors


class SchemaProvisioningError(PluginImportError):
    code = "schema_provisioning_failed"

    def __init__(self, plugin_id: str) -> None:
        super().__init__("failed to initialize plugin category", plugin_id)


class ImportSerializationError(PluginImportError):
    code = "serialization_failed"

    def __init__(self, plugin_id: str) -> None:
        super().__init__("failed to process import data", plugin_id)


class AssetPersistenceError(PluginImportError):
    code = "asset_persistence_failed"

    def __init__(self, plugin_id: str) -> None:
        super().__init__("failed to save imported item", plugin_id)


# Image ingestion (never escapes an import)


class ImageIngestError(Exception):
    """Base exception for cover image ingestion failures."""

    kind: ErrorKind = ErrorKind.UPSTREAM
    code: str = "image_ingest_failed"


class ImageDownloadError(ImageIngestError):
    """Timeout, transport failure or non-2xx status."""

    code = "image_download_failed"

    def __init__(self, url: str, message: str, status_code: int | None = None) -> None:
        self.url = url
        self.status_code = status_code
        super().__init__(message)


class InvalidImageContentError(ImageIngestError):
    code = "invalid_image_content"

    def __init__(self, url: str, content_type: str) -> None:
        self.url = url
        self.content_type = content_type
        super().__init__(f"invalid content type: {content_type}")


class ImageStorageError(ImageIngestError):
    kind = ErrorKind.INTERNAL
    code = "image_storage_failed"


class AttachmentPersistenceError(ImageIngestError):
    kind = ErrorKind.INTERNAL
    code = "attachment_persistence_failed"

    def __init__(self, message: str, cleanup_succeeded: bool) -> None:
        self.cleanup_succeeded = cleanup_succeeded
        super().__init__(message)


__all__ = [
    "ErrorKind",
    "PluginImportError",
    "PluginNotFoundError",
    "PluginDisabledError",
    "InvalidImportRequestError",
    "UpstreamSearchError",
    "UpstreamFetchError",
    "UpstreamNotFoundError",
    "MalformedUpstreamDataError",
    "SchemaProvisioningError",
    "ImportSerializationError",
    "AssetPersistenceError",
    "ImageIngestError",
    "ImageDownloadError",
    "InvalidImageContentError",
    "ImageStorageError",
    "AttachmentPersistenceError",
]
