"""Factory functions for creating service instances with dependencies."""

import logging

import httpx
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config import settings
from shared.database import get_db
from shared.database.repositories import (
    AssetRepository,
    AttachmentRepository,
    AttributeRepository,
    CategoryRepository,
)
from shared.plugins import PluginRegistry
from shared.storage import FileStorage
from webui.dependencies import get_file_storage, get_plugin_registry

from .image_ingestor import ImageIngestor
from .plugin_catalog_service import PluginCatalogService
from .plugin_import_service import PluginImportService
from .plugin_search_service import PluginSearchService
from .schema_provisioner import SchemaProvisioner

logger = logging.getLogger(__name__)


def create_image_ingestor(
    db: AsyncSession,
    storage: FileStorage,
    *,
    http_client: httpx.AsyncClient | None = None,
) -> ImageIngestor:
    """Create an ImageIngestor bounded by the configured timeout and size cap."""
    return ImageIngestor(
        storage=storage,
        attachment_repo=AttachmentRepository(db),
        db_session=db,
        http_client=http_client,
        timeout=settings.IMAGE_DOWNLOAD_TIMEOUT_SECONDS,
        max_bytes=settings.IMAGE_MAX_BYTES,
    )


def create_plugin_import_service(
    db: AsyncSession,
    registry: PluginRegistry,
    storage: FileStorage | None = None,
    *,
    http_client: httpx.AsyncClient | None = None,
) -> PluginImportService:
    """Create a PluginImportService instance with all required dependencies.

    Args:
        db: AsyncSession instance from FastAPI's dependency injection
        registry: Plugin registry populated at startup
        storage: File storage for cover images; None disables image ingestion
        http_client: Optional client for image downloads, useful for tests

    Returns:
        Configured PluginImportService instance
    """
    provisioner = SchemaProvisioner(CategoryRepository(db), AttributeRepository(db))
    image_ingestor = create_image_ingestor(db, storage, http_client=http_client) if storage is not None else None
    if image_ingestor is None:
        logger.debug("File storage not configured; cover images will be skipped")
    return PluginImportService(
        db_session=db,
        registry=registry,
        provisioner=provisioner,
        asset_repo=AssetRepository(db),
        image_ingestor=image_ingestor,
    )


async def get_plugin_catalog_service(
    db: AsyncSession = Depends(get_db),
    registry: PluginRegistry = Depends(get_plugin_registry),
) -> PluginCatalogService:
    """FastAPI dependency for PluginCatalogService."""
    return PluginCatalogService(registry, CategoryRepository(db))


async def get_plugin_search_service(
    registry: PluginRegistry = Depends(get_plugin_registry),
) -> PluginSearchService:
    """FastAPI dependency for PluginSearchService."""
    return PluginSearchService(registry)


async def get_plugin_import_service(
    db: AsyncSession = Depends(get_db),
    registry: PluginRegistry = Depends(get_plugin_registry),
    storage: FileStorage | None = Depends(get_file_storage),
) -> PluginImportService:
    """FastAPI dependency for PluginImportService."""
    return create_plugin_import_service(db, registry, storage)
