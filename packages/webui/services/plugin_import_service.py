"""Import orchestrator: turns one external record into one asset."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import TYPE_CHECKING, Any

from shared.plugins.metrics import record_import, record_upstream_call, timed_operation

from .plugin_catalog_service import resolve_plugin
from .plugin_import_errors import (
    AssetPersistenceError,
    ImageIngestError,
    ImportSerializationError,
    InvalidImportRequestError,
    MalformedUpstreamDataError,
    PluginImportError,
    SchemaProvisioningError,
    UpstreamFetchError,
    UpstreamNotFoundError,
)

if TYPE_CHECKING:
    from shared.database.models import Asset, Attachment, Category
    from shared.database.repositories.asset_repository import AssetRepository
    from shared.plugins import ImportData, ImportPlugin, PluginRegistry
    from sqlalchemy.ext.asyncio import AsyncSession

    from .image_ingestor import ImageIngestor
    from .schema_provisioner import SchemaProvisioner

logger = logging.getLogger(__name__)

NOT_FOUND_MARKER = "not found"


class ImportStage(str, Enum):
    VALIDATING = "validating"
    FETCHING = "fetching"
    PROVISIONING = "provisioning"
    PERSISTING = "persisting"
    IMAGE_INGESTING = "image_ingesting"
    DONE = "done"


@dataclass(frozen=True)
class ImportWarning:
    """Non-fatal problem; the asset was created regardless."""

    code: str
    message: str


@dataclass(frozen=True)
class ImportResult:
    asset: Asset
    category: Category
    attachment: Attachment | None = None
    warning: ImportWarning | None = None

    @property
    def degraded(self) -> bool:
        return self.warning is not None


def _json_default(value: Any) -> Any:
    if isinstance(value, datetime | date):
        return value.isoformat()
    if isinstance(value, set | frozenset | tuple):
        return list(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def serialize_attributes(attributes: Mapping[str, Any] | None) -> dict[str, Any]:
    """Convert a fetched attribute map into a JSON-compatible payload.

    Raises:
        TypeError, ValueError: If the map cannot be represented as JSON.
    """
    if attributes is None:
        return {}
    if not isinstance(attributes, Mapping):
        raise TypeError(f"attributes must be a mapping, got {type(attributes).__name__}")
    return json.loads(json.dumps(dict(attributes), allow_nan=False, default=_json_default))


class PluginImportService:
    """Runs an import: fetch, provision schema, create asset, attach cover.

    Stages: validating, fetching, provisioning, persisting, then the
    best-effort image_ingesting tail. Any stage before the tail can fail the
    import. Nothing is retried automatically; a failed import is resubmitted
    by the caller.

    Provisioned schema is committed before the asset is written, so it stays
    in place for the next attempt if asset creation fails. Cover image
    problems are reported through ``ImportResult.warning`` and never fail the
    import.
    """

    def __init__(
        self,
        db_session: AsyncSession,
        registry: PluginRegistry,
        provisioner: SchemaProvisioner,
        asset_repo: AssetRepository,
        image_ingestor: ImageIngestor | None = None,
    ):
        self.db_session = db_session
        self.registry = registry
        self.provisioner = provisioner
        self.asset_repo = asset_repo
        self.image_ingestor = image_ingestor

    async def import_item(self, organization_id: str, plugin_id: str, external_id: str | None) -> ImportResult:
        """Import one external record as a new asset.

        Raises:
            PluginNotFoundError, PluginDisabledError, InvalidImportRequestError:
                caller-correctable problems
            UpstreamNotFoundError, UpstreamFetchError, MalformedUpstreamDataError:
                the external source failed or returned unusable data
            SchemaProvisioningError, ImportSerializationError, AssetPersistenceError:
                internal failures
        """
        stage = ImportStage.VALIDATING
        try:
            plugin = resolve_plugin(self.registry, plugin_id)
            external_id = (external_id or "").strip()
            if not external_id:
                raise InvalidImportRequestError("external_id is required", plugin_id, field="external_id")

            stage = ImportStage.FETCHING
            record = await self._fetch(plugin, external_id)
            name = (record.name or "").strip()
            if not name:
                logger.error("Plugin %s returned a record without a name for %s", plugin_id, external_id)
                raise MalformedUpstreamDataError(plugin_id)

            stage = ImportStage.PROVISIONING
            category = await self._provision(organization_id, plugin)

            stage = ImportStage.PERSISTING
            try:
                attributes = serialize_attributes(record.attributes)
            except (TypeError, ValueError) as exc:
                logger.error("Failed to serialize attributes from %s/%s: %s", plugin_id, external_id, exc)
                raise ImportSerializationError(plugin_id) from exc
            asset = await self._persist(organization_id, plugin, category, record, name, attributes, external_id)
        except PluginImportError as exc:
            logger.info("Import via %s failed at %s stage: %s", plugin_id, stage.value, exc.code)
            record_import(plugin_id, exc.code)
            raise

        stage = ImportStage.IMAGE_INGESTING
        attachment, warning = await self._ingest_cover(asset, record.image_url)
        if warning:
            logger.info("Import via %s degraded at %s stage: %s", plugin_id, stage.value, warning.code)

        stage = ImportStage.DONE
        record_import(plugin_id, "degraded" if warning else "success")
        logger.info("Imported %s/%s as asset %s (%s)", plugin_id, external_id, asset.id, stage.value)
        return ImportResult(asset=asset, category=category, attachment=attachment, warning=warning)

    async def _fetch(self, plugin: ImportPlugin, external_id: str) -> ImportData:
        with timed_operation() as timing:
            try:
                record = await plugin.fetch(external_id)
            except asyncio.CancelledError:
                logger.debug("Fetch of %s/%s cancelled by caller", plugin.id, external_id)
                raise
            except Exception as exc:
                logger.error("Plugin fetch failed (plugin=%s, external_id=%s): %s", plugin.id, external_id, exc)
                if NOT_FOUND_MARKER in str(exc).lower():
                    raise UpstreamNotFoundError(plugin.id, external_id) from exc
                raise UpstreamFetchError(plugin.id) from exc
        record_upstream_call(plugin.id, "fetch", timing["duration"])

        if record is None:
            logger.error("Plugin %s returned no record for %s", plugin.id, external_id)
            raise UpstreamFetchError(plugin.id)
        return record

    async def _provision(self, organization_id: str, plugin: ImportPlugin) -> Category:
        try:
            category = await self.provisioner.ensure_category(organization_id, plugin)
            await self.db_session.commit()
        except SchemaProvisioningError:
            await self.db_session.rollback()
            raise
        except Exception as exc:
            logger.error("Failed to commit provisioned schema for plugin %s: %s", plugin.id, exc, exc_info=True)
            await self.db_session.rollback()
            raise SchemaProvisioningError(plugin.id) from exc
        return category

    async def _persist(
        self,
        organization_id: str,
        plugin: ImportPlugin,
        category: Category,
        record: ImportData,
        name: str,
        attributes: dict[str, Any],
        external_id: str,
    ) -> Asset:
        try:
            asset = await self.asset_repo.create(
                organization_id=organization_id,
                name=name,
                category_id=category.id,
                description=record.description,
                quantity=1,
                attributes=attributes,
                import_plugin_id=plugin.id,
                import_external_id=record.external_id or external_id,
            )
            await self.db_session.commit()
        except Exception as exc:
            logger.error("Failed to save imported asset for %s/%s: %s", plugin.id, external_id, exc, exc_info=True)
            await self.db_session.rollback()
            raise AssetPersistenceError(plugin.id) from exc
        return asset

    async def _ingest_cover(
        self, asset: Asset, image_url: str | None
    ) -> tuple[Attachment | None, ImportWarning | None]:
        image_url = (image_url or "").strip()
        if not image_url or self.image_ingestor is None:
            return None, None

        try:
            attachment = await self.image_ingestor.ingest(asset.id, image_url)
        except ImageIngestError as exc:
            logger.warning("Asset %s created without cover image from %s: %s", asset.id, image_url, exc)
            return None, ImportWarning(code=exc.code, message="cover image could not be imported")
        except Exception as exc:
            logger.error("Unexpected error ingesting cover image for asset %s: %s", asset.id, exc, exc_info=True)
            return None, ImportWarning(code="image_ingest_failed", message="cover image could not be imported")
        return attachment, None
