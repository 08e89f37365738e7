"""Provisions the category and attributes an import plugin needs."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from shared.database.exceptions import EntityAlreadyExistsError, RepositoryError
from shared.database.repositories.category_repository import AttributeAssignment

from .plugin_import_errors import SchemaProvisioningError

if TYPE_CHECKING:
    from shared.database.models import Attribute, Category
    from shared.database.repositories.attribute_repository import AttributeRepository
    from shared.database.repositories.category_repository import CategoryRepository
    from shared.plugins import ImportPlugin, PluginAttribute

logger = logging.getLogger(__name__)


class SchemaProvisioner:
    """Ensures one category per (organization, plugin) with the plugin's attributes.

    Provisioning is lookup-then-create. Two concurrent first-time imports can
    both miss the lookup; the loser's insert hits the database uniqueness
    constraint and the provisioner re-reads the winner's row instead of
    failing. No application-level locking is involved.

    The caller owns the transaction: everything this class writes becomes
    visible together when the caller commits, and is discarded on rollback.
    """

    def __init__(self, category_repo: CategoryRepository, attribute_repo: AttributeRepository):
        self.category_repo = category_repo
        self.attribute_repo = attribute_repo

    async def ensure_category(self, organization_id: str, plugin: ImportPlugin) -> Category:
        """Return the plugin's category, creating it and its schema on first use.

        Raises:
            SchemaProvisioningError: If the category or any attribute could not
                be established. No partial schema is left for the caller to
                commit in that case, since the caller must roll back.
        """
        try:
            existing = await self.category_repo.get_by_plugin_id(organization_id, plugin.id)
            if existing is not None:
                return existing

            category, created = await self._create_category(organization_id, plugin)
            if not created:
                return category

            assignments = []
            for sort_order, declared in enumerate(plugin.attributes):
                attribute = await self._ensure_attribute(organization_id, plugin.id, declared)
                assignments.append(
                    AttributeAssignment(
                        attribute_id=attribute.id,
                        required=declared.required,
                        sort_order=sort_order,
                    )
                )
            await self.category_repo.set_attributes(category.id, assignments)
        except SchemaProvisioningError:
            raise
        except RepositoryError as exc:
            logger.error(
                "Failed to provision schema for plugin %s in organization %s: %s",
                plugin.id,
                organization_id,
                exc,
                exc_info=True,
            )
            raise SchemaProvisioningError(plugin.id) from exc

        logger.info(
            "Provisioned category %s for plugin %s with %d attribute(s)",
            category.id,
            plugin.id,
            len(assignments),
        )
        return category

    async def _create_category(self, organization_id: str, plugin: ImportPlugin) -> tuple[Category, bool]:
        try:
            category = await self.category_repo.create(
                organization_id=organization_id,
                name=plugin.category_name,
                description=plugin.category_description or None,
                plugin_id=plugin.id,
            )
            return category, True
        except EntityAlreadyExistsError:
            logger.info("Category for plugin %s was provisioned concurrently, re-reading", plugin.id)
            winner = await self.category_repo.get_by_plugin_id(organization_id, plugin.id)
            if winner is None:
                logger.error("Category for plugin %s conflicted on create but cannot be read back", plugin.id)
                raise SchemaProvisioningError(plugin.id) from None
            return winner, False

    async def _ensure_attribute(self, organization_id: str, plugin_id: str, declared: PluginAttribute) -> Attribute:
        existing = await self.attribute_repo.get_by_key(organization_id, declared.key)
        if existing is not None:
            return existing
        try:
            return await self.attribute_repo.create(
                organization_id=organization_id,
                name=declared.name,
                key=declared.key,
                data_type=declared.data_type,
                plugin_id=plugin_id,
            )
        except EntityAlreadyExistsError:
            winner = await self.attribute_repo.get_by_key(organization_id, declared.key)
            if winner is None:
                logger.error("Attribute %s conflicted on create but cannot be read back", declared.key)
                raise SchemaProvisioningError(plugin_id) from None
            return winner
