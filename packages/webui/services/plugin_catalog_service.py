"""Read-only views over the registered import plugins."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .plugin_import_errors import PluginDisabledError, PluginNotFoundError

if TYPE_CHECKING:
    from shared.database.repositories.category_repository import CategoryRepository
    from shared.plugins import ImportPlugin, PluginRegistry

logger = logging.getLogger(__name__)


def resolve_plugin(registry: PluginRegistry, plugin_id: str, *, require_enabled: bool = True) -> ImportPlugin:
    """Look up a plugin, translating a miss into ``PluginNotFoundError``.

    Raises:
        PluginNotFoundError: Unknown plugin id.
        PluginDisabledError: Plugin is disabled and ``require_enabled`` is set.
    """
    plugin = registry.get(plugin_id)
    if plugin is None:
        raise PluginNotFoundError(plugin_id)
    if require_enabled and not plugin.enabled:
        raise PluginDisabledError(plugin_id, plugin.disabled_reason)
    return plugin


@dataclass(frozen=True)
class PluginEntry:
    """A plugin paired with the category it provisioned, if any."""

    plugin: ImportPlugin
    category_id: str | None = None


class PluginCatalogService:
    """Lists plugins together with their provisioned category ids."""

    def __init__(self, registry: PluginRegistry, category_repo: CategoryRepository):
        self.registry = registry
        self.category_repo = category_repo

    async def list_plugins(self, organization_id: str) -> list[PluginEntry]:
        plugins = self.registry.list()
        if not plugins:
            return []
        category_ids = await self.category_repo.list_plugin_category_ids(organization_id)
        return [PluginEntry(plugin=p, category_id=category_ids.get(p.id)) for p in plugins]

    async def get_plugin(self, organization_id: str, plugin_id: str) -> PluginEntry:
        """Return one plugin, enabled or not.

        Raises:
            PluginNotFoundError: Unknown plugin id.
        """
        plugin = resolve_plugin(self.registry, plugin_id, require_enabled=False)
        category = await self.category_repo.get_by_plugin_id(organization_id, plugin_id)
        return PluginEntry(plugin=plugin, category_id=category.id if category else None)
