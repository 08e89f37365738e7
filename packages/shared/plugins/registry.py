"""Thread-safe registry of import plugins.

A ``PluginRegistry`` is created and populated once during application startup
(see ``webui.main.lifespan``) and stored on ``app.state``. Request handlers
only read from it. There is no module-level registry instance; code that
needs one receives it explicitly.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from threading import RLock

from .base import ImportPlugin
from .exceptions import PluginContractError, PluginDuplicateError

logger = logging.getLogger(__name__)


@dataclass
class PluginRegistry:
    """Lookup table from plugin ID to plugin instance."""

    _plugins: dict[str, ImportPlugin] = field(default_factory=dict)
    _lock: RLock = field(default_factory=RLock)

    def register(self, plugin: ImportPlugin) -> bool:
        """Register a plugin.

        Returns True if newly registered, False if this exact instance is
        already registered.

        Raises:
            PluginContractError: If ``plugin`` does not satisfy the contract.
            PluginDuplicateError: If another plugin already uses the same ID.
        """
        _validate_contract(plugin)

        with self._lock:
            plugin_id = plugin.id
            existing = self._plugins.get(plugin_id)
            if existing is not None:
                if existing is plugin:
                    logger.debug("Plugin '%s' already registered, skipping duplicate", plugin_id)
                    return False
                raise PluginDuplicateError(
                    f"Plugin conflict: '{plugin_id}' already registered with "
                    f"{type(existing).__name__}, cannot register {type(plugin).__name__}",
                    plugin_id=plugin_id,
                    error_code="PLUGIN_ID_CONFLICT",
                    details={
                        "existing_class": type(existing).__name__,
                        "new_class": type(plugin).__name__,
                    },
                )

            self._plugins[plugin_id] = plugin
            logger.info("Registered import plugin: %s", plugin_id)
            return True

    def get(self, plugin_id: str) -> ImportPlugin | None:
        """Return the plugin for ``plugin_id`` or None."""
        with self._lock:
            return self._plugins.get(plugin_id)

    def has(self, plugin_id: str) -> bool:
        with self._lock:
            return plugin_id in self._plugins

    def list(self) -> list[ImportPlugin]:
        """Return all plugins ordered by ID."""
        with self._lock:
            return [self._plugins[plugin_id] for plugin_id in sorted(self._plugins)]

    def list_ids(self) -> list[str]:
        with self._lock:
            return sorted(self._plugins)

    def __len__(self) -> int:
        with self._lock:
            return len(self._plugins)


def _validate_contract(plugin: object) -> None:
    if not isinstance(plugin, ImportPlugin):
        raise PluginContractError(
            f"{type(plugin).__name__} is not an ImportPlugin",
            error_code="PLUGIN_NOT_IMPORT_PLUGIN",
        )
    plugin_id = plugin.id
    if not isinstance(plugin_id, str) or not plugin_id.strip():
        raise PluginContractError(
            f"{type(plugin).__name__} has an empty plugin id",
            error_code="PLUGIN_EMPTY_ID",
        )
    if not plugin.search_fields:
        raise PluginContractError(
            f"Plugin '{plugin_id}' declares no search fields",
            plugin_id=plugin_id,
            error_code="PLUGIN_NO_SEARCH_FIELDS",
        )


__all__ = ["PluginRegistry"]
