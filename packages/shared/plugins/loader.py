"""Entry-point loader for import plugins."""

from __future__ import annotations

import logging
import os
from importlib import metadata
from typing import TYPE_CHECKING, Any

from .base import ImportPlugin
from .exceptions import PluginLoadError, PluginRegistrationError
from .metrics import record_plugin_load, timed_operation

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .registry import PluginRegistry

logger = logging.getLogger(__name__)

ENTRYPOINT_GROUP = "attic.import_plugins"

_ENV_FLAG = "ENABLE_IMPORT_PLUGINS"


def _flag_enabled(flag: str, default: str = "true") -> bool:
    value = os.getenv(flag, default).lower()
    return value not in {"0", "false", "no", "off"}


def _instantiate(obj: Any, ep_name: str) -> ImportPlugin:
    """Turn an entry point target into a plugin instance.

    Targets may be a plugin instance, a plugin class, or a zero-argument
    factory returning an instance.
    """
    if isinstance(obj, ImportPlugin):
        return obj
    if callable(obj):
        instance = obj()
        if isinstance(instance, ImportPlugin):
            return instance
    raise PluginLoadError(f"Entry point '{ep_name}' did not resolve to an ImportPlugin")


def _entry_points(group: str) -> Iterable[metadata.EntryPoint]:
    try:
        return list(metadata.entry_points().select(group=group))
    except Exception as exc:  # pragma: no cover - broken environment metadata
        logger.warning("Unable to query entry points for import plugins: %s", exc)
        return []


def load_import_plugins(
    registry: PluginRegistry,
    *,
    entry_point_group: str = ENTRYPOINT_GROUP,
    enabled: bool | None = None,
) -> list[str]:
    """Register every installed import plugin with ``registry``.

    A plugin that fails to load is logged and skipped; it never stops the
    remaining plugins or the application from starting.

    Args:
        registry: Registry to populate.
        entry_point_group: Entry point group to scan.
        enabled: Override for the ``ENABLE_IMPORT_PLUGINS`` environment flag.

    Returns:
        IDs of the plugins newly registered by this call.
    """
    if enabled is None:
        enabled = _flag_enabled(_ENV_FLAG)
    if not enabled:
        logger.info("Import plugin loading disabled via %s", _ENV_FLAG)
        return []

    loaded: list[str] = []
    for ep in _entry_points(entry_point_group):
        ep_name = getattr(ep, "name", "unknown")
        with timed_operation() as timing:
            try:
                plugin = _instantiate(ep.load(), ep_name)
                newly_registered = registry.register(plugin)
            except PluginRegistrationError as exc:
                logger.warning("Rejected import plugin from entry point %s: %s", ep_name, exc)
                newly_registered = None
            except Exception as exc:
                logger.warning("Failed to load import plugin entry point %s: %s", ep_name, exc)
                newly_registered = None
        record_plugin_load(ep_name, success=newly_registered is not None, duration=timing.get("duration", 0.0))

        if newly_registered:
            loaded.append(plugin.id)
            if not plugin.enabled:
                logger.info("Import plugin '%s' is disabled: %s", plugin.id, plugin.disabled_reason)

    logger.info("Loaded %d import plugin(s): %s", len(loaded), ", ".join(loaded) or "none")
    return loaded


__all__ = ["ENTRYPOINT_GROUP", "load_import_plugins"]
