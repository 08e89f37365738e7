"""Plugin-specific exceptions."""

from __future__ import annotations

from typing import Any


class PluginError(Exception):
    """Base error for plugin-related issues."""


class PluginLoadError(PluginError):
    """Raised when a plugin entry point fails to load."""


class PluginRegistrationError(PluginError):
    """Raised when plugin registration fails.

    Carries the plugin ID, an error code, and additional context.
    """

    def __init__(
        self,
        message: str,
        plugin_id: str | None = None,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.plugin_id = plugin_id
        self.error_code = error_code
        self.details = details or {}


class PluginDuplicateError(PluginRegistrationError):
    """Raised when a different plugin is already registered under the same ID."""


class PluginContractError(PluginRegistrationError):
    """Raised when an object does not satisfy the import plugin contract.

    This occurs when the object is not an ``ImportPlugin``, has an empty ID,
    or declares no search fields.
    """
