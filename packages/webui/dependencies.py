"""Common FastAPI dependencies for the web API."""

import logging

from fastapi import HTTPException, Request

from shared.config import settings
from shared.plugins import PluginRegistry
from shared.storage import FileStorage

logger = logging.getLogger(__name__)


def get_plugin_registry(request: Request) -> PluginRegistry:
    """Return the registry populated during application startup."""
    registry = getattr(request.app.state, "plugin_registry", None)
    if registry is None:
        logger.error("Plugin registry requested before application startup")
        raise HTTPException(status_code=503, detail="Plugin registry not initialized")
    return registry


def get_file_storage(request: Request) -> FileStorage | None:
    """Return the configured file storage, or None when uploads are disabled."""
    return getattr(request.app.state, "file_storage", None)


def get_organization_id() -> str:
    """Organization for the current request.

    There is no authentication layer yet, so every request acts on the
    configured default organization.
    """
    return settings.DEFAULT_ORGANIZATION_ID
