"""
Main entry point for the Attic web API.
Creates and configures the FastAPI application.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from urllib.parse import urlparse

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from shared.config import settings as shared_settings
from shared.database import pg_connection_manager
from shared.plugins import PluginRegistry, load_import_plugins
from shared.storage import FileStorage, LocalFileStorage

from .api import health, metrics
from .api.v2 import plugins as v2_plugins
from .middleware.correlation import CORRELATION_HEADER, CorrelationMiddleware, configure_logging_with_correlation

logger = logging.getLogger(__name__)


def _validate_cors_origins(origins: list[str]) -> list[str]:
    """Return only well-formed origins; wildcards are refused in production."""
    valid_origins = []
    for origin in origins:
        if origin in ["*", "null"]:
            if shared_settings.ENVIRONMENT == "production":
                logger.error("Rejecting insecure CORS origin '%s' in production environment", origin)
                continue
            logger.warning("Wildcard or null CORS origin '%s' configured", origin)
            valid_origins.append(origin)
            continue

        parsed = urlparse(origin)
        if parsed.scheme and parsed.netloc:
            valid_origins.append(origin)
        else:
            logger.warning("Invalid CORS origin format: %s", origin)
    return valid_origins


def _build_file_storage() -> FileStorage | None:
    if not shared_settings.FILE_STORAGE_ENABLED:
        logger.info("File storage disabled; imported cover images will be skipped")
        return None
    storage = LocalFileStorage(shared_settings.storage_root)
    logger.info("Storing attachments under %s", storage.base_path)
    return storage


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application lifespan events."""
    configure_logging_with_correlation(shared_settings.LOG_LEVEL)
    logger.info("Starting up Attic API...")

    await pg_connection_manager.initialize()

    # The registry is populated here once and only read by request handlers
    registry: PluginRegistry = app.state.plugin_registry
    load_import_plugins(registry, enabled=shared_settings.ENABLE_IMPORT_PLUGINS)

    if getattr(app.state, "file_storage", None) is None:
        app.state.file_storage = _build_file_storage()

    yield

    logger.info("Shutting down Attic API...")
    await pg_connection_manager.close()
    logger.info("PostgreSQL connection closed")


def create_app(
    plugin_registry: PluginRegistry | None = None,
    file_storage: FileStorage | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        plugin_registry: Registry to serve; a fresh one is populated from
            installed entry points at startup when omitted
        file_storage: Storage for imported cover images; built from settings
            at startup when omitted
    """
    app = FastAPI(
        title="Attic",
        description="Home inventory with external import plugins",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.plugin_registry = plugin_registry if plugin_registry is not None else PluginRegistry()
    app.state.file_storage = file_storage

    cors_origins = _validate_cors_origins(shared_settings.cors_origins_list)
    if not cors_origins:
        logger.warning("No valid CORS origins configured - browser requests may be blocked")

    app.add_middleware(CorrelationMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Accept", "Origin", CORRELATION_HEADER],
        expose_headers=[CORRELATION_HEADER],
    )

    app.include_router(health.router)
    app.include_router(metrics.router)
    app.include_router(v2_plugins.router)

    return app


# Create the app instance
app = create_app()

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=shared_settings.WEBUI_HOST, port=shared_settings.WEBUI_PORT)
