"""Service layer for the import plugin pipeline."""

from .image_ingestor import ImageIngestor
from .plugin_catalog_service import PluginCatalogService, PluginEntry, resolve_plugin
from .plugin_import_service import ImportResult, ImportStage, ImportWarning, PluginImportService
from .plugin_search_service import PluginSearchService, SearchOutcome
from .schema_provisioner import SchemaProvisioner

__all__ = [
    "ImageIngestor",
    "ImportResult",
    "ImportStage",
    "ImportWarning",
    "PluginCatalogService",
    "PluginEntry",
    "PluginImportService",
    "PluginSearchService",
    "SchemaProvisioner",
    "SearchOutcome",
    "resolve_plugin",
]
