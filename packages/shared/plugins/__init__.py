"""Import plugin contract, registry and loader."""

from .base import ImportPlugin
from .exceptions import (
    PluginContractError,
    PluginDuplicateError,
    PluginError,
    PluginLoadError,
    PluginRegistrationError,
)
from .loader import ENTRYPOINT_GROUP, load_import_plugins
from .registry import PluginRegistry
from .types import AttributeDataType, ImportData, PluginAttribute, SearchField, SearchResult

__all__ = [
    "ENTRYPOINT_GROUP",
    "AttributeDataType",
    "ImportData",
    "ImportPlugin",
    "PluginAttribute",
    "PluginContractError",
    "PluginDuplicateError",
    "PluginError",
    "PluginLoadError",
    "PluginRegistrationError",
    "PluginRegistry",
    "SearchField",
    "SearchResult",
    "load_import_plugins",
]
