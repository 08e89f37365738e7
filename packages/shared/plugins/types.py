"""Value types exchanged between import plugins and the pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class AttributeDataType(str, Enum):
    """Data types a plugin may declare for an attribute."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    TEXT = "text"
    DATE = "date"


@dataclass(frozen=True)
class SearchField:
    """A queryable field a plugin supports, e.g. ``isbn`` or ``title``."""

    key: str
    label: str


@dataclass(frozen=True)
class PluginAttribute:
    """A schema field that the plugin's records populate."""

    key: str
    name: str
    data_type: AttributeDataType = AttributeDataType.STRING
    required: bool = False


@dataclass(frozen=True)
class SearchResult:
    """One search hit; ``external_id`` is what the caller passes to import."""

    external_id: str
    title: str
    subtitle: str = ""
    image_url: str | None = None


@dataclass
class ImportData:
    """Normalized record returned by a plugin fetch.

    ``name`` is mandatory. An empty name is a contract violation by the plugin.
    """

    external_id: str
    name: str
    description: str | None = None
    image_url: str | None = None
    attributes: dict[str, Any] = field(default_factory=dict)


__all__ = [
    "AttributeDataType",
    "ImportData",
    "PluginAttribute",
    "SearchField",
    "SearchResult",
]
