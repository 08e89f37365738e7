"""Base class for external import plugins."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .types import ImportData, PluginAttribute, SearchField, SearchResult


class ImportPlugin(ABC):
    """Capability for one external data source (search + fetch).

    Implementations are stateless from the pipeline's point of view. Variant
    behavior such as being disabled or the set of search fields is data on
    the implementation; the pipeline never branches on the plugin class.

    ``search`` and ``fetch`` may raise any exception. The pipeline logs the
    real cause and reports a generic upstream failure. An exception whose
    message contains "not found" from ``fetch`` is reported as a missing
    record rather than an upstream outage.
    """

    @property
    @abstractmethod
    def id(self) -> str:
        """Stable identifier, e.g. ``google_books``."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Human readable name."""

    @property
    def description(self) -> str:
        return ""

    @property
    def enabled(self) -> bool:
        return True

    @property
    def disabled_reason(self) -> str:
        """Why the plugin is unavailable, e.g. a missing API key."""
        return ""

    @property
    @abstractmethod
    def category_name(self) -> str:
        """Name of the category provisioned for imported items."""

    @property
    def category_description(self) -> str:
        return ""

    @property
    @abstractmethod
    def search_fields(self) -> Sequence[SearchField]:
        """Ordered, non-empty; the first entry is the default field."""

    @property
    @abstractmethod
    def attributes(self) -> Sequence[PluginAttribute]:
        """Attributes populated by fetched records, in display order."""

    @abstractmethod
    async def search(self, field: str, query: str, limit: int) -> list[SearchResult] | None:
        """Search the external source."""

    @abstractmethod
    async def fetch(self, external_id: str) -> ImportData | None:
        """Fetch the full record for ``external_id``."""

    def __repr__(self) -> str:
        return f"<{type(self).__name__} id={self.id!r}>"
