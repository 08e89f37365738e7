"""Search coordinator for import plugins."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from shared.plugins.metrics import record_search, record_upstream_call, timed_operation

from .plugin_catalog_service import resolve_plugin
from .plugin_import_errors import InvalidImportRequestError, UpstreamSearchError

if TYPE_CHECKING:
    from shared.plugins import ImportPlugin, PluginRegistry, SearchResult

logger = logging.getLogger(__name__)

MIN_QUERY_LENGTH = 2
DEFAULT_SEARCH_LIMIT = 10
MAX_SEARCH_LIMIT = 20


def clamp_limit(limit: int | str | None) -> int:
    """Return ``limit`` if it lies in ``[1, MAX_SEARCH_LIMIT]``, else the default.

    Non-numeric strings count as unset.
    """
    if isinstance(limit, str):
        try:
            limit = int(limit.strip())
        except ValueError:
            return DEFAULT_SEARCH_LIMIT
    if limit is None or limit < 1 or limit > MAX_SEARCH_LIMIT:
        return DEFAULT_SEARCH_LIMIT
    return limit


@dataclass(frozen=True)
class SearchOutcome:
    plugin_id: str
    field: str
    query: str
    limit: int
    results: list[SearchResult] = field(default_factory=list)


class PluginSearchService:
    """Validates a search request and forwards it to the plugin.

    All validation happens before the plugin is called, so rejected requests
    never cost an outbound call.
    """

    def __init__(self, registry: PluginRegistry):
        self.registry = registry

    async def search(
        self,
        plugin_id: str,
        query: str | None,
        field: str | None = None,
        limit: int | str | None = None,
    ) -> SearchOutcome:
        """Search an external source through a plugin.

        Args:
            plugin_id: Registered plugin id
            query: Free-text query; surrounding whitespace is ignored
            field: Search field key, defaults to the plugin's first field
            limit: Maximum results; unset, non-numeric or outside 1-20 becomes 10

        Returns:
            SearchOutcome with the (possibly empty) result list

        Raises:
            PluginNotFoundError: Unknown plugin
            PluginDisabledError: Plugin is disabled
            InvalidImportRequestError: Missing/short query or unknown field
            UpstreamSearchError: The plugin call failed
        """
        plugin = resolve_plugin(self.registry, plugin_id)
        try:
            query = self._validate_query(plugin_id, query)
            field = self._resolve_field(plugin, field)
        except InvalidImportRequestError:
            record_search(plugin_id, "rejected")
            raise
        limit = clamp_limit(limit)

        with timed_operation() as timing:
            try:
                results = await plugin.search(field, query, limit)
            except asyncio.CancelledError:
                logger.debug("Search via %s cancelled by caller", plugin_id)
                record_search(plugin_id, "cancelled")
                raise
            except Exception as exc:
                logger.error(
                    "Plugin search failed (plugin=%s, field=%s, query=%r): %s",
                    plugin_id,
                    field,
                    query,
                    exc,
                    exc_info=True,
                )
                record_search(plugin_id, "upstream_error")
                raise UpstreamSearchError(plugin_id) from exc
        record_upstream_call(plugin_id, "search", timing["duration"])
        record_search(plugin_id, "success")

        return SearchOutcome(
            plugin_id=plugin_id,
            field=field,
            query=query,
            limit=limit,
            results=list(results) if results is not None else [],
        )

    @staticmethod
    def _validate_query(plugin_id: str, query: str | None) -> str:
        query = (query or "").strip()
        if not query:
            raise InvalidImportRequestError("query parameter 'q' is required", plugin_id, field="q")
        if len(query) < MIN_QUERY_LENGTH:
            raise InvalidImportRequestError(
                f"search query must be at least {MIN_QUERY_LENGTH} characters", plugin_id, field="q"
            )
        return query

    @staticmethod
    def _resolve_field(plugin: ImportPlugin, field: str | None) -> str:
        declared = [f.key for f in plugin.search_fields]
        if not field:
            return declared[0]
        if field not in declared:
            raise InvalidImportRequestError(f"invalid search field '{field}'", plugin.id, field="field")
        return field
