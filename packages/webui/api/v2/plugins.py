"""Import plugin API endpoints: list, inspect, search and import."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Path, Query, Request, status
from pydantic import ValidationError

from shared.plugins import PluginRegistry
from shared.storage import FileStorage
from webui.api.v2.plugins_schemas import (
    ImportPluginInfo,
    ImportPluginListResponse,
    PluginErrorResponse,
    PluginImportRequest,
    PluginImportResponse,
    PluginSearchResponse,
    SearchResultSchema,
)
from webui.dependencies import get_file_storage, get_organization_id, get_plugin_registry
from webui.services.factory import (
    get_plugin_catalog_service,
    get_plugin_import_service,
    get_plugin_search_service,
)
from webui.services.plugin_catalog_service import PluginCatalogService, resolve_plugin
from webui.services.plugin_import_errors import (
    InvalidImportRequestError,
    MalformedUpstreamDataError,
    PluginDisabledError,
    PluginImportError,
    PluginNotFoundError,
    UpstreamFetchError,
    UpstreamNotFoundError,
    UpstreamSearchError,
)
from webui.services.plugin_import_service import PluginImportService
from webui.services.plugin_search_service import PluginSearchService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v2/plugins", tags=["plugins-v2"])

INVALID_IMPORT_BODY = "invalid request body: expected JSON with 'external_id' field"

_STATUS_BY_ERROR: tuple[tuple[type[PluginImportError], int], ...] = (
    (PluginNotFoundError, status.HTTP_404_NOT_FOUND),
    (PluginDisabledError, status.HTTP_503_SERVICE_UNAVAILABLE),
    (InvalidImportRequestError, status.HTTP_400_BAD_REQUEST),
    (UpstreamNotFoundError, status.HTTP_404_NOT_FOUND),
    (UpstreamSearchError, status.HTTP_502_BAD_GATEWAY),
    (UpstreamFetchError, status.HTTP_502_BAD_GATEWAY),
    (MalformedUpstreamDataError, status.HTTP_502_BAD_GATEWAY),
)

_ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    404: {"model": PluginErrorResponse, "description": "Plugin or external item not found"},
    503: {"model": PluginErrorResponse, "description": "Plugin disabled"},
}


def _plugin_error(status_code: int, code: str, detail: str, plugin_id: str | None = None) -> HTTPException:
    """Create an HTTPException with structured plugin error response."""
    return HTTPException(
        status_code=status_code,
        detail=PluginErrorResponse(detail=detail, code=code, plugin_id=plugin_id).model_dump(),
    )


def _to_http_error(exc: PluginImportError) -> HTTPException:
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    for error_type, mapped_status in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            status_code = mapped_status
            break
    return _plugin_error(status_code, exc.code, exc.public_message, exc.plugin_id)


@router.get("", response_model=ImportPluginListResponse)
async def list_plugins(
    organization_id: str = Depends(get_organization_id),
    service: PluginCatalogService = Depends(get_plugin_catalog_service),
) -> ImportPluginListResponse:
    """List registered import plugins with their provisioned category, if any."""
    entries = await service.list_plugins(organization_id)
    return ImportPluginListResponse(
        plugins=[ImportPluginInfo.from_plugin(entry.plugin, entry.category_id) for entry in entries]
    )


@router.get("/{plugin_id}", response_model=ImportPluginInfo, responses={404: _ERROR_RESPONSES[404]})
async def get_plugin(
    plugin_id: str = Path(..., min_length=1),
    organization_id: str = Depends(get_organization_id),
    service: PluginCatalogService = Depends(get_plugin_catalog_service),
) -> ImportPluginInfo:
    """Get one plugin, including disabled ones."""
    try:
        entry = await service.get_plugin(organization_id, plugin_id)
    except PluginImportError as e:
        raise _to_http_error(e) from e
    return ImportPluginInfo.from_plugin(entry.plugin, entry.category_id)


@router.get(
    "/{plugin_id}/search",
    response_model=PluginSearchResponse,
    responses={
        400: {"model": PluginErrorResponse, "description": "Invalid query or field"},
        **_ERROR_RESPONSES,
        502: {"model": PluginErrorResponse, "description": "External source unavailable"},
    },
)
async def search_plugin(
    plugin_id: str = Path(..., min_length=1),
    q: str | None = Query(default=None, description="Search text, at least 2 characters"),
    field: str | None = Query(default=None, description="Search field; defaults to the plugin's first field"),
    limit: str | None = Query(default=None, description="1-20, defaults to 10"),
    service: PluginSearchService = Depends(get_plugin_search_service),
) -> PluginSearchResponse:
    """Search an external source for items to import."""
    try:
        outcome = await service.search(plugin_id, q, field=field, limit=limit)
    except PluginImportError as e:
        raise _to_http_error(e) from e
    return PluginSearchResponse(
        plugin_id=outcome.plugin_id,
        field=outcome.field,
        query=outcome.query,
        results=[SearchResultSchema.from_result(r) for r in outcome.results],
    )


@router.post(
    "/{plugin_id}/import",
    response_model=PluginImportResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": PluginErrorResponse, "description": "Invalid request body"},
        **_ERROR_RESPONSES,
        500: {"model": PluginErrorResponse, "description": "Import could not be saved"},
        502: {"model": PluginErrorResponse, "description": "External source failed"},
    },
    openapi_extra={
        "requestBody": {
            "required": True,
            "content": {"application/json": {"schema": PluginImportRequest.model_json_schema()}},
        }
    },
)
async def import_from_plugin(
    request: Request,
    plugin_id: str = Path(..., min_length=1),
    organization_id: str = Depends(get_organization_id),
    registry: PluginRegistry = Depends(get_plugin_registry),
    storage: FileStorage | None = Depends(get_file_storage),
    service: PluginImportService = Depends(get_plugin_import_service),
) -> PluginImportResponse:
    """Import one external item as a new asset.

    The asset is returned even when its cover image could not be imported;
    ``warning`` is set in that case.
    """
    try:
        # Unknown or disabled plugins are reported before body problems
        resolve_plugin(registry, plugin_id)
        try:
            body = PluginImportRequest.model_validate_json(await request.body())
        except ValidationError as e:
            raise InvalidImportRequestError(INVALID_IMPORT_BODY, plugin_id) from e

        result = await service.import_item(organization_id, plugin_id, body.external_id)
    except PluginImportError as e:
        raise _to_http_error(e) from e

    attachment_url = storage.get_url(result.attachment.file_key) if result.attachment and storage else None
    return PluginImportResponse.from_result(result, attachment_url)
