"""Pydantic schemas for the import plugin APIs."""

from __future__ import annotations

from datetime import datetime  # noqa: TCH003 - Required at runtime for Pydantic
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from shared.plugins.types import AttributeDataType

if TYPE_CHECKING:
    from shared.database.models import Asset, Attachment, Category
    from shared.plugins import ImportPlugin, SearchResult
    from webui.services.plugin_import_service import ImportResult


class SearchFieldSchema(BaseModel):
    key: str
    label: str

    model_config = ConfigDict(extra="forbid")


class PluginAttributeSchema(BaseModel):
    key: str
    name: str
    data_type: str
    required: bool = False

    model_config = ConfigDict(extra="forbid")


class ImportPluginInfo(BaseModel):
    id: str
    name: str
    description: str = ""
    enabled: bool
    disabled_reason: str | None = None
    category_name: str
    category_description: str = ""
    search_fields: list[SearchFieldSchema]
    attributes: list[PluginAttributeSchema]
    category_id: str | None = None

    model_config = ConfigDict(extra="forbid")

    @classmethod
    def from_plugin(cls, plugin: ImportPlugin, category_id: str | None = None) -> ImportPluginInfo:
        return cls(
            id=plugin.id,
            name=plugin.name,
            description=plugin.description,
            enabled=plugin.enabled,
            disabled_reason=None if plugin.enabled else plugin.disabled_reason,
            category_name=plugin.category_name,
            category_description=plugin.category_description,
            search_fields=[SearchFieldSchema(key=f.key, label=f.label) for f in plugin.search_fields],
            attributes=[
                PluginAttributeSchema(key=a.key, name=a.name, data_type=AttributeDataType(a.data_type).value, required=a.required)
                for a in plugin.attributes
            ],
            category_id=category_id,
        )


class ImportPluginListResponse(BaseModel):
    plugins: list[ImportPluginInfo]

    model_config = ConfigDict(extra="forbid")


class SearchResultSchema(BaseModel):
    external_id: str
    title: str
    subtitle: str = ""
    image_url: str | None = None

    model_config = ConfigDict(extra="forbid")

    @classmethod
    def from_result(cls, result: SearchResult) -> SearchResultSchema:
        return cls(
            external_id=result.external_id,
            title=result.title,
            subtitle=result.subtitle,
            image_url=result.image_url,
        )


class PluginSearchResponse(BaseModel):
    plugin_id: str
    field: str
    query: str
    results: list[SearchResultSchema]

    model_config = ConfigDict(extra="forbid")


class PluginImportRequest(BaseModel):
    external_id: str = Field(default="", description="Identifier of the record in the external source")

    @field_validator("external_id")
    @classmethod
    def strip_external_id(cls, v: str) -> str:
        return v.strip()


class CategorySummary(BaseModel):
    id: str
    name: str
    description: str | None = None
    plugin_id: str | None = None

    model_config = ConfigDict(from_attributes=True)


class AttachmentSummary(BaseModel):
    id: str
    file_name: str
    file_size: int
    content_type: str | None = None
    description: str | None = None
    url: str | None = None

    @classmethod
    def from_attachment(cls, attachment: Attachment, url: str | None = None) -> AttachmentSummary:
        return cls(
            id=attachment.id,
            file_name=attachment.file_name,
            file_size=attachment.file_size,
            content_type=attachment.content_type,
            description=attachment.description,
            url=url,
        )


class AssetResponse(BaseModel):
    id: str
    organization_id: str
    category_id: str | None = None
    name: str
    description: str | None = None
    quantity: int
    attributes: dict[str, Any] = Field(default_factory=dict)
    import_plugin_id: str | None = None
    import_external_id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    category: CategorySummary | None = None

    @classmethod
    def from_asset(cls, asset: Asset, category: Category | None = None) -> AssetResponse:
        return cls(
            id=asset.id,
            organization_id=asset.organization_id,
            category_id=asset.category_id,
            name=asset.name,
            description=asset.description,
            quantity=asset.quantity,
            attributes=dict(asset.attributes or {}),
            import_plugin_id=asset.import_plugin_id,
            import_external_id=asset.import_external_id,
            created_at=asset.created_at,
            updated_at=asset.updated_at,
            category=CategorySummary.model_validate(category) if category is not None else None,
        )


class ImportWarningSchema(BaseModel):
    code: str
    message: str


class PluginImportResponse(BaseModel):
    asset: AssetResponse
    attachment: AttachmentSummary | None = None
    warning: ImportWarningSchema | None = None

    @classmethod
    def from_result(cls, result: ImportResult, attachment_url: str | None = None) -> PluginImportResponse:
        return cls(
            asset=AssetResponse.from_asset(result.asset, result.category),
            attachment=(
                AttachmentSummary.from_attachment(result.attachment, attachment_url)
                if result.attachment is not None
                else None
            ),
            warning=(
                ImportWarningSchema(code=result.warning.code, message=result.warning.message)
                if result.warning is not None
                else None
            ),
        )


class PluginErrorResponse(BaseModel):
    detail: str
    code: str
    plugin_id: str | None = None
