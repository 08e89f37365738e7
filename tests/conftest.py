"""Shared test configuration and fixtures."""

import os

# Set test environment BEFORE any app imports
os.environ["ENVIRONMENT"] = "test"
os.environ["ENABLE_IMPORT_PLUGINS"] = "false"
os.environ["FILE_STORAGE_ENABLED"] = "false"
os.environ.setdefault("POSTGRES_PASSWORD", "test-password")

from collections.abc import Sequence  # noqa: E402
from io import BytesIO  # noqa: E402
from unittest.mock import AsyncMock, MagicMock  # noqa: E402
from uuid import uuid4  # noqa: E402

import pytest  # noqa: E402
from PIL import Image  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession  # noqa: E402

from shared.config import DEFAULT_ORGANIZATION_ID  # noqa: E402
from shared.database.exceptions import EntityAlreadyExistsError  # noqa: E402
from shared.database.models import Asset, Attachment, Attribute, Category  # noqa: E402
from shared.database.repositories.category_repository import AttributeAssignment  # noqa: E402
from shared.plugins import PluginRegistry  # noqa: E402
from shared.plugins.testing import MockImportPlugin, make_record  # noqa: E402
from shared.plugins.types import AttributeDataType  # noqa: E402
from shared.storage import FileStorage, StorageError  # noqa: E402

ORG_ID = DEFAULT_ORGANIZATION_ID


class InMemoryInventory:
    """Rows written by the in-memory repositories below."""

    def __init__(self) -> None:
        self.categories: list[Category] = []
        self.attributes: list[Attribute] = []
        self.assignments: dict[str, list[AttributeAssignment]] = {}
        self.assets: list[Asset] = []
        self.attachments: list[Attachment] = []


class InMemoryCategoryRepository:
    """CategoryRepository stand-in that enforces one category per (organization, plugin)."""

    def __init__(self, inventory: InMemoryInventory) -> None:
        self.inventory = inventory

    async def get_by_plugin_id(self, organization_id: str, plugin_id: str) -> Category | None:
        for category in self.inventory.categories:
            if category.organization_id == organization_id and category.plugin_id == plugin_id:
                return category
        return None

    async def list_plugin_category_ids(self, organization_id: str) -> dict[str, str]:
        return {
            c.plugin_id: c.id
            for c in self.inventory.categories
            if c.organization_id == organization_id and c.plugin_id is not None
        }

    async def create(
        self,
        organization_id: str,
        name: str,
        description: str | None = None,
        plugin_id: str | None = None,
        parent_id: str | None = None,
    ) -> Category:
        if plugin_id is not None and await self.get_by_plugin_id(organization_id, plugin_id) is not None:
            raise EntityAlreadyExistsError("category", plugin_id)
        category = Category(
            id=str(uuid4()),
            organization_id=organization_id,
            parent_id=parent_id,
            plugin_id=plugin_id,
            name=name,
            description=description,
        )
        self.inventory.categories.append(category)
        return category

    async def set_attributes(self, category_id: str, assignments: Sequence[AttributeAssignment]) -> None:
        self.inventory.assignments[category_id] = list(assignments)


class InMemoryAttributeRepository:
    """AttributeRepository stand-in that enforces unique keys per organization."""

    def __init__(self, inventory: InMemoryInventory) -> None:
        self.inventory = inventory

    async def get_by_key(self, organization_id: str, key: str) -> Attribute | None:
        for attribute in self.inventory.attributes:
            if attribute.organization_id == organization_id and attribute.key == key:
                return attribute
        return None

    async def create(
        self,
        organization_id: str,
        name: str,
        key: str,
        data_type: AttributeDataType | str = AttributeDataType.STRING,
        plugin_id: str | None = None,
    ) -> Attribute:
        if await self.get_by_key(organization_id, key) is not None:
            raise EntityAlreadyExistsError("attribute", key)
        attribute = Attribute(
            id=str(uuid4()),
            organization_id=organization_id,
            plugin_id=plugin_id,
            name=name,
            key=key,
            data_type=AttributeDataType(data_type).value,
        )
        self.inventory.attributes.append(attribute)
        return attribute


class InMemoryAssetRepository:
    def __init__(self, inventory: InMemoryInventory) -> None:
        self.inventory = inventory

    async def create(self, organization_id: str, name: str, **fields) -> Asset:
        asset = Asset(id=str(uuid4()), organization_id=organization_id, name=name, **fields)
        self.inventory.assets.append(asset)
        return asset


class InMemoryAttachmentRepository:
    def __init__(self, inventory: InMemoryInventory) -> None:
        self.inventory = inventory
        self.error: BaseException | None = None

    async def create(self, asset_id: str, file_key: str, file_name: str, file_size: int, **fields) -> Attachment:
        if self.error is not None:
            raise self.error
        attachment = Attachment(
            id=str(uuid4()),
            asset_id=asset_id,
            file_key=file_key,
            file_name=file_name,
            file_size=file_size,
            **fields,
        )
        self.inventory.attachments.append(attachment)
        return attachment


class InMemoryFileStorage(FileStorage):
    """File storage keeping uploads in a dict."""

    def __init__(self) -> None:
        self.objects: dict[str, tuple[str, str | None, bytes]] = {}
        self.deleted: list[str] = []
        self.fail_upload = False
        self.fail_delete = False

    async def upload(self, filename: str, content_type: str | None, data: bytes) -> str:
        if self.fail_upload:
            raise StorageError("disk full")
        key = f"{uuid4()}/{filename}"
        self.objects[key] = (filename, content_type, data)
        return key

    async def delete(self, key: str) -> None:
        if self.fail_delete:
            raise StorageError("storage offline")
        self.objects.pop(key, None)
        self.deleted.append(key)

    def get_url(self, key: str) -> str:
        return f"/files/{key}"


def make_png(size: tuple[int, int] = (4, 4)) -> bytes:
    """Encode a tiny solid-colour PNG with Pillow."""
    buffer = BytesIO()
    Image.new("RGB", size, (200, 30, 30)).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture()
def organization_id() -> str:
    return ORG_ID


@pytest.fixture()
def mock_db_session() -> MagicMock:
    """Create a mock async session whose commit/rollback can be asserted."""
    session = MagicMock(spec=AsyncSession)
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    return session


@pytest.fixture()
def inventory() -> InMemoryInventory:
    return InMemoryInventory()


@pytest.fixture()
def category_repo(inventory) -> InMemoryCategoryRepository:
    return InMemoryCategoryRepository(inventory)


@pytest.fixture()
def attribute_repo(inventory) -> InMemoryAttributeRepository:
    return InMemoryAttributeRepository(inventory)


@pytest.fixture()
def asset_repo(inventory) -> InMemoryAssetRepository:
    return InMemoryAssetRepository(inventory)


@pytest.fixture()
def attachment_repo(inventory) -> InMemoryAttachmentRepository:
    return InMemoryAttachmentRepository(inventory)


@pytest.fixture()
def file_storage() -> InMemoryFileStorage:
    return InMemoryFileStorage()


@pytest.fixture()
def png_bytes() -> bytes:
    return make_png()


@pytest.fixture()
def books_plugin() -> MockImportPlugin:
    """Book plugin serving two records, ``b1`` and ``b2``."""
    return MockImportPlugin(
        "books",
        records={
            "b1": make_record("b1", "Dune"),
            "b2": make_record("b2", "Children of Dune"),
        },
    )


@pytest.fixture()
def plugin_registry(books_plugin) -> PluginRegistry:
    registry = PluginRegistry()
    registry.register(books_plugin)
    return registry
