"""Unit tests for SchemaProvisioner."""

from unittest.mock import AsyncMock

import pytest

from shared.database.exceptions import DatabaseOperationError, EntityAlreadyExistsError
from shared.database.models import Attribute, Category
from shared.database.repositories import AttributeAssignment
from shared.plugins import AttributeDataType, PluginAttribute
from shared.plugins.testing import MockImportPlugin
from webui.services.plugin_import_errors import ErrorKind, SchemaProvisioningError
from webui.services.schema_provisioner import SchemaProvisioner


@pytest.fixture()
def provisioner(category_repo, attribute_repo) -> SchemaProvisioner:
    return SchemaProvisioner(category_repo, attribute_repo)


class TestEnsureCategory:
    @pytest.mark.asyncio()
    async def test_first_use_creates_category_and_attributes(self, provisioner, inventory, books_plugin, organization_id):
        category = await provisioner.ensure_category(organization_id, books_plugin)

        assert category.plugin_id == "books"
        assert category.name == "Books"
        assert category.description == books_plugin.category_description
        assert category.organization_id == organization_id
        assert [a.key for a in inventory.attributes] == ["isbn", "author"]
        assert all(a.plugin_id == "books" for a in inventory.attributes)
        assert all(a.data_type == "string" for a in inventory.attributes)

        isbn, author = inventory.attributes
        assert inventory.assignments[category.id] == [
            AttributeAssignment(attribute_id=isbn.id, required=True, sort_order=0),
            AttributeAssignment(attribute_id=author.id, required=False, sort_order=1),
        ]

    @pytest.mark.asyncio()
    async def test_second_use_returns_existing_category(self, provisioner, inventory, books_plugin, organization_id):
        first = await provisioner.ensure_category(organization_id, books_plugin)
        second = await provisioner.ensure_category(organization_id, books_plugin)

        assert second is first
        assert len(inventory.categories) == 1
        assert len(inventory.attributes) == 2

    @pytest.mark.asyncio()
    async def test_categories_are_per_organization(self, provisioner, inventory, books_plugin, organization_id):
        await provisioner.ensure_category(organization_id, books_plugin)
        await provisioner.ensure_category("other-org", books_plugin)

        assert len(inventory.categories) == 2
        assert len(inventory.attributes) == 4

    @pytest.mark.asyncio()
    async def test_existing_attribute_is_reused(self, provisioner, inventory, attribute_repo, books_plugin, organization_id):
        shared_isbn = await attribute_repo.create(organization_id, name="ISBN", key="isbn")

        category = await provisioner.ensure_category(organization_id, books_plugin)

        assert [a.key for a in inventory.attributes] == ["isbn", "author"]
        assert inventory.assignments[category.id][0].attribute_id == shared_isbn.id

    @pytest.mark.asyncio()
    async def test_declared_data_types_are_kept(self, provisioner, inventory, organization_id):
        plugin = MockImportPlugin(
            "games",
            category_name="Board Games",
            attributes=(
                PluginAttribute(key="players", name="Players", data_type=AttributeDataType.NUMBER),
                PluginAttribute(key="released", name="Released", data_type=AttributeDataType.DATE),
            ),
        )

        await provisioner.ensure_category(organization_id, plugin)

        assert [(a.key, a.data_type) for a in inventory.attributes] == [("players", "number"), ("released", "date")]

    @pytest.mark.asyncio()
    async def test_plugin_without_attributes(self, provisioner, inventory, organization_id):
        plugin = MockImportPlugin("tags", category_name="Tags", attributes=())

        category = await provisioner.ensure_category(organization_id, plugin)

        assert inventory.assignments[category.id] == []


class TestConcurrentProvisioning:
    @pytest.mark.asyncio()
    async def test_category_conflict_rereads_winner(self, books_plugin, organization_id):
        winner = Category(id="cat-winner", organization_id=organization_id, plugin_id="books", name="Books")
        category_repo = AsyncMock()
        category_repo.get_by_plugin_id.side_effect = [None, winner]
        category_repo.create.side_effect = EntityAlreadyExistsError("category", "books")
        attribute_repo = AsyncMock()

        category = await SchemaProvisioner(category_repo, attribute_repo).ensure_category(organization_id, books_plugin)

        assert category is winner
        assert category_repo.get_by_plugin_id.await_count == 2
        attribute_repo.create.assert_not_awaited()
        category_repo.set_attributes.assert_not_awaited()

    @pytest.mark.asyncio()
    async def test_category_conflict_without_winner_fails(self, books_plugin, organization_id):
        category_repo = AsyncMock()
        category_repo.get_by_plugin_id.return_value = None
        category_repo.create.side_effect = EntityAlreadyExistsError("category", "books")

        with pytest.raises(SchemaProvisioningError):
            await SchemaProvisioner(category_repo, AsyncMock()).ensure_category(organization_id, books_plugin)

    @pytest.mark.asyncio()
    async def test_attribute_conflict_rereads_winner(self, category_repo, inventory, books_plugin, organization_id):
        raced_isbn = Attribute(id="attr-isbn", organization_id=organization_id, key="isbn", name="ISBN")
        author = Attribute(id="attr-author", organization_id=organization_id, key="author", name="Author")
        attribute_repo = AsyncMock()
        attribute_repo.get_by_key.side_effect = [None, raced_isbn, None]
        attribute_repo.create.side_effect = [EntityAlreadyExistsError("attribute", "isbn"), author]

        category = await SchemaProvisioner(category_repo, attribute_repo).ensure_category(organization_id, books_plugin)

        assert [a.attribute_id for a in inventory.assignments[category.id]] == ["attr-isbn", "attr-author"]


class TestProvisioningFailures:
    @pytest.mark.asyncio()
    async def test_repository_error_becomes_provisioning_error(self, category_repo, books_plugin, organization_id):
        attribute_repo = AsyncMock()
        attribute_repo.get_by_key.return_value = None
        attribute_repo.create.side_effect = DatabaseOperationError("create", "attribute", "connection reset")

        with pytest.raises(SchemaProvisioningError) as exc_info:
            await SchemaProvisioner(category_repo, attribute_repo).ensure_category(organization_id, books_plugin)

        error = exc_info.value
        assert error.kind is ErrorKind.INTERNAL
        assert error.public_message == "failed to initialize plugin category"
        assert "connection reset" not in error.public_message

    @pytest.mark.asyncio()
    async def test_lookup_failure_becomes_provisioning_error(self, attribute_repo, books_plugin, organization_id):
        category_repo = AsyncMock()
        category_repo.get_by_plugin_id.side_effect = DatabaseOperationError("get", "category", "timeout")

        with pytest.raises(SchemaProvisioningError):
            await SchemaProvisioner(category_repo, attribute_repo).ensure_category(organization_id, books_plugin)
