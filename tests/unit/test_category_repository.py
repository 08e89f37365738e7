"""Unit tests for CategoryRepository."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from shared.database.exceptions import DatabaseOperationError, EntityAlreadyExistsError, ValidationError
from shared.database.models import Category, CategoryAttribute
from shared.database.repositories.category_repository import AttributeAssignment, CategoryRepository


@pytest.fixture()
def mock_session():
    """Create a mock async session."""
    session = AsyncMock()
    session.add = MagicMock()
    session.add_all = MagicMock()
    session.flush = AsyncMock()
    session.execute = AsyncMock()
    session.begin_nested = MagicMock()
    return session


@pytest.fixture()
def repo(mock_session):
    """Create repository with mock session."""
    return CategoryRepository(mock_session)


# -----------------------------------------------------------------------------
# Test lookups
# -----------------------------------------------------------------------------


@pytest.mark.asyncio()
async def test_get_by_plugin_id_returns_match(repo, mock_session):
    category = Category(id="cat-1", organization_id="org-1", plugin_id="books", name="Books")
    result = MagicMock()
    result.scalar_one_or_none.return_value = category
    mock_session.execute.return_value = result

    assert await repo.get_by_plugin_id("org-1", "books") is category
    mock_session.execute.assert_awaited_once()


@pytest.mark.asyncio()
async def test_get_by_plugin_id_returns_none(repo, mock_session):
    result = MagicMock()
    result.scalar_one_or_none.return_value = None
    mock_session.execute.return_value = result

    assert await repo.get_by_plugin_id("org-1", "books") is None


@pytest.mark.asyncio()
async def test_get_by_plugin_id_wraps_database_errors(repo, mock_session):
    mock_session.execute.side_effect = OperationalError("SELECT", {}, Exception("server closed the connection"))

    with pytest.raises(DatabaseOperationError) as exc_info:
        await repo.get_by_plugin_id("org-1", "books")

    assert exc_info.value.operation == "get"
    assert exc_info.value.entity_type == "category"


@pytest.mark.asyncio()
async def test_list_plugin_category_ids(repo, mock_session):
    result = MagicMock()
    result.all.return_value = [("books", "cat-1"), ("movies", "cat-2")]
    mock_session.execute.return_value = result

    assert await repo.list_plugin_category_ids("org-1") == {"books": "cat-1", "movies": "cat-2"}


# -----------------------------------------------------------------------------
# Test create
# -----------------------------------------------------------------------------


@pytest.mark.asyncio()
async def test_create_success(repo, mock_session):
    category = await repo.create(
        organization_id="org-1",
        name="  Books ",
        description="Imported books",
        plugin_id="books",
    )

    assert category.id
    assert category.name == "Books"
    assert category.plugin_id == "books"
    assert category.organization_id == "org-1"
    assert category.created_at is not None
    mock_session.begin_nested.assert_called_once()
    mock_session.add.assert_called_once_with(category)
    mock_session.flush.assert_awaited_once()


@pytest.mark.asyncio()
@pytest.mark.parametrize("name", ["", "   "])
async def test_create_requires_name(repo, mock_session, name):
    with pytest.raises(ValidationError):
        await repo.create(organization_id="org-1", name=name, plugin_id="books")

    mock_session.add.assert_not_called()


@pytest.mark.asyncio()
async def test_create_duplicate_plugin_category(repo, mock_session):
    mock_session.flush.side_effect = IntegrityError(
        "INSERT INTO categories", {}, Exception('duplicate key value violates unique constraint "uq_categories_org_plugin"')
    )

    with pytest.raises(EntityAlreadyExistsError) as exc_info:
        await repo.create(organization_id="org-1", name="Books", plugin_id="books")

    assert exc_info.value.entity_type == "category"
    assert exc_info.value.identifier == "books"


@pytest.mark.asyncio()
async def test_create_other_database_error(repo, mock_session):
    mock_session.flush.side_effect = OperationalError("INSERT", {}, Exception("connection reset"))

    with pytest.raises(DatabaseOperationError):
        await repo.create(organization_id="org-1", name="Books", plugin_id="books")


# -----------------------------------------------------------------------------
# Test set_attributes
# -----------------------------------------------------------------------------


@pytest.mark.asyncio()
async def test_set_attributes_replaces_assignments(repo, mock_session):
    await repo.set_attributes(
        "cat-1",
        [
            AttributeAssignment(attribute_id="attr-isbn", required=True, sort_order=0),
            AttributeAssignment(attribute_id="attr-author", sort_order=1),
        ],
    )

    mock_session.execute.assert_awaited_once()
    added = mock_session.add_all.call_args.args[0]
    assert all(isinstance(row, CategoryAttribute) for row in added)
    assert [(row.attribute_id, row.required, row.sort_order) for row in added] == [
        ("attr-isbn", True, 0),
        ("attr-author", False, 1),
    ]
    assert {row.category_id for row in added} == {"cat-1"}
    mock_session.flush.assert_awaited_once()


@pytest.mark.asyncio()
async def test_set_attributes_failure(repo, mock_session):
    mock_session.flush.side_effect = IntegrityError("INSERT", {}, Exception("fk violation"))

    with pytest.raises(DatabaseOperationError):
        await repo.set_attributes("cat-1", [AttributeAssignment(attribute_id="missing")])
