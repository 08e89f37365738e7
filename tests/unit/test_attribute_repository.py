"""Unit tests for AttributeRepository."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from shared.database import exceptions as repository_exceptions
from shared.database.exceptions import DatabaseOperationError, EntityAlreadyExistsError, RepositoryError, ValidationError
from shared.database.models import Attribute
from shared.database.repositories.attribute_repository import AttributeRepository
from shared.plugins.types import AttributeDataType


@pytest.fixture()
def mock_session():
    """Create a mock async session."""
    session = AsyncMock()
    session.add = MagicMock()
    session.flush = AsyncMock()
    session.execute = AsyncMock()
    session.begin_nested = MagicMock()
    return session


@pytest.fixture()
def repo(mock_session):
    return AttributeRepository(mock_session)


@pytest.mark.asyncio()
async def test_get_by_key(repo, mock_session):
    attribute = Attribute(id="attr-1", organization_id="org-1", key="isbn", name="ISBN")
    result = MagicMock()
    result.scalar_one_or_none.return_value = attribute
    mock_session.execute.return_value = result

    assert await repo.get_by_key("org-1", "isbn") is attribute


@pytest.mark.asyncio()
async def test_create_success(repo, mock_session):
    attribute = await repo.create(
        organization_id="org-1",
        name="Pages",
        key="pages",
        data_type=AttributeDataType.NUMBER,
        plugin_id="books",
    )

    assert attribute.key == "pages"
    assert attribute.data_type == "number"
    assert attribute.plugin_id == "books"
    mock_session.add.assert_called_once_with(attribute)
    mock_session.flush.assert_awaited_once()


@pytest.mark.asyncio()
async def test_create_accepts_plain_string_type(repo):
    attribute = await repo.create(organization_id="org-1", name="Released", key="released", data_type="date")

    assert attribute.data_type == "date"


@pytest.mark.asyncio()
async def test_create_rejects_unknown_type(repo, mock_session):
    with pytest.raises(ValidationError) as exc_info:
        await repo.create(organization_id="org-1", name="Cover", key="cover", data_type="blob")

    assert exc_info.value.field == "data_type"
    mock_session.add.assert_not_called()


@pytest.mark.asyncio()
async def test_create_requires_key(repo):
    with pytest.raises(ValidationError):
        await repo.create(organization_id="org-1", name="ISBN", key="")


@pytest.mark.asyncio()
async def test_create_duplicate_key(repo, mock_session):
    mock_session.flush.side_effect = IntegrityError(
        "INSERT INTO attributes", {}, Exception('duplicate key value violates unique constraint "uq_attributes_org_key"')
    )

    with pytest.raises(EntityAlreadyExistsError) as exc_info:
        await repo.create(organization_id="org-1", name="ISBN", key="isbn")

    assert exc_info.value.identifier == "isbn"


@pytest.mark.asyncio()
async def test_create_other_database_error(repo, mock_session):
    mock_session.flush.side_effect = OperationalError("INSERT", {}, Exception("connection reset"))

    with pytest.raises(DatabaseOperationError):
        await repo.create(organization_id="org-1", name="ISBN", key="isbn")


def test_repository_exception_set():
    exported = {
        name
        for name, value in vars(repository_exceptions).items()
        if isinstance(value, type) and issubclass(value, RepositoryError) and value is not RepositoryError
    }

    assert exported == {"DatabaseOperationError", "EntityAlreadyExistsError", "ValidationError"}
