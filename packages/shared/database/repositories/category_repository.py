"""Repository implementation for Category and CategoryAttribute models."""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import uuid4

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from shared.database.exceptions import DatabaseOperationError, EntityAlreadyExistsError, ValidationError
from shared.database.models import Category, CategoryAttribute

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AttributeAssignment:
    """One attribute bound to a category, with its display position."""

    attribute_id: str
    required: bool = False
    sort_order: int = 0


class CategoryRepository:
    """Repository for Category model operations."""

    def __init__(self, session: AsyncSession):
        """Initialize with database session.

        Args:
            session: AsyncSession instance for database operations
        """
        self.session = session

    async def get_by_plugin_id(self, organization_id: str, plugin_id: str) -> Category | None:
        """Get the category provisioned by a plugin for an organization."""
        try:
            result = await self.session.execute(
                select(Category).where(
                    Category.organization_id == organization_id,
                    Category.plugin_id == plugin_id,
                )
            )
            return result.scalar_one_or_none()
        except Exception as e:
            logger.error("Failed to get category for plugin '%s': %s", plugin_id, e, exc_info=True)
            raise DatabaseOperationError("get", "category", str(e)) from e

    async def list_plugin_category_ids(self, organization_id: str) -> dict[str, str]:
        """Map plugin id to the id of the category it provisioned."""
        try:
            result = await self.session.execute(
                select(Category.plugin_id, Category.id).where(
                    Category.organization_id == organization_id,
                    Category.plugin_id.is_not(None),
                )
            )
            return {plugin_id: category_id for plugin_id, category_id in result.all()}
        except Exception as e:
            logger.error("Failed to list plugin categories: %s", e, exc_info=True)
            raise DatabaseOperationError("list", "category", str(e)) from e

    async def create(
        self,
        organization_id: str,
        name: str,
        description: str | None = None,
        plugin_id: str | None = None,
        parent_id: str | None = None,
    ) -> Category:
        """Create a new category.

        The insert runs inside a savepoint so a uniqueness violation leaves the
        surrounding transaction usable for a follow-up read.

        Raises:
            ValidationError: If the name is empty
            EntityAlreadyExistsError: If the plugin already has a category in this organization
            DatabaseOperationError: For other database errors
        """
        if not name or not name.strip():
            raise ValidationError("Category name is required", "name")

        now = datetime.now(UTC)
        category = Category(
            id=str(uuid4()),
            organization_id=organization_id,
            parent_id=parent_id,
            plugin_id=plugin_id,
            name=name.strip(),
            description=description,
            created_at=now,
            updated_at=now,
        )
        try:
            async with self.session.begin_nested():
                self.session.add(category)
                await self.session.flush()
        except IntegrityError as e:
            logger.warning("Integrity error creating category '%s': %s", name, e)
            raise EntityAlreadyExistsError("category", plugin_id or name) from e
        except Exception as e:
            logger.error("Failed to create category: %s", e, exc_info=True)
            raise DatabaseOperationError("create", "category", str(e)) from e

        logger.info("Created category %s ('%s') for organization %s", category.id, category.name, organization_id)
        return category

    async def set_attributes(self, category_id: str, assignments: list[AttributeAssignment]) -> None:
        """Replace the category's attribute assignments with ``assignments``.

        The delete and the inserts share one savepoint: either the full new set
        is in place afterwards or the previous set is left untouched.
        """
        try:
            async with self.session.begin_nested():
                await self.session.execute(delete(CategoryAttribute).where(CategoryAttribute.category_id == category_id))
                now = datetime.now(UTC)
                self.session.add_all(
                    [
                        CategoryAttribute(
                            category_id=category_id,
                            attribute_id=assignment.attribute_id,
                            required=assignment.required,
                            sort_order=assignment.sort_order,
                            created_at=now,
                        )
                        for assignment in assignments
                    ]
                )
                await self.session.flush()
        except Exception as e:
            logger.error("Failed to set attributes for category %s: %s", category_id, e, exc_info=True)
            raise DatabaseOperationError("set attributes for", "category", str(e)) from e
