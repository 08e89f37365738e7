"""Repository implementation for Attribute model."""

import logging
from datetime import UTC, datetime
from uuid import uuid4

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from shared.database.exceptions import DatabaseOperationError, EntityAlreadyExistsError, ValidationError
from shared.database.models import Attribute
from shared.plugins.types import AttributeDataType

logger = logging.getLogger(__name__)


class AttributeRepository:
    """Repository for Attribute model operations."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_key(self, organization_id: str, key: str) -> Attribute | None:
        """Get an attribute by its organization-unique key."""
        try:
            result = await self.session.execute(
                select(Attribute).where(Attribute.organization_id == organization_id, Attribute.key == key)
            )
            return result.scalar_one_or_none()
        except Exception as e:
            logger.error("Failed to get attribute '%s': %s", key, e, exc_info=True)
            raise DatabaseOperationError("get", "attribute", str(e)) from e

    async def create(
        self,
        organization_id: str,
        name: str,
        key: str,
        data_type: AttributeDataType | str = AttributeDataType.STRING,
        plugin_id: str | None = None,
    ) -> Attribute:
        """Create a new attribute.

        Raises:
            ValidationError: If the key or data type is invalid
            EntityAlreadyExistsError: If the key is already taken in this organization
            DatabaseOperationError: For other database errors
        """
        if not key:
            raise ValidationError("Attribute key is required", "key")
        try:
            data_type_value = AttributeDataType(data_type).value
        except ValueError as e:
            raise ValidationError(f"Unsupported data type '{data_type}'", "data_type") from e

        now = datetime.now(UTC)
        attribute = Attribute(
            id=str(uuid4()),
            organization_id=organization_id,
            plugin_id=plugin_id,
            name=name,
            key=key,
            data_type=data_type_value,
            created_at=now,
            updated_at=now,
        )
        try:
            async with self.session.begin_nested():
                self.session.add(attribute)
                await self.session.flush()
        except IntegrityError as e:
            logger.warning("Integrity error creating attribute '%s': %s", key, e)
            raise EntityAlreadyExistsError("attribute", key) from e
        except Exception as e:
            logger.error("Failed to create attribute '%s': %s", key, e, exc_info=True)
            raise DatabaseOperationError("create", "attribute", str(e)) from e

        logger.debug("Created attribute %s (%s)", attribute.id, key)
        return attribute
