"""Repository implementation for Asset model."""

import logging
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from sqlalchemy.ext.asyncio import AsyncSession

from shared.database.exceptions import DatabaseOperationError, ValidationError
from shared.database.models import Asset

logger = logging.getLogger(__name__)


class AssetRepository:
    """Repository for Asset model operations."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(
        self,
        organization_id: str,
        name: str,
        *,
        category_id: str | None = None,
        description: str | None = None,
        quantity: int = 1,
        attributes: dict[str, Any] | None = None,
        import_plugin_id: str | None = None,
        import_external_id: str | None = None,
    ) -> Asset:
        """Create a new asset.

        Raises:
            ValidationError: If name or quantity are invalid
            DatabaseOperationError: For database errors
        """
        if not name or not name.strip():
            raise ValidationError("Asset name is required", "name")
        if quantity < 1:
            raise ValidationError("Quantity must be at least 1", "quantity")

        now = datetime.now(UTC)
        asset = Asset(
            id=str(uuid4()),
            organization_id=organization_id,
            category_id=category_id,
            name=name.strip(),
            description=description,
            quantity=quantity,
            attributes=attributes or {},
            import_plugin_id=import_plugin_id,
            import_external_id=import_external_id,
            created_at=now,
            updated_at=now,
        )
        try:
            self.session.add(asset)
            await self.session.flush()
        except Exception as e:
            logger.error("Failed to create asset: %s", e, exc_info=True)
            raise DatabaseOperationError("create", "asset", str(e)) from e

        logger.info("Created asset %s ('%s')", asset.id, asset.name)
        return asset
