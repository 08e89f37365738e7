"""Repository implementation for Attachment model."""

import logging
from datetime import UTC, datetime
from uuid import uuid4

from sqlalchemy.ext.asyncio import AsyncSession

from shared.database.exceptions import DatabaseOperationError
from shared.database.models import Attachment

logger = logging.getLogger(__name__)


class AttachmentRepository:
    """Repository for Attachment model operations."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(
        self,
        asset_id: str,
        file_key: str,
        file_name: str,
        file_size: int,
        content_type: str | None = None,
        description: str | None = None,
    ) -> Attachment:
        """Record a stored file against an asset."""
        attachment = Attachment(
            id=str(uuid4()),
            asset_id=asset_id,
            file_key=file_key,
            file_name=file_name,
            file_size=file_size,
            content_type=content_type,
            description=description,
            created_at=datetime.now(UTC),
        )
        try:
            async with self.session.begin_nested():
                self.session.add(attachment)
                await self.session.flush()
        except Exception as e:
            logger.error("Failed to create attachment for asset %s: %s", asset_id, e, exc_info=True)
            raise DatabaseOperationError("create", "attachment", str(e)) from e

        return attachment
