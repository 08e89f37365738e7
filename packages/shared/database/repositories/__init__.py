"""Repository implementations for the import pipeline's persistent models."""

from .asset_repository import AssetRepository
from .attachment_repository import AttachmentRepository
from .attribute_repository import AttributeRepository
from .category_repository import AttributeAssignment, CategoryRepository

__all__ = [
    "AssetRepository",
    "AttachmentRepository",
    "AttributeAssignment",
    "AttributeRepository",
    "CategoryRepository",
]
