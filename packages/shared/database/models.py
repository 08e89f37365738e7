"""
SQLAlchemy declarative models for the Attic database.

This module defines the database schema using SQLAlchemy's declarative mapping.
These models are used by Alembic for migrations and by the repositories for ORM
operations.

Note on Timestamps:
All DateTime fields use timezone=True so stored values are timezone-aware.

Import provenance:
Categories and attributes created by an import plugin are stamped with the
plugin's id. The partial unique index on ``categories(organization_id, plugin_id)``
and the unique constraint on ``attributes(organization_id, key)`` are what keep
concurrent first-time imports from provisioning the same schema twice; the
repositories surface a violation as ``EntityAlreadyExistsError``.
"""

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import DeclarativeBase, relationship

from shared.plugins.types import AttributeDataType


# Create the declarative base
class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""


class Organization(Base):
    """Tenant that owns categories, attributes and assets."""

    __tablename__ = "organizations"

    id = Column(String, primary_key=True)  # UUID as string
    name = Column(String, nullable=False)
    description = Column(Text)
    created_at = Column(DateTime(timezone=True), nullable=False, default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, default=func.now(), onupdate=func.now())


class Category(Base):
    """Asset category, optionally provisioned by an import plugin."""

    __tablename__ = "categories"

    id = Column(String, primary_key=True)  # UUID as string
    organization_id = Column(String, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    parent_id = Column(String, ForeignKey("categories.id", ondelete="SET NULL"))
    plugin_id = Column(String)
    name = Column(String, nullable=False)
    description = Column(Text)
    created_at = Column(DateTime(timezone=True), nullable=False, default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, default=func.now(), onupdate=func.now())

    # Relationships
    attribute_assignments = relationship(
        "CategoryAttribute",
        back_populates="category",
        cascade="all, delete-orphan",
        order_by="CategoryAttribute.sort_order",
    )
    assets = relationship("Asset", back_populates="category")

    __table_args__ = (
        Index(
            "uq_categories_org_plugin",
            "organization_id",
            "plugin_id",
            unique=True,
            postgresql_where="plugin_id IS NOT NULL",
        ),
    )


class Attribute(Base):
    """Organization-wide attribute definition, unique per key."""

    __tablename__ = "attributes"

    id = Column(String, primary_key=True)  # UUID as string
    organization_id = Column(String, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    plugin_id = Column(String)
    name = Column(String, nullable=False)
    key = Column(String, nullable=False)
    data_type = Column(String, nullable=False, default=AttributeDataType.STRING.value)
    created_at = Column(DateTime(timezone=True), nullable=False, default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, default=func.now(), onupdate=func.now())

    __table_args__ = (UniqueConstraint("organization_id", "key", name="uq_attributes_org_key"),)


class CategoryAttribute(Base):
    """Assignment of an attribute to a category."""

    __tablename__ = "category_attributes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    category_id = Column(String, ForeignKey("categories.id", ondelete="CASCADE"), nullable=False, index=True)
    attribute_id = Column(String, ForeignKey("attributes.id", ondelete="CASCADE"), nullable=False)
    required = Column(Boolean, nullable=False, default=False)
    sort_order = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, default=func.now())

    # Relationships
    category = relationship("Category", back_populates="attribute_assignments")
    attribute = relationship("Attribute")

    __table_args__ = (UniqueConstraint("category_id", "attribute_id", name="uq_category_attribute"),)


class Asset(Base):
    """Physical item tracked by an organization."""

    __tablename__ = "assets"

    id = Column(String, primary_key=True)  # UUID as string
    organization_id = Column(String, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    category_id = Column(String, ForeignKey("categories.id", ondelete="SET NULL"), index=True)
    name = Column(String, nullable=False)
    description = Column(Text)
    quantity = Column(Integer, nullable=False, default=1)
    attributes = Column(JSON, nullable=False, default=dict)
    import_plugin_id = Column(String)
    import_external_id = Column(String)
    created_at = Column(DateTime(timezone=True), nullable=False, default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, default=func.now(), onupdate=func.now())

    # Relationships
    category = relationship("Category", back_populates="assets")
    attachments = relationship("Attachment", back_populates="asset", cascade="all, delete-orphan")

    __table_args__ = (Index("ix_assets_import_source", "import_plugin_id", "import_external_id"),)


class Attachment(Base):
    """File stored for an asset, such as an imported cover image."""

    __tablename__ = "attachments"

    id = Column(String, primary_key=True)  # UUID as string
    asset_id = Column(String, ForeignKey("assets.id", ondelete="CASCADE"), nullable=False, index=True)
    file_key = Column(String, nullable=False)
    file_name = Column(String, nullable=False)
    file_size = Column(BigInteger, nullable=False)
    content_type = Column(String)
    description = Column(Text)
    created_at = Column(DateTime(timezone=True), nullable=False, default=func.now())

    # Relationships
    asset = relationship("Asset", back_populates="attachments")
