"""Add inventory tables used by the external import pipeline.

Changes:
- organizations: tenants, seeded with the default organization
- categories: optional plugin_id marking plugin-provisioned categories
- attributes: organization-wide attribute definitions keyed by ``key``
- category_attributes: attribute assignments with required flag and sort order
- assets: imported items with import_plugin_id/import_external_id provenance
- attachments: stored files (cover images) per asset

Constraints:
- uq_categories_org_plugin: at most one category per (organization, plugin),
  partial on plugin_id IS NOT NULL
- uq_attributes_org_key: attribute keys are unique per organization
- uq_category_attribute: an attribute is assigned to a category once

The two uniqueness constraints above are what the schema provisioner relies
on when two first-time imports for the same plugin race each other.

Revision ID: 202610160100
Revises:
Create Date: 2026-10-16 01:00:00.000000

"""

from __future__ import annotations

from typing import TYPE_CHECKING

import sqlalchemy as sa

from alembic import op

if TYPE_CHECKING:
    from collections.abc import Sequence


revision: str = "202610160100"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

DEFAULT_ORGANIZATION_ID = "00000000-0000-0000-0000-000000000001"


def _timestamps(*, updated: bool = True) -> list[sa.Column]:
    columns = [sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now())]
    if updated:
        columns.append(
            sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now())
        )
    return columns


def upgrade() -> None:
    """Create import pipeline tables and constraints."""

    organizations = op.create_table(
        "organizations",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.bulk_insert(organizations, [{"id": DEFAULT_ORGANIZATION_ID, "name": "Default"}])

    op.create_table(
        "categories",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column(
            "organization_id",
            sa.String(),
            sa.ForeignKey("organizations.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("parent_id", sa.String(), sa.ForeignKey("categories.id", ondelete="SET NULL"), nullable=True),
        sa.Column("plugin_id", sa.String(), nullable=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_categories_organization_id", "categories", ["organization_id"])
    op.create_index(
        "uq_categories_org_plugin",
        "categories",
        ["organization_id", "plugin_id"],
        unique=True,
        postgresql_where=sa.text("plugin_id IS NOT NULL"),
    )

    op.create_table(
        "attributes",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column(
            "organization_id",
            sa.String(),
            sa.ForeignKey("organizations.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("plugin_id", sa.String(), nullable=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("key", sa.String(), nullable=False),
        sa.Column("data_type", sa.String(), nullable=False, server_default="string"),
        *_timestamps(),
        sa.CheckConstraint(
            "data_type IN ('string', 'number', 'boolean', 'text', 'date')",
            name="ck_attributes_data_type",
        ),
        sa.UniqueConstraint("organization_id", "key", name="uq_attributes_org_key"),
    )
    op.create_index("ix_attributes_organization_id", "attributes", ["organization_id"])

    op.create_table(
        "category_attributes",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "category_id",
            sa.String(),
            sa.ForeignKey("categories.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "attribute_id",
            sa.String(),
            sa.ForeignKey("attributes.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("required", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(updated=False),
        sa.UniqueConstraint("category_id", "attribute_id", name="uq_category_attribute"),
    )
    op.create_index("ix_category_attributes_category_id", "category_attributes", ["category_id"])

    op.create_table(
        "assets",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column(
            "organization_id",
            sa.String(),
            sa.ForeignKey("organizations.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("category_id", sa.String(), sa.ForeignKey("categories.id", ondelete="SET NULL"), nullable=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("quantity", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("attributes", sa.JSON(), nullable=False, server_default=sa.text("'{}'")),
        sa.Column("import_plugin_id", sa.String(), nullable=True),
        sa.Column("import_external_id", sa.String(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("quantity >= 1", name="ck_assets_quantity_positive"),
    )
    op.create_index("ix_assets_organization_id", "assets", ["organization_id"])
    op.create_index("ix_assets_category_id", "assets", ["category_id"])
    op.create_index("ix_assets_import_source", "assets", ["import_plugin_id", "import_external_id"])

    op.create_table(
        "attachments",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("asset_id", sa.String(), sa.ForeignKey("assets.id", ondelete="CASCADE"), nullable=False),
        sa.Column("file_key", sa.String(), nullable=False),
        sa.Column("file_name", sa.String(), nullable=False),
        sa.Column("file_size", sa.BigInteger(), nullable=False),
        sa.Column("content_type", sa.String(), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        *_timestamps(updated=False),
    )
    op.create_index("ix_attachments_asset_id", "attachments", ["asset_id"])


def downgrade() -> None:
    """Drop import pipeline tables."""

    op.drop_table("attachments")
    op.drop_table("assets")
    op.drop_table("category_attributes")
    op.drop_table("attributes")
    op.drop_table("categories")
    op.drop_table("organizations")
