"""initial schema

Revision ID: 20260105000001
Revises:
Create Date: 2026-01-05 00:00:00.000000
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "20260105000001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("email", sa.String(), nullable=False, unique=True),
        sa.Column("full_name", sa.String(), nullable=False, server_default=""),
        sa.Column("role", sa.String(), nullable=False, server_default="nfo"),
        sa.Column("hashed_password", sa.String(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "main_inventory",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("site_id", sa.String(), nullable=False),
        sa.Column("site_id_canonical", sa.String(), nullable=False),
        sa.Column("sheet_source", sa.String(), nullable=True),
        sa.Column("category", sa.String(), nullable=True),
        sa.Column("equipment_type", sa.String(), nullable=True),
        sa.Column("product_name", sa.String(), nullable=True),
        sa.Column("product_number", sa.String(), nullable=True),
        sa.Column("serial_number", sa.String(), nullable=True),
        sa.Column("tag_id", sa.String(), nullable=True),
        sa.Column("tag_category", sa.String(), nullable=True),
        sa.Column("photo_category", sa.String(), nullable=True),
        sa.Column("serial_pic_url", sa.String(), nullable=True),
        sa.Column("tag_pic_url", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.Column("created_by_id", sa.String(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("updated_by_id", sa.String(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
    )
    op.create_index("ix_main_inventory_site_id", "main_inventory", ["site_id"])
    op.create_index("ix_main_inventory_site_id_canonical", "main_inventory", ["site_id_canonical"])

    op.create_table(
        "pmr_actual",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("site_id_canonical", sa.String(), nullable=True),
        sa.Column("site_id_bare", sa.String(), nullable=True),
        sa.Column("city", sa.String(), nullable=True),
        sa.Column("plan_quarter", sa.String(), nullable=True),
        sa.Column("domain", sa.String(), nullable=True),
        sa.Column("fo_partner", sa.String(), nullable=True),
        sa.Column("site_type", sa.String(), nullable=True),
        sa.Column("planned_date_text", sa.String(), nullable=True),
        sa.Column("actual_date_text", sa.String(), nullable=True),
        sa.Column("status", sa.String(), nullable=True),
        sa.Column("fme_name", sa.String(), nullable=True),
    )
    op.create_index("ix_pmr_actual_site_id_canonical", "pmr_actual", ["site_id_canonical"])
    op.create_index("ix_pmr_actual_site_id_bare", "pmr_actual", ["site_id_bare"])
    op.create_index("ix_pmr_actual_city", "pmr_actual", ["city"])
    op.create_index("ix_pmr_actual_fme_name", "pmr_actual", ["fme_name"])

    op.create_table(
        "catalog_items",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("category", sa.String(), nullable=False),
        sa.Column("equipment_type", sa.String(), nullable=False),
        sa.Column("product_name", sa.String(), nullable=True),
        sa.Column("product_number", sa.String(), nullable=True),
    )
    op.create_index("ix_catalog_items_category", "catalog_items", ["category"])

    op.create_table(
        "classification_options",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("field", sa.String(), nullable=False),
        sa.Column("value", sa.String(), nullable=False),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
    )
    op.create_index("ix_classification_options_field", "classification_options", ["field"])

    op.create_table(
        "suggestions",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("category", sa.String(), nullable=False),
        sa.Column("image_url", sa.String(), nullable=True),
        sa.Column("remarks", sa.Text(), nullable=True),
        sa.Column("status", sa.String(), nullable=False, server_default="pending"),
        sa.Column("created_by_id", sa.String(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("created_by_name", sa.String(), nullable=True),
        sa.Column("reviewed_by_id", sa.String(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("reviewed_by_name", sa.String(), nullable=True),
        sa.Column("review_notes", sa.Text(), nullable=True),
        sa.Column("reviewed_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
    )
    op.create_index("ix_suggestions_status", "suggestions", ["status"])


def downgrade() -> None:
    op.drop_index("ix_suggestions_status", table_name="suggestions")
    op.drop_table("suggestions")
    op.drop_index("ix_classification_options_field", table_name="classification_options")
    op.drop_table("classification_options")
    op.drop_index("ix_catalog_items_category", table_name="catalog_items")
    op.drop_table("catalog_items")
    for index in ("fme_name", "city", "site_id_bare", "site_id_canonical"):
        op.drop_index(f"ix_pmr_actual_{index}", table_name="pmr_actual")
    op.drop_table("pmr_actual")
    op.drop_index("ix_main_inventory_site_id_canonical", table_name="main_inventory")
    op.drop_index("ix_main_inventory_site_id", table_name="main_inventory")
    op.drop_table("main_inventory")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
