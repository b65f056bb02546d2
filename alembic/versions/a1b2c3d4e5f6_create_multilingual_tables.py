"""create_multilingual_tables

Revision ID: a1b2c3d4e5f6
Revises:
Create Date: 2026-10-19

Content items and taxonomy terms tagged with language + translation group,
term assignments and manual order, custom field values, empty group
placeholders, stored site options, and the diagnostics issue log.
"""

from __future__ import annotations

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "a1b2c3d4e5f6"
down_revision: str | None = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "content_items",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("content_type", sa.String(50), nullable=False, server_default="post"),
        sa.Column("title", sa.String, nullable=False, server_default=""),
        sa.Column("slug", sa.String, nullable=False, server_default=""),
        sa.Column("body", sa.Text, nullable=False, server_default=""),
        sa.Column("excerpt", sa.Text, nullable=False, server_default=""),
        sa.Column("status", sa.String(20), nullable=False, server_default="draft"),
        sa.Column("parent_id", sa.Integer, sa.ForeignKey("content_items.id", ondelete="SET NULL"), nullable=True),
        sa.Column("menu_order", sa.Integer, nullable=False, server_default="0"),
        sa.Column("template", sa.String(100), nullable=True),
        sa.Column("featured_media_id", sa.Integer, nullable=True),
        sa.Column("author_id", sa.Integer, nullable=True),
        sa.Column("language", sa.String(10), nullable=True),
        sa.Column("translation_group", sa.String(64), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_content_items_id", "content_items", ["id"])
    op.create_index("ix_content_items_content_type", "content_items", ["content_type"])
    op.create_index("ix_content_items_slug", "content_items", ["slug"])
    op.create_index("ix_content_items_language", "content_items", ["language"])
    op.create_index("ix_content_items_translation_group", "content_items", ["translation_group"])
    op.create_index("idx_content_group_language", "content_items", ["translation_group", "language"])
    op.create_index("idx_content_type_status_slug", "content_items", ["content_type", "status", "slug"])

    op.create_table(
        "content_field_values",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "content_id", sa.Integer, sa.ForeignKey("content_items.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("field_name", sa.String(100), nullable=False),
        sa.Column("value", sa.JSON, nullable=True),
        sa.UniqueConstraint("content_id", "field_name", name="uq_content_field_name"),
    )
    op.create_index("ix_content_field_values_content_id", "content_field_values", ["content_id"])

    op.create_table(
        "taxonomy_terms",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("taxonomy", sa.String(50), nullable=False),
        sa.Column("name", sa.String, nullable=False),
        sa.Column("slug", sa.String, nullable=False),
        sa.Column("parent_id", sa.Integer, sa.ForeignKey("taxonomy_terms.id", ondelete="SET NULL"), nullable=True),
        sa.Column("language", sa.String(10), nullable=True),
        sa.Column("translation_group", sa.String(64), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("taxonomy", "slug", name="uq_term_taxonomy_slug"),
    )
    op.create_index("ix_taxonomy_terms_id", "taxonomy_terms", ["id"])
    op.create_index("ix_taxonomy_terms_taxonomy", "taxonomy_terms", ["taxonomy"])
    op.create_index("ix_taxonomy_terms_language", "taxonomy_terms", ["language"])
    op.create_index("ix_taxonomy_terms_translation_group", "taxonomy_terms", ["translation_group"])
    op.create_index("idx_term_group_language", "taxonomy_terms", ["translation_group", "language"])

    op.create_table(
        "term_sort_orders",
        sa.Column(
            "term_id", sa.Integer, sa.ForeignKey("taxonomy_terms.id", ondelete="CASCADE"), primary_key=True
        ),
        sa.Column("position", sa.Integer, nullable=False, server_default="0"),
    )

    op.create_table(
        "content_term_assignments",
        sa.Column(
            "content_id", sa.Integer, sa.ForeignKey("content_items.id", ondelete="CASCADE"), primary_key=True
        ),
        sa.Column("term_id", sa.Integer, sa.ForeignKey("taxonomy_terms.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("taxonomy", sa.String(50), nullable=False),
    )
    op.create_index("idx_assignment_content_taxonomy", "content_term_assignments", ["content_id", "taxonomy"])

    op.create_table(
        "empty_translation_groups",
        sa.Column("group_id", sa.String(64), primary_key=True),
        sa.Column("entity_kind", sa.String(20), nullable=False, server_default="term"),
        sa.Column("taxonomy", sa.String(50), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        "site_options",
        sa.Column("key", sa.String(100), primary_key=True),
        sa.Column("value", sa.JSON, nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        "diagnostic_log",
        sa.Column("issue_uid", sa.String(32), primary_key=True),
        sa.Column("check_id", sa.String(100), nullable=False),
        sa.Column("issue_id", sa.String(200), nullable=False),
        sa.Column("first_seen", sa.DateTime(timezone=True), nullable=False),
        sa.Column("last_seen", sa.DateTime(timezone=True), nullable=False),
        sa.Column("last_scan", sa.DateTime(timezone=True), nullable=True),
        sa.Column("status", sa.String(10), nullable=False, server_default="active"),
        sa.Column("severity", sa.String(10), nullable=False),
        sa.Column("message", sa.Text, nullable=False),
        sa.Column("can_fix", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("fix_context", sa.JSON, nullable=True),
    )
    op.create_index("ix_diagnostic_log_check_id", "diagnostic_log", ["check_id"])
    op.create_index("idx_diagnostic_status_first_seen", "diagnostic_log", ["status", "first_seen"])


def downgrade() -> None:
    op.drop_table("diagnostic_log")
    op.drop_table("site_options")
    op.drop_table("empty_translation_groups")
    op.drop_table("content_term_assignments")
    op.drop_table("term_sort_orders")
    op.drop_table("taxonomy_terms")
    op.drop_table("content_field_values")
    op.drop_table("content_items")
