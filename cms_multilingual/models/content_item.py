"""
ContentItem model

One row per language variant of a logical document. Siblings share a
``translation_group`` id; ``language`` tags the variant. Both are stamped on
first save when absent and never cleared by the engine.
"""

from __future__ import annotations

import enum
from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Index, Integer, String, Text, UniqueConstraint

from cms_multilingual.database import Base


class ContentStatus(str, enum.Enum):
    """Lifecycle status for a content item."""

    AUTO_DRAFT = "auto-draft"
    DRAFT = "draft"
    PENDING = "pending"
    PUBLISHED = "published"
    TRASH = "trash"


# Rows in these states are placeholders; resolvers and checks ignore them.
TRANSIENT_STATUSES: frozenset[str] = frozenset({ContentStatus.AUTO_DRAFT.value, ContentStatus.TRASH.value})


class ContentItem(Base):
    __tablename__ = "content_items"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    content_type = Column(String(50), nullable=False, index=True, default="post")
    title = Column(String, nullable=False, default="")
    slug = Column(String, nullable=False, default="", index=True)
    body = Column(Text, nullable=False, default="")
    excerpt = Column(Text, nullable=False, default="")
    status = Column(String(20), nullable=False, default=ContentStatus.DRAFT.value)
    parent_id = Column(Integer, ForeignKey("content_items.id", ondelete="SET NULL"), nullable=True)
    menu_order = Column(Integer, nullable=False, default=0)
    template = Column(String(100), nullable=True)
    featured_media_id = Column(Integer, nullable=True)
    author_id = Column(Integer, nullable=True)

    # ── Multilingual tags ─────────────────────────────────────────────────────
    language = Column(String(10), nullable=True, index=True)
    translation_group = Column(String(64), nullable=True, index=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        Index("idx_content_group_language", "translation_group", "language"),
        Index("idx_content_type_status_slug", "content_type", "status", "slug"),
    )

    def __repr__(self) -> str:
        return f"<ContentItem(id={self.id}, type={self.content_type}, lang={self.language}, group={self.translation_group})>"


class ContentFieldValue(Base):
    """Stored value of a schema-driven custom field.

    Field definitions live in the field registry; only values are stored here.
    """

    __tablename__ = "content_field_values"

    id = Column(Integer, primary_key=True, autoincrement=True)
    content_id = Column(Integer, ForeignKey("content_items.id", ondelete="CASCADE"), nullable=False, index=True)
    field_name = Column(String(100), nullable=False)
    value = Column(JSON, nullable=True)

    __table_args__ = (UniqueConstraint("content_id", "field_name", name="uq_content_field_name"),)
