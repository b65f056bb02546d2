"""
Translation group vocabulary

A translation group is not a stored row: it is every entity of one kind whose
``translation_group`` column holds the same id. At most one member per language
(per kind) may exist in a group.

The only stored artefact is the empty-group placeholder, which lets admin
screens offer "create into this group" before the group has a first member.
"""

from __future__ import annotations

import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, String

from cms_multilingual.database import Base


class EntityKind(str, enum.Enum):
    CONTENT = "content"
    TERM = "term"


def new_group_id() -> str:
    """Mint a random, globally unique translation group id."""
    return str(uuid.uuid4())


class EmptyTranslationGroup(Base):
    __tablename__ = "empty_translation_groups"

    group_id = Column(String(64), primary_key=True)
    entity_kind = Column(String(20), nullable=False, default=EntityKind.TERM.value)
    taxonomy = Column(String(50), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
