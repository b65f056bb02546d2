"""
Translation Group Service

Empty-group placeholders: group ids with no members yet, kept so admin screens
can offer "create into this group". Linking any first member removes the
placeholder.
"""

from __future__ import annotations

import logging

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession  # noqa: TC002

from cms_multilingual.models.translation_group import EmptyTranslationGroup, EntityKind, new_group_id

logger = logging.getLogger(__name__)


class TranslationGroupService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_empty_group(self, kind: EntityKind = EntityKind.TERM, taxonomy: str | None = None) -> str:
        group_id = new_group_id()
        self.db.add(EmptyTranslationGroup(group_id=group_id, entity_kind=EntityKind(kind).value, taxonomy=taxonomy))
        await self.db.commit()
        logger.info("Empty translation group created: %s (%s)", group_id, EntityKind(kind).value)
        return group_id

    async def list_empty_groups(
        self,
        kind: EntityKind = EntityKind.TERM,
        taxonomy: str | None = None,
    ) -> list[EmptyTranslationGroup]:
        query = select(EmptyTranslationGroup).where(EmptyTranslationGroup.entity_kind == EntityKind(kind).value)
        if taxonomy is not None:
            query = query.where(EmptyTranslationGroup.taxonomy == taxonomy)
        result = await self.db.execute(query.order_by(EmptyTranslationGroup.created_at))
        return list(result.scalars().all())

    async def remove_empty_group(self, group_id: str | None, commit: bool = True) -> bool:
        """Drop the placeholder for `group_id`. Returns True if one existed."""
        if not group_id:
            return False
        result = await self.db.execute(delete(EmptyTranslationGroup).where(EmptyTranslationGroup.group_id == group_id))
        removed = (result.rowcount or 0) > 0
        if commit:
            await self.db.commit()
        if removed:
            logger.info("Empty translation group removed: %s", group_id)
        return removed
