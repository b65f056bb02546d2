"""
Translation Resolver

Looks up translation group members for one entity kind.

    get_translations(group_id)          - {lang: id}, memoized in the injected cache
    get_translation_in_lang(group, lang) - one member id or None
    member_in_lang(group, lang)         - any row holding the language, whatever its status
    get_batch_translations(ids)          - {id: {lang: sibling_id}} in exactly two statements

The batch lookup maps input ids to their groups with one statement, fetches
all members of those groups with a second, and joins in memory. Both
statements always execute, so the statement count does not depend on input
size or cache state.
"""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession  # noqa: TC002

from cms_multilingual.models.content_item import TRANSIENT_STATUSES, ContentItem
from cms_multilingual.models.taxonomy_term import TaxonomyTerm
from cms_multilingual.models.translation_group import EntityKind
from cms_multilingual.utils.cache import GroupMembersCache

logger = logging.getLogger(__name__)


class TranslationResolver:
    def __init__(self, db: AsyncSession, kind: EntityKind, cache: GroupMembersCache | None = None):
        self.db = db
        self.kind = EntityKind(kind)
        self.cache = cache if cache is not None else GroupMembersCache()
        self.model = ContentItem if self.kind is EntityKind.CONTENT else TaxonomyTerm

    def _visible(self, query):
        if self.kind is EntityKind.CONTENT:
            query = query.where(ContentItem.status.notin_(TRANSIENT_STATUSES))
        return query

    async def get_translations(self, group_id: str) -> dict[str, int]:
        if not group_id:
            return {}
        cached = self.cache.get(self.kind, group_id)
        if cached is not None:
            return cached

        model = self.model
        query = self._visible(
            select(model.id, model.language)
            .where(model.translation_group == group_id, model.language.isnot(None))
            .order_by(model.id)
        )
        result = await self.db.execute(query)
        members: dict[str, int] = {}
        for entity_id, lang in result.all():
            members.setdefault(lang, entity_id)

        self.cache.put(self.kind, group_id, members)
        return dict(members)

    async def get_translation_in_lang(self, group_id: str, lang: str) -> int | None:
        return (await self.get_translations(group_id)).get(lang)

    async def member_in_lang(self, group_id: str, lang: str) -> int | None:
        """Lowest id in the group holding `lang`, trashed and auto-draft rows included.

        Group uniqueness is checked against this, not the cached visible members.
        """
        if not group_id:
            return None
        model = self.model
        result = await self.db.execute(
            select(model.id)
            .where(model.translation_group == group_id, model.language == lang)
            .order_by(model.id)
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def get_batch_translations(self, ids: list[int]) -> dict[int, dict[str, int]]:
        model = self.model
        requested = list(dict.fromkeys(int(i) for i in ids))
        mapping: dict[int, dict[str, int]] = {entity_id: {} for entity_id in requested}

        group_rows = await self.db.execute(
            select(model.id, model.translation_group).where(
                model.id.in_(requested),
                model.translation_group.isnot(None),
            )
        )
        groups = {entity_id: gid for entity_id, gid in group_rows.all()}
        group_ids = sorted(set(groups.values()))

        member_rows = await self.db.execute(
            self._visible(
                select(model.translation_group, model.id, model.language)
                .where(model.translation_group.in_(group_ids), model.language.isnot(None))
                .order_by(model.id)
            )
        )
        by_group: dict[str, dict[str, int]] = {gid: {} for gid in group_ids}
        for gid, entity_id, lang in member_rows.all():
            by_group[gid].setdefault(lang, entity_id)

        for gid, members in by_group.items():
            self.cache.put(self.kind, gid, members)
        for entity_id, gid in groups.items():
            mapping[entity_id] = dict(by_group.get(gid, {}))

        logger.debug("Batch translations resolved: %d ids across %d groups", len(requested), len(group_ids))
        return mapping
