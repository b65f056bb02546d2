"""
Content Service

Store-facing operations on content items: insert/save (which fire the
``content.inserted`` / ``content.saved`` hooks), term assignment, custom field
values, and slug helpers.

Every write commits before hooks fire, so subscribers always observe the saved
row. Subscribers load rows themselves; payloads carry ids only.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import delete, insert, select
from sqlalchemy.ext.asyncio import AsyncSession  # noqa: TC002

from cms_multilingual.exceptions import ContentNotFoundError, ValidationError
from cms_multilingual.models.content_item import ContentFieldValue, ContentItem, ContentStatus
from cms_multilingual.models.term_assignment import content_term_assignments
from cms_multilingual.plugins.hooks import HOOK_CONTENT_INSERTED, HOOK_CONTENT_SAVED
from cms_multilingual.utils.slugify import first_free_slug, slugify

logger = logging.getLogger(__name__)

MUTABLE_FIELDS = frozenset(
    {
        "title",
        "slug",
        "body",
        "excerpt",
        "status",
        "parent_id",
        "menu_order",
        "template",
        "featured_media_id",
        "author_id",
        "language",
        "translation_group",
    }
)

# Guards page_uri against parent cycles in corrupted data.
MAX_PAGE_DEPTH = 32


class ContentService:
    def __init__(self, db: AsyncSession, hooks=None):
        self.db = db
        self.hooks = hooks

    # ── Reads ────────────────────────────────────────────────────────────────

    async def get_content(self, content_id: int) -> ContentItem | None:
        result = await self.db.execute(select(ContentItem).where(ContentItem.id == content_id))
        return result.scalars().first()

    async def require_content(self, content_id: int) -> ContentItem:
        item = await self.get_content(content_id)
        if item is None:
            raise ContentNotFoundError(content_id)
        return item

    async def get_term_ids(self, content_id: int, taxonomy: str | None = None) -> list[int]:
        query = select(content_term_assignments.c.term_id).where(content_term_assignments.c.content_id == content_id)
        if taxonomy is not None:
            query = query.where(content_term_assignments.c.taxonomy == taxonomy)
        result = await self.db.execute(query.order_by(content_term_assignments.c.term_id))
        return list(result.scalars().all())

    async def get_terms_by_taxonomy(self, content_id: int) -> dict[str, list[int]]:
        result = await self.db.execute(
            select(content_term_assignments.c.taxonomy, content_term_assignments.c.term_id)
            .where(content_term_assignments.c.content_id == content_id)
            .order_by(content_term_assignments.c.term_id)
        )
        terms: dict[str, list[int]] = {}
        for taxonomy, term_id in result.all():
            terms.setdefault(taxonomy, []).append(term_id)
        return terms

    async def get_field_values(self, content_id: int) -> dict[str, Any]:
        result = await self.db.execute(select(ContentFieldValue).where(ContentFieldValue.content_id == content_id))
        return {row.field_name: row.value for row in result.scalars().all()}

    # ── Writes ───────────────────────────────────────────────────────────────

    async def insert_content(
        self,
        *,
        content_type: str = "post",
        title: str = "",
        status: str = ContentStatus.DRAFT.value,
        acting_language: str | None = None,
        fire_hooks: bool = True,
        **fields: Any,
    ) -> ContentItem:
        """Insert a content item, then fire content.inserted followed by content.saved."""
        unknown = set(fields) - MUTABLE_FIELDS
        if unknown:
            raise ValidationError(f"Unknown content fields: {', '.join(sorted(unknown))}")

        item = ContentItem(content_type=content_type, title=title, status=status, **fields)
        self.db.add(item)
        await self.db.commit()
        await self.db.refresh(item)
        logger.info("Content inserted: id=%d type=%s status=%s", item.id, content_type, status)

        if fire_hooks:
            await self._fire(HOOK_CONTENT_INSERTED, item.id, acting_language, update=False)
            await self._fire(HOOK_CONTENT_SAVED, item.id, acting_language, update=False)
            await self.db.refresh(item)
        return item

    async def save_content(
        self,
        content_id: int,
        acting_language: str | None = None,
        fire_hooks: bool = True,
        **changes: Any,
    ) -> ContentItem:
        """Apply `changes`, commit, and fire content.saved."""
        unknown = set(changes) - MUTABLE_FIELDS
        if unknown:
            raise ValidationError(f"Unknown content fields: {', '.join(sorted(unknown))}")

        item = await self.require_content(content_id)
        for key, value in changes.items():
            setattr(item, key, value)
        await self.db.commit()

        if fire_hooks:
            await self._fire(HOOK_CONTENT_SAVED, content_id, acting_language, update=True)
            await self.db.refresh(item)
        return item

    async def _fire(self, hook_name: str, content_id: int, acting_language: str | None, update: bool) -> None:
        if self.hooks is None:
            return
        await self.hooks.do_action(
            hook_name,
            {"content_id": content_id, "acting_language": acting_language, "update": update},
        )

    async def replace_terms(self, content_id: int, taxonomy: str, term_ids: list[int]) -> None:
        """Replace the item's assignments for one taxonomy. Flushes; the caller commits."""
        await self.db.execute(
            delete(content_term_assignments).where(
                content_term_assignments.c.content_id == content_id,
                content_term_assignments.c.taxonomy == taxonomy,
            )
        )
        unique_ids = list(dict.fromkeys(term_ids))
        if unique_ids:
            await self.db.execute(
                insert(content_term_assignments),
                [{"content_id": content_id, "term_id": tid, "taxonomy": taxonomy} for tid in unique_ids],
            )

    async def assign_terms(
        self,
        content_id: int,
        taxonomy: str,
        term_ids: list[int],
        acting_language: str | None = None,
    ) -> ContentItem:
        """Replace assignments for a taxonomy and save the item, as an editor would."""
        await self.require_content(content_id)
        await self.replace_terms(content_id, taxonomy, term_ids)
        return await self.save_content(content_id, acting_language=acting_language)

    async def set_field_value(self, content_id: int, field_name: str, value: Any, commit: bool = True) -> None:
        result = await self.db.execute(
            select(ContentFieldValue).where(
                ContentFieldValue.content_id == content_id,
                ContentFieldValue.field_name == field_name,
            )
        )
        row = result.scalars().first()
        if row is None:
            self.db.add(ContentFieldValue(content_id=content_id, field_name=field_name, value=value))
        else:
            row.value = value
        if commit:
            await self.db.commit()

    # ── Slugs ────────────────────────────────────────────────────────────────

    async def unique_slug(
        self,
        desired: str,
        content_type: str,
        status: str,
        exclude_id: int | None = None,
    ) -> str:
        """Collision-free slug within (content_type, status); suffixes -2, -3, ..."""
        base = slugify(desired)
        query = select(ContentItem.slug).where(
            ContentItem.content_type == content_type,
            ContentItem.status == status,
            ContentItem.slug.like(f"{base}%"),
        )
        if exclude_id is not None:
            query = query.where(ContentItem.id != exclude_id)
        result = await self.db.execute(query)
        return first_free_slug(base, set(result.scalars().all()))

    async def page_uri(self, item: ContentItem) -> str:
        """Hierarchical slug path, e.g. ``about/team``."""
        parts = [item.slug]
        parent_id = item.parent_id
        seen = {item.id}
        while parent_id and parent_id not in seen and len(parts) < MAX_PAGE_DEPTH:
            seen.add(parent_id)
            parent = await self.get_content(parent_id)
            if parent is None:
                break
            parts.append(parent.slug)
            parent_id = parent.parent_id
        return "/".join(reversed([p for p in parts if p]))
