"""
Term Service

Store-facing operations on taxonomy terms: insert/save (firing ``term.saved``),
slug uniqueness within a taxonomy, and manual sort positions.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession  # noqa: TC002

from cms_multilingual.exceptions import TermNotFoundError, ValidationError
from cms_multilingual.models.taxonomy_term import TaxonomyTerm, TermSortOrder
from cms_multilingual.plugins.hooks import HOOK_TERM_SAVED
from cms_multilingual.utils.slugify import first_free_slug, slugify

logger = logging.getLogger(__name__)

MUTABLE_FIELDS = frozenset({"name", "slug", "parent_id", "language", "translation_group"})


class TermService:
    def __init__(self, db: AsyncSession, hooks=None):
        self.db = db
        self.hooks = hooks

    async def get_term(self, term_id: int) -> TaxonomyTerm | None:
        result = await self.db.execute(select(TaxonomyTerm).where(TaxonomyTerm.id == term_id))
        return result.scalars().first()

    async def require_term(self, term_id: int) -> TaxonomyTerm:
        term = await self.get_term(term_id)
        if term is None:
            raise TermNotFoundError(term_id)
        return term

    async def unique_term_slug(self, desired: str, taxonomy: str, exclude_id: int | None = None) -> str:
        base = slugify(desired)
        query = select(TaxonomyTerm.slug).where(TaxonomyTerm.taxonomy == taxonomy, TaxonomyTerm.slug.like(f"{base}%"))
        if exclude_id is not None:
            query = query.where(TaxonomyTerm.id != exclude_id)
        result = await self.db.execute(query)
        return first_free_slug(base, set(result.scalars().all()))

    async def insert_term(
        self,
        taxonomy: str,
        name: str,
        slug: str | None = None,
        acting_language: str | None = None,
        fire_hooks: bool = True,
        **fields: Any,
    ) -> TaxonomyTerm:
        """Insert a term with a unique slug, then fire term.saved."""
        if not name or not name.strip():
            raise ValidationError("Term name must not be empty", field="name")
        unknown = set(fields) - MUTABLE_FIELDS
        if unknown:
            raise ValidationError(f"Unknown term fields: {', '.join(sorted(unknown))}")

        term = TaxonomyTerm(
            taxonomy=taxonomy,
            name=name.strip(),
            slug=await self.unique_term_slug(slug or name, taxonomy),
            **fields,
        )
        self.db.add(term)
        await self.db.commit()
        await self.db.refresh(term)
        logger.info("Term inserted: id=%d taxonomy=%s slug=%s", term.id, taxonomy, term.slug)

        if fire_hooks:
            await self._fire(term.id, acting_language)
            await self.db.refresh(term)
        return term

    async def save_term(
        self,
        term_id: int,
        acting_language: str | None = None,
        fire_hooks: bool = True,
        **changes: Any,
    ) -> TaxonomyTerm:
        unknown = set(changes) - MUTABLE_FIELDS
        if unknown:
            raise ValidationError(f"Unknown term fields: {', '.join(sorted(unknown))}")

        term = await self.require_term(term_id)
        if "slug" in changes and changes["slug"]:
            changes["slug"] = await self.unique_term_slug(changes["slug"], term.taxonomy, exclude_id=term_id)
        for key, value in changes.items():
            setattr(term, key, value)
        await self.db.commit()

        if fire_hooks:
            await self._fire(term_id, acting_language)
            await self.db.refresh(term)
        return term

    async def _fire(self, term_id: int, acting_language: str | None) -> None:
        if self.hooks is None:
            return
        await self.hooks.do_action(HOOK_TERM_SAVED, {"term_id": term_id, "language": acting_language})

    # ── Manual ordering ──────────────────────────────────────────────────────

    async def reorder_terms(self, positions: list[dict[str, int]]) -> int:
        """Store explicit positions given as [{"term_id": ..., "position": ...}]."""
        updated = 0
        for entry in positions:
            term_id = int(entry["term_id"])
            position = int(entry["position"])
            row = await self.db.get(TermSortOrder, term_id)
            if row is None:
                self.db.add(TermSortOrder(term_id=term_id, position=position))
            else:
                row.position = position
            updated += 1
        await self.db.commit()
        logger.info("Term order updated: %d terms", updated)
        return updated

    async def next_position(self, taxonomy: str, language: str | None) -> int:
        """One past the highest stored position among terms of the taxonomy and language."""
        query = (
            select(func.max(TermSortOrder.position))
            .join(TaxonomyTerm, TaxonomyTerm.id == TermSortOrder.term_id)
            .where(TaxonomyTerm.taxonomy == taxonomy)
        )
        if language is not None:
            query = query.where(TaxonomyTerm.language == language)
        result = await self.db.execute(query)
        current = result.scalar()
        return 0 if current is None else current + 1
