"""
Term Translation Service

Translation groups for taxonomy terms:

    create_term_translation  - clone a term into another language of its group
    handle_term_save         - term.saved subscriber: stamp language and group
    create_term_in_group     - create a new term directly inside a group
    link_term_to_group       - attach an existing term to a group
    unlink_term              - detach a term from its group

Every operation that adds a member to a group enforces one term per language
per group and drops the group's empty placeholder.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession  # noqa: TC002

from cms_multilingual.exceptions import (
    GroupLanguageConflictError,
    TermNotFoundError,
    TranslationExistsError,
    ValidationError,
)
from cms_multilingual.i18n.locale import normalize_language_code
from cms_multilingual.models.taxonomy_term import TaxonomyTerm
from cms_multilingual.models.translation_group import EntityKind, new_group_id
from cms_multilingual.plugins.hooks import HOOK_TRANSLATION_CREATED
from cms_multilingual.services.settings_service import MultilingualConfig
from cms_multilingual.services.term_service import TermService
from cms_multilingual.services.translation_group_service import TranslationGroupService
from cms_multilingual.services.translation_resolver import TranslationResolver
from cms_multilingual.services.translation_service import validate_target_language
from cms_multilingual.utils.cache import GroupMembersCache
from cms_multilingual.utils.metrics import record_translation_created

logger = logging.getLogger(__name__)


class TermTranslationService:
    def __init__(
        self,
        db: AsyncSession,
        config: MultilingualConfig,
        cache: GroupMembersCache | None = None,
        hooks=None,
    ):
        self.db = db
        self.config = config
        self.cache = cache if cache is not None else GroupMembersCache()
        self.hooks = hooks
        self.terms = TermService(db, hooks)
        self.resolver = TranslationResolver(db, EntityKind.TERM, self.cache)
        self.groups = TranslationGroupService(db)

    # ── Creation ─────────────────────────────────────────────────────────────

    async def create_term_translation(self, source_term_id: int, target_lang: str, taxonomy: str) -> int:
        """
        Create ``"{name} ({LANG})"`` in `target_lang`, linked to the source's group.

        Raises:
            ValidationError: target language malformed or not configured.
            TermNotFoundError: no such term in `taxonomy`.
            TranslationExistsError: the group already has a term in target_lang.
        """
        lang = validate_target_language(self.config, target_lang)

        source = await self.terms.get_term(source_term_id)
        if source is None or source.taxonomy != taxonomy:
            raise TermNotFoundError(source_term_id)

        if not source.translation_group or not source.language:
            if not source.translation_group:
                source.translation_group = new_group_id()
            if not source.language:
                source.language = self.config.default_language
            await self.db.commit()
        group_id = source.translation_group

        self.cache.invalidate(EntityKind.TERM, group_id)
        existing = await self.resolver.get_translation_in_lang(group_id, lang)
        if existing is not None:
            raise TranslationExistsError(group_id, lang, existing)

        term = await self.terms.insert_term(
            taxonomy,
            f"{source.name} ({lang.upper()})",
            slug=f"{source.slug}-{lang}",
            language=lang,
            translation_group=group_id,
            fire_hooks=False,
        )

        self.cache.invalidate(EntityKind.TERM, group_id)
        await self.groups.remove_empty_group(group_id)
        record_translation_created(EntityKind.TERM.value)
        logger.info(
            "Term translation created: source=%d new=%d lang=%s group=%s",
            source_term_id,
            term.id,
            lang,
            group_id,
        )

        if self.hooks is not None:
            await self.hooks.do_action(
                HOOK_TRANSLATION_CREATED,
                {
                    "kind": EntityKind.TERM.value,
                    "source_id": source_term_id,
                    "new_id": term.id,
                    "language": lang,
                    "group_id": group_id,
                },
            )
        return term.id

    async def create_term_in_group(
        self,
        taxonomy: str,
        group_id: str,
        lang: str,
        name: str | None = None,
        slug: str | None = None,
    ) -> TaxonomyTerm:
        if not taxonomy or not group_id:
            raise ValidationError("taxonomy and group_id are required")
        lang = validate_target_language(self.config, lang)
        await self.ensure_language_unique_in_group(group_id, taxonomy, lang)

        term = await self.terms.insert_term(
            taxonomy,
            name or f"New {lang.upper()} Term",
            slug=slug or None,
            language=lang,
            translation_group=group_id,
            fire_hooks=False,
        )
        await self.groups.remove_empty_group(group_id)
        self.cache.invalidate(EntityKind.TERM, group_id)
        logger.info("Term created in group: term=%d group=%s lang=%s", term.id, group_id, lang)
        return term

    # ── Group membership ─────────────────────────────────────────────────────

    async def ensure_language_unique_in_group(
        self,
        group_id: str,
        taxonomy: str,
        lang: str,
        exclude_id: int | None = None,
    ) -> None:
        query = select(TaxonomyTerm.id).where(
            TaxonomyTerm.translation_group == group_id,
            TaxonomyTerm.taxonomy == taxonomy,
            TaxonomyTerm.language == lang,
        )
        if exclude_id is not None:
            query = query.where(TaxonomyTerm.id != exclude_id)
        result = await self.db.execute(query.limit(1))
        if result.scalar() is not None:
            raise GroupLanguageConflictError(group_id, lang)

    async def link_term_to_group(self, term_id: int, group_id: str) -> TaxonomyTerm:
        if not group_id:
            raise ValidationError("group_id is required", field="group_id")
        term = await self.terms.require_term(term_id)
        if not term.language:
            raise ValidationError(
                "Target term must have a language assigned before it can be linked",
                field="term_id",
            )
        await self.ensure_language_unique_in_group(group_id, term.taxonomy, term.language, exclude_id=term_id)

        previous = term.translation_group
        term.translation_group = group_id
        await self.db.commit()
        await self.groups.remove_empty_group(group_id)
        self.cache.invalidate(EntityKind.TERM, previous)
        self.cache.invalidate(EntityKind.TERM, group_id)
        logger.info("Term %d linked to group %s", term_id, group_id)
        return term

    async def unlink_term(self, term_id: int) -> TaxonomyTerm:
        term = await self.terms.require_term(term_id)
        previous = term.translation_group
        term.translation_group = None
        await self.db.commit()
        self.cache.invalidate(EntityKind.TERM, previous)
        logger.info("Term %d unlinked from group %s", term_id, previous)
        return term

    # ── Save hook ────────────────────────────────────────────────────────────

    async def handle_term_save(self, payload: dict[str, Any]) -> bool:
        """Apply the submitted language, default a missing one, and mint a missing group."""
        if not self.config.is_active:
            return False
        term = await self.terms.get_term(payload["term_id"])
        if term is None:
            return False

        changed = False
        submitted = payload.get("language")
        if submitted:
            lang = normalize_language_code(submitted)
            if term.language != lang:
                term.language = lang
                changed = True
        if not term.language:
            term.language = self.config.default_language
            changed = True
        if not term.translation_group:
            term.translation_group = new_group_id()
            changed = True

        if changed:
            await self.db.commit()
            self.cache.invalidate(EntityKind.TERM, term.translation_group)
            logger.debug("Term %d stamped: lang=%s group=%s", term.id, term.language, term.translation_group)
        return changed
