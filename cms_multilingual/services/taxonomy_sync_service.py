"""
Taxonomy Sync Service

Save-path subscribers that keep content items' language tags and taxonomy
assignments consistent across a translation group.

Handlers (wired by MultilingualService.init):
    force_default_language_on_insert - content.inserted: drafts get the default language
    assign_language_and_group        - content.saved (10): stamp language and group
    handle_content_save              - content.saved (20): mirror term groups onto siblings
    normalize_slug                   - content.saved (30): derive an empty slug from the title

Synchronization resolves each assigned term to its translation group, then
for every sibling replaces the assignments with the members of those groups
in the sibling's language. A group with no member in that language
contributes nothing.

Sibling writes go through ContentService.save_content, which fires
content.saved again; the SyncContext latch turns those nested saves into
no-ops. Each sibling is independent: a failure is rolled back, logged, and
recorded in the SyncReport while the remaining siblings are still processed.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession  # noqa: TC002

from cms_multilingual.content_types import ContentTypeRegistry, content_type_registry
from cms_multilingual.exceptions import PartialSyncFailure
from cms_multilingual.models.content_item import ContentItem, ContentStatus
from cms_multilingual.models.taxonomy_term import TaxonomyTerm
from cms_multilingual.models.term_assignment import content_term_assignments
from cms_multilingual.models.translation_group import EntityKind, new_group_id
from cms_multilingual.services.content_service import ContentService
from cms_multilingual.services.settings_service import MultilingualConfig
from cms_multilingual.services.translation_resolver import TranslationResolver
from cms_multilingual.utils.cache import GroupMembersCache
from cms_multilingual.utils.metrics import record_sync_failure

logger = logging.getLogger(__name__)

# Language preference meaning "no specific language" in admin screens.
ALL_LANGUAGES = "all"

INSERT_DEFAULT_STATUSES = frozenset({ContentStatus.DRAFT.value, ContentStatus.AUTO_DRAFT.value})


@dataclass
class SyncContext:
    """Process-local reentrancy latch for one engine instance."""

    active: bool = False
    entered: int = 0
    skipped: int = 0

    @contextmanager
    def guard(self) -> Iterator[None]:
        self.active = True
        self.entered += 1
        try:
            yield
        finally:
            self.active = False


@dataclass
class SyncReport:
    content_id: int
    synced: list[int] = field(default_factory=list)
    failures: list[PartialSyncFailure] = field(default_factory=list)
    skipped: bool = False

    @property
    def ok(self) -> bool:
        return not self.failures


class TaxonomySyncService:
    def __init__(
        self,
        db: AsyncSession,
        config: MultilingualConfig,
        cache: GroupMembersCache | None = None,
        types: ContentTypeRegistry | None = None,
        hooks=None,
        context: SyncContext | None = None,
    ):
        self.db = db
        self.config = config
        self.cache = cache if cache is not None else GroupMembersCache()
        self.types = types if types is not None else content_type_registry
        self.context = context if context is not None else SyncContext()
        self.content = ContentService(db, hooks)
        self.resolver = TranslationResolver(db, EntityKind.CONTENT, self.cache)
        self.last_report: SyncReport | None = None

    # ── Helpers ──────────────────────────────────────────────────────────────

    def resolve_language(self, preferred: str | None) -> str:
        """The acting user's language when usable, otherwise the site default."""
        if preferred and preferred != ALL_LANGUAGES and self.config.has_language(preferred):
            return preferred
        return self.config.default_language

    def _applies_to(self, item: ContentItem | None) -> bool:
        if item is None or not self.config.is_active:
            return False
        if item.status == ContentStatus.AUTO_DRAFT.value:
            return False
        return self.types.is_multilingual(item.content_type)

    # ── content.inserted ─────────────────────────────────────────────────────

    async def force_default_language_on_insert(self, payload: dict[str, Any]) -> bool:
        item = await self.content.get_content(payload["content_id"])
        if item is None or not self.config.is_active or not self.types.is_multilingual(item.content_type):
            return False
        if item.status not in INSERT_DEFAULT_STATUSES or item.language:
            return False

        item.language = self.config.default_language
        if not item.translation_group:
            item.translation_group = new_group_id()
        await self.db.commit()
        logger.debug("Default language %s stamped on new content %d", item.language, item.id)
        return True

    # ── content.saved ────────────────────────────────────────────────────────

    async def assign_language_and_group(self, payload: dict[str, Any]) -> bool:
        if self.context.active:
            return False
        item = await self.content.get_content(payload["content_id"])
        if not self._applies_to(item):
            return False

        changed = False
        if not item.language:
            item.language = self.resolve_language(payload.get("acting_language"))
            changed = True
        if not item.translation_group:
            item.translation_group = new_group_id()
            changed = True
        if changed:
            await self.db.commit()
            self.cache.invalidate(EntityKind.CONTENT, item.translation_group)
            logger.debug("Content %d stamped: lang=%s group=%s", item.id, item.language, item.translation_group)
        return changed

    async def normalize_slug(self, payload: dict[str, Any]) -> bool:
        if self.context.active:
            return False
        item = await self.content.get_content(payload["content_id"])
        if not self._applies_to(item) or item.slug or not item.title:
            return False

        item.slug = await self.content.unique_slug(item.title, item.content_type, item.status, exclude_id=item.id)
        await self.db.commit()
        logger.debug("Slug derived for content %d: %s", item.id, item.slug)
        return True

    async def handle_content_save(self, payload: dict[str, Any]) -> SyncReport:
        """Mirror the saved item's term groups onto each sibling translation."""
        content_id = payload["content_id"]
        report = SyncReport(content_id=content_id)

        if self.context.active:
            self.context.skipped += 1
            report.skipped = True
            logger.debug("Taxonomy sync skipped for content %d (sync in progress)", content_id)
            return report

        item = await self.content.get_content(content_id)
        if not self._applies_to(item) or not item.translation_group:
            report.skipped = True
            return report

        with self.context.guard():
            group_id = item.translation_group
            source_lang = item.language
            content_type = item.content_type

            self.cache.invalidate(EntityKind.CONTENT, group_id)
            siblings = await self.resolver.get_translations(group_id)
            targets = [(lang, sid) for lang, sid in siblings.items() if sid != content_id and lang != source_lang]
            if targets:
                groups_by_tax = await self.get_selected_term_groups(content_id, content_type)
                for lang, sibling_id in targets:
                    await self._sync_sibling(report, sibling_id, lang, groups_by_tax)

        if report.failures:
            logger.warning(
                "Taxonomy sync for content %d finished with %d failed sibling(s)",
                content_id,
                len(report.failures),
            )
        elif report.synced:
            logger.info("Taxonomy synced from content %d to %d sibling(s)", content_id, len(report.synced))
        self.last_report = report
        return report

    async def _sync_sibling(
        self,
        report: SyncReport,
        sibling_id: int,
        lang: str,
        groups_by_tax: dict[str, list[str]],
    ) -> None:
        try:
            await self.set_terms_from_groups(sibling_id, lang, groups_by_tax)
            await self.content.save_content(sibling_id)
            report.synced.append(sibling_id)
        except Exception as exc:
            await self.db.rollback()
            failure = PartialSyncFailure(sibling_id, lang, exc)
            report.failures.append(failure)
            record_sync_failure()
            logger.warning("Taxonomy sync failed for sibling %d (%s): %s", sibling_id, lang, exc)

    # ── Group resolution ─────────────────────────────────────────────────────

    async def get_selected_term_groups(self, content_id: int, content_type: str) -> dict[str, list[str]]:
        """{taxonomy: [group_id, ...]} for every taxonomy of the type; empty lists mean "clear"."""
        taxonomies = [t for t in self.types.taxonomies_for(content_type) if t in self.types.public_taxonomies()]
        selected: dict[str, list[str]] = {taxonomy: [] for taxonomy in taxonomies}
        if not taxonomies:
            return selected

        result = await self.db.execute(
            select(content_term_assignments.c.taxonomy, TaxonomyTerm.translation_group)
            .join(TaxonomyTerm, TaxonomyTerm.id == content_term_assignments.c.term_id)
            .where(
                content_term_assignments.c.content_id == content_id,
                content_term_assignments.c.taxonomy.in_(taxonomies),
                TaxonomyTerm.translation_group.isnot(None),
            )
            .order_by(TaxonomyTerm.id)
        )
        for taxonomy, group_id in result.all():
            if group_id not in selected[taxonomy]:
                selected[taxonomy].append(group_id)
        return selected

    async def terms_for_language_from_groups(self, taxonomy: str, lang: str, groups: list[str]) -> list[int]:
        if not groups:
            return []
        result = await self.db.execute(
            select(TaxonomyTerm.id)
            .where(
                TaxonomyTerm.taxonomy == taxonomy,
                TaxonomyTerm.language == lang,
                TaxonomyTerm.translation_group.in_(groups),
            )
            .order_by(TaxonomyTerm.id)
        )
        return list(result.scalars().all())

    async def set_terms_from_groups(self, content_id: int, lang: str, groups_by_tax: dict[str, list[str]]) -> None:
        """Replace the item's assignments per taxonomy with the `lang` members of the groups."""
        for taxonomy, groups in groups_by_tax.items():
            term_ids = await self.terms_for_language_from_groups(taxonomy, lang, groups)
            await self.content.replace_terms(content_id, taxonomy, term_ids)

    async def seed_translation_terms(self, source_id: int, new_id: int, lang: str) -> dict[str, list[str]]:
        """Give a freshly created translation the source's term groups in its own language."""
        source = await self.content.require_content(source_id)
        groups_by_tax = await self.get_selected_term_groups(source_id, source.content_type)
        await self.set_terms_from_groups(new_id, lang, groups_by_tax)
        await self.db.commit()
        return groups_by_tax
