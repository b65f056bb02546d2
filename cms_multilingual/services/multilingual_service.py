"""
Multilingual Service

Outward facade of the multilingual engine. One instance is built per request
(or per scheduled job) around a single AsyncSession, HookRegistry, and
GroupMembersCache, so every service sees the same cache and the same
reentrancy latch.

    engine = await MultilingualService.create(db)
    new_id = await engine.create_translation(42, "fr")

init() subscribes the engine's handlers to the save-path hooks:

    content.inserted      default_language_on_insert
    content.saved     10  assign_language
    content.saved     20  taxonomy_sync
    content.saved     30  slug_normalization
    term.saved            term_language
    terms.query_args  20  term_language_scope
    terms.query_clauses 30 term_custom_order
    settings.updated      route_table_dirty
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession  # noqa: TC002

from cms_multilingual.config import settings
from cms_multilingual.content_types import ContentTypeRegistry, content_type_registry
from cms_multilingual.diagnostics import HealthCheckRegistry, build_default_registry
from cms_multilingual.exceptions import ContentNotFoundError, TermNotFoundError, ValidationError
from cms_multilingual.models.translation_group import EntityKind
from cms_multilingual.plugins.hooks import (
    HOOK_CONTENT_INSERTED,
    HOOK_CONTENT_SAVED,
    HOOK_SETTINGS_UPDATED,
    HOOK_TERM_SAVED,
    HOOK_TERMS_QUERY_ARGS,
    HOOK_TERMS_QUERY_CLAUSES,
)
from cms_multilingual.plugins.registry import HookRegistry
from cms_multilingual.services.content_service import ContentService
from cms_multilingual.services.field_registry import FieldRegistry
from cms_multilingual.services.routing_service import LocalizedRoutingResolver, RouteMatch, RouteTable
from cms_multilingual.services.routing_service import route_table as default_route_table
from cms_multilingual.services.settings_service import MultilingualConfig, SettingsService
from cms_multilingual.services.taxonomy_sync_service import SyncContext, SyncReport, TaxonomySyncService
from cms_multilingual.services.term_query_service import (
    LanguageScopeFilter,
    TermOrderTransform,
    TermQuery,
    TermQueryService,
)
from cms_multilingual.services.term_service import TermService
from cms_multilingual.services.term_translation_service import TermTranslationService
from cms_multilingual.services.translation_group_service import TranslationGroupService
from cms_multilingual.services.translation_resolver import TranslationResolver
from cms_multilingual.services.translation_service import ContentTranslationService
from cms_multilingual.utils.cache import GroupMembersCache

logger = logging.getLogger(__name__)


class MultilingualService:
    def __init__(
        self,
        db: AsyncSession,
        config: MultilingualConfig,
        route_table: RouteTable | None = None,
        acting_user_id: int | None = None,
        types: ContentTypeRegistry | None = None,
        fields: FieldRegistry | None = None,
        hooks: HookRegistry | None = None,
    ):
        self.db = db
        self.config = config
        self.acting_user_id = acting_user_id
        self.route_table = route_table if route_table is not None else default_route_table
        self.types = types if types is not None else content_type_registry
        self.hooks = hooks if hooks is not None else HookRegistry()
        self.cache = GroupMembersCache()
        self.sync_context = SyncContext()

        self.options = SettingsService(db, self.hooks)
        self.content = ContentService(db, self.hooks)
        self.terms = TermService(db, self.hooks)
        self.groups = TranslationGroupService(db)
        self.translations = ContentTranslationService(db, config, self.cache, fields=fields, hooks=self.hooks)
        self.term_translations = TermTranslationService(db, config, self.cache, hooks=self.hooks)
        self.sync = TaxonomySyncService(
            db, config, self.cache, types=self.types, hooks=self.hooks, context=self.sync_context
        )
        self.term_queries = TermQueryService(db, config, hooks=self.hooks)
        self.routing = LocalizedRoutingResolver(config, self.types)
        self._initialized = False

    @classmethod
    async def create(
        cls,
        db: AsyncSession,
        route_table: RouteTable | None = None,
        acting_user_id: int | None = None,
        types: ContentTypeRegistry | None = None,
        fields: FieldRegistry | None = None,
    ) -> MultilingualService:
        """Load the stored configuration and return an initialised engine."""
        config = await SettingsService(db).get_multilingual_config()
        engine = cls(db, config, route_table=route_table, acting_user_id=acting_user_id, types=types, fields=fields)
        engine.init()
        return engine

    def init(self) -> None:
        """Subscribe the engine's handlers. Calling init() again does nothing."""
        if self._initialized:
            return
        hooks = self.hooks
        hooks.add_action(HOOK_CONTENT_INSERTED, self.sync.force_default_language_on_insert, name="default_language_on_insert")
        hooks.add_action(HOOK_CONTENT_SAVED, self.sync.assign_language_and_group, priority=10, name="assign_language")
        hooks.add_action(HOOK_CONTENT_SAVED, self.sync.handle_content_save, priority=20, name="taxonomy_sync")
        hooks.add_action(HOOK_CONTENT_SAVED, self.sync.normalize_slug, priority=30, name="slug_normalization")
        hooks.add_action(HOOK_TERM_SAVED, self.term_translations.handle_term_save, name="term_language")
        hooks.add_filter(HOOK_TERMS_QUERY_ARGS, LanguageScopeFilter(self.config), priority=20, name="term_language_scope")
        hooks.add_filter(HOOK_TERMS_QUERY_CLAUSES, TermOrderTransform(), priority=30, name="term_custom_order")
        hooks.add_action(HOOK_SETTINGS_UPDATED, self.route_table.handle_settings_updated, name="route_table_dirty")
        self.types.add_listener(self.route_table.on_registry_change)
        self._initialized = True
        logger.debug("Multilingual engine initialised (active=%s)", self.config.is_active)

    # ── Translation creation ─────────────────────────────────────────────────

    async def create_translation(self, source_id: int, target_lang: str) -> int:
        """Create a draft translation and give it the source's terms in its own language."""
        new_id = await self.translations.create_translation(source_id, target_lang, acting_user_id=self.acting_user_id)
        new_item = await self.content.require_content(new_id)
        await self.sync.seed_translation_terms(source_id, new_id, new_item.language)
        return new_id

    async def create_term_translation(self, source_term_id: int, target_lang: str, taxonomy: str) -> int:
        return await self.term_translations.create_term_translation(source_term_id, target_lang, taxonomy)

    async def create_term_in_group(self, taxonomy: str, group_id: str, lang: str, name: str | None = None):
        return await self.term_translations.create_term_in_group(taxonomy, group_id, lang, name=name)

    async def link_term_to_group(self, term_id: int, group_id: str):
        return await self.term_translations.link_term_to_group(term_id, group_id)

    async def unlink_term(self, term_id: int):
        return await self.term_translations.unlink_term(term_id)

    async def create_empty_term_group(self, taxonomy: str | None = None) -> str:
        return await self.groups.create_empty_group(EntityKind.TERM, taxonomy)

    # ── Lookups ──────────────────────────────────────────────────────────────

    @staticmethod
    def _entity_kind(kind: EntityKind | str) -> EntityKind:
        try:
            return EntityKind(kind)
        except ValueError as exc:
            raise ValidationError(f"Unknown entity kind: {kind}", field="kind") from exc

    def _resolver(self, kind: EntityKind | str) -> TranslationResolver:
        return TranslationResolver(self.db, self._entity_kind(kind), self.cache)

    async def get_translations(self, kind: EntityKind | str, group_id: str) -> dict[str, int]:
        return await self._resolver(kind).get_translations(group_id)

    async def get_batch_translations(self, kind: EntityKind | str, ids: list[int]) -> dict[int, dict[str, int]]:
        return await self._resolver(kind).get_batch_translations(ids)

    async def list_terms(self, query: TermQuery):
        return await self.term_queries.list_terms(query)

    # ── Synchronization ──────────────────────────────────────────────────────

    async def resync_content(self, content_id: int) -> SyncReport:
        """Run taxonomy synchronization for one item outside of a save."""
        await self.content.require_content(content_id)
        return await self.sync.handle_content_save({"content_id": content_id, "acting_language": None})

    # ── Routing ──────────────────────────────────────────────────────────────

    async def resolve_localized_path(self, kind: EntityKind | str, entity_id: int) -> str:
        entity_kind = self._entity_kind(kind)
        if entity_kind is EntityKind.CONTENT:
            item = await self.content.get_content(entity_id)
            if item is None:
                raise ContentNotFoundError(entity_id)
            definition = self.types.get_type(item.content_type)
            page_uri = await self.content.page_uri(item) if definition is not None and definition.hierarchical else None
            return self.routing.resolve_content_path(item, page_uri)

        term = await self.terms.get_term(entity_id)
        if term is None:
            raise TermNotFoundError(entity_id)
        return self.routing.resolve_term_path(term)

    def match_path(self, path: str) -> RouteMatch | None:
        self.route_table.maybe_flush(self.routing)
        return self.route_table.match(path)

    # ── Diagnostics ──────────────────────────────────────────────────────────

    def diagnostics(self) -> HealthCheckRegistry:
        return build_default_registry(
            self.db,
            self.config,
            hooks=self.hooks,
            types=self.types,
            max_entries=settings.diagnostics_max_log_entries,
            fix_batch_limit=settings.diagnostics_fix_batch_limit,
        )

    async def run_all_checks(self) -> dict[str, Any]:
        return await self.diagnostics().run_all()

    async def fix_preview(self, check_id: str, issue_id: str, context: dict[str, Any] | None = None) -> str | None:
        return await self.diagnostics().fix_preview(check_id, issue_id, context)

    async def apply_fix(self, check_id: str, issue_id: str, context: dict[str, Any] | None = None) -> dict[str, Any]:
        return await self.diagnostics().apply_fix(check_id, issue_id, context)
