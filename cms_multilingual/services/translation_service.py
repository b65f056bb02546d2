"""
Content Translation Service

Creates a new language variant of a content item inside the source's
translation group.

create_translation never overwrites: if the group already has a member in the
target language it raises TranslationExistsError and writes nothing new.
"""

from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession  # noqa: TC002

from cms_multilingual.exceptions import ContentNotFoundError, TranslationExistsError, ValidationError
from cms_multilingual.i18n.locale import normalize_language_code
from cms_multilingual.models.content_item import ContentItem, ContentStatus
from cms_multilingual.models.translation_group import EntityKind, new_group_id
from cms_multilingual.plugins.hooks import HOOK_TRANSLATION_CREATED
from cms_multilingual.services.content_service import ContentService
from cms_multilingual.services.field_registry import FieldRegistry, field_registry
from cms_multilingual.services.settings_service import MultilingualConfig
from cms_multilingual.services.translation_group_service import TranslationGroupService
from cms_multilingual.services.translation_resolver import TranslationResolver
from cms_multilingual.utils.cache import GroupMembersCache
from cms_multilingual.utils.metrics import record_translation_created

logger = logging.getLogger(__name__)


def validate_target_language(config: MultilingualConfig, target_lang: str) -> str:
    """Normalise `target_lang` and require it to be one of the configured languages."""
    try:
        lang = normalize_language_code(target_lang)
    except ValueError as exc:
        raise ValidationError(str(exc), field="target_lang") from exc
    if not config.has_language(lang):
        raise ValidationError(f"Language '{lang}' is not configured", field="target_lang")
    return lang


def is_empty_value(value) -> bool:
    return value is None or value == ""


class ContentTranslationService:
    def __init__(
        self,
        db: AsyncSession,
        config: MultilingualConfig,
        cache: GroupMembersCache | None = None,
        fields: FieldRegistry | None = None,
        hooks=None,
    ):
        self.db = db
        self.config = config
        self.cache = cache if cache is not None else GroupMembersCache()
        self.fields = fields if fields is not None else field_registry
        self.hooks = hooks
        self.content = ContentService(db, hooks)
        self.resolver = TranslationResolver(db, EntityKind.CONTENT, self.cache)
        self.groups = TranslationGroupService(db)

    async def ensure_group(self, item: ContentItem) -> str:
        """Stamp a group (and the default language if missing) on `item`; return the group id."""
        changed = False
        if not item.translation_group:
            item.translation_group = new_group_id()
            changed = True
        if not item.language:
            item.language = self.config.default_language
            changed = True
        if changed:
            await self.db.commit()
            logger.info(
                "Translation group bootstrapped on content %d: %s (%s)",
                item.id,
                item.translation_group,
                item.language,
            )
        return item.translation_group

    async def create_translation(self, source_id: int, target_lang: str, acting_user_id: int | None = None) -> int:
        """
        Clone `source_id` into a new draft in `target_lang`.

        Returns:
            The new content item id.

        Raises:
            ValidationError: target language malformed or not configured.
            ContentNotFoundError: source does not exist.
            TranslationExistsError: the group already has a member in target_lang.
        """
        lang = validate_target_language(self.config, target_lang)

        source = await self.content.get_content(source_id)
        if source is None:
            raise ContentNotFoundError(source_id)

        group_id = await self.ensure_group(source)

        self.cache.invalidate(EntityKind.CONTENT, group_id)
        existing = await self.resolver.member_in_lang(group_id, lang)
        if existing is not None:
            raise TranslationExistsError(group_id, lang, existing)

        title = f"{source.title} - {lang.upper()}"
        status = ContentStatus.DRAFT.value
        translation = await self.content.insert_content(
            content_type=source.content_type,
            title=title,
            status=status,
            slug=await self.content.unique_slug(title, source.content_type, status),
            body=source.body,
            excerpt=source.excerpt,
            parent_id=source.parent_id,
            menu_order=source.menu_order,
            template=source.template,
            featured_media_id=source.featured_media_id,
            author_id=acting_user_id,
            language=lang,
            translation_group=group_id,
            fire_hooks=False,
        )

        copied = await self.copy_field_values(source, translation.id)

        self.cache.invalidate(EntityKind.CONTENT, group_id)
        await self.groups.remove_empty_group(group_id)
        record_translation_created(EntityKind.CONTENT.value)
        logger.info(
            "Translation created: source=%d new=%d lang=%s group=%s fields=%d",
            source_id,
            translation.id,
            lang,
            group_id,
            copied,
        )

        if self.hooks is not None:
            await self.hooks.do_action(
                HOOK_TRANSLATION_CREATED,
                {
                    "kind": EntityKind.CONTENT.value,
                    "source_id": source_id,
                    "new_id": translation.id,
                    "language": lang,
                    "group_id": group_id,
                },
            )
        return translation.id

    async def copy_field_values(self, source: ContentItem, target_id: int) -> int:
        """Copy the source's stored value for every field that applies to its context.

        Values are copied verbatim; empty values are skipped.
        """
        context = {
            "content_id": source.id,
            "content_type": source.content_type,
            "template": source.template or "",
            "taxonomy_terms": await self.content.get_terms_by_taxonomy(source.id),
        }
        schema = self.fields.get_fields_for_context(context)
        if not schema:
            return 0

        values = await self.content.get_field_values(source.id)
        copied = 0
        for field_name in schema:
            value = values.get(field_name)
            if is_empty_value(value):
                continue
            await self.content.set_field_value(target_id, field_name, value, commit=False)
            copied += 1
        if copied:
            await self.db.commit()
        return copied
