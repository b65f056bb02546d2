"""
Multilingual integrity check

Looks for rows that break the translation-group invariants:

    content_missing_language / terms_missing_language   critical, fixable in batches
    content_missing_group / terms_missing_group         warning, fixable in batches
    duplicate_content_languages / duplicate_term_languages
                                                        warning, never fixed automatically

Only multilingual public content types and public taxonomies are inspected;
auto-drafts and trashed content are ignored.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession  # noqa: TC002

from cms_multilingual.config import settings
from cms_multilingual.content_types import ContentTypeRegistry, content_type_registry
from cms_multilingual.diagnostics.base import FixableHealthCheck, IntegrityViolation, Severity
from cms_multilingual.exceptions import FixNotAvailableError
from cms_multilingual.models.content_item import TRANSIENT_STATUSES, ContentItem
from cms_multilingual.models.taxonomy_term import TaxonomyTerm
from cms_multilingual.models.translation_group import new_group_id
from cms_multilingual.services.settings_service import MultilingualConfig

logger = logging.getLogger(__name__)

CONTENT_MISSING_LANGUAGE = "content_missing_language"
TERMS_MISSING_LANGUAGE = "terms_missing_language"
CONTENT_MISSING_GROUP = "content_missing_group"
TERMS_MISSING_GROUP = "terms_missing_group"
DUPLICATE_CONTENT_LANGUAGES = "duplicate_content_languages"
DUPLICATE_TERM_LANGUAGES = "duplicate_term_languages"

FIXABLE_ISSUES = frozenset({CONTENT_MISSING_LANGUAGE, TERMS_MISSING_LANGUAGE, CONTENT_MISSING_GROUP, TERMS_MISSING_GROUP})

# How many duplicate groups are listed in fix_context.
DUPLICATE_SAMPLE_SIZE = 20


class MultilingualIntegrityCheck(FixableHealthCheck):
    check_id = "multilingual_integrity"
    name = "Multilingual integrity"
    category = "multilingual"

    def __init__(
        self,
        config: MultilingualConfig,
        types: ContentTypeRegistry | None = None,
        batch_limit: int | None = None,
    ):
        self.config = config
        self.types = types if types is not None else content_type_registry
        self.batch_limit = batch_limit if batch_limit is not None else settings.diagnostics_fix_batch_limit

    # ── Scopes ───────────────────────────────────────────────────────────────

    def _content_scope(self, query):
        return query.where(
            ContentItem.content_type.in_(self.types.multilingual_types()),
            ContentItem.status.notin_(TRANSIENT_STATUSES),
        )

    def _membership_scope(self, query):
        # trashed and auto-draft rows still occupy their language in the group
        return query.where(ContentItem.content_type.in_(self.types.multilingual_types()))

    def _term_scope(self, query):
        return query.where(TaxonomyTerm.taxonomy.in_(self.types.public_taxonomies()))

    async def _count(self, db: AsyncSession, query) -> int:
        result = await db.execute(query)
        return int(result.scalar() or 0)

    async def _duplicate_groups(self, db: AsyncSession, model, scope) -> list[dict[str, Any]]:
        query = scope(
            select(model.translation_group, model.language, func.count(model.id))
            .where(model.translation_group.isnot(None), model.language.isnot(None))
            .group_by(model.translation_group, model.language)
            .having(func.count(model.id) > 1)
            .order_by(model.translation_group, model.language)
        )
        result = await db.execute(query)
        return [{"group_id": group_id, "language": lang, "count": count} for group_id, lang, count in result.all()]

    # ── run ──────────────────────────────────────────────────────────────────

    async def run(self, db: AsyncSession) -> list[IntegrityViolation]:
        violations: list[IntegrityViolation] = []

        missing = await self._count(
            db, self._content_scope(select(func.count(ContentItem.id)).where(ContentItem.language.is_(None)))
        )
        if missing:
            violations.append(
                IntegrityViolation(
                    CONTENT_MISSING_LANGUAGE,
                    Severity.CRITICAL,
                    f"{missing} content item(s) have no language assigned",
                    can_fix=True,
                    fix_context={"count": missing},
                )
            )

        missing = await self._count(
            db, self._term_scope(select(func.count(TaxonomyTerm.id)).where(TaxonomyTerm.language.is_(None)))
        )
        if missing:
            violations.append(
                IntegrityViolation(
                    TERMS_MISSING_LANGUAGE,
                    Severity.CRITICAL,
                    f"{missing} taxonomy term(s) have no language assigned",
                    can_fix=True,
                    fix_context={"count": missing},
                )
            )

        ungrouped = await self._count(
            db,
            self._content_scope(
                select(func.count(ContentItem.id)).where(
                    ContentItem.language.isnot(None), ContentItem.translation_group.is_(None)
                )
            ),
        )
        if ungrouped:
            violations.append(
                IntegrityViolation(
                    CONTENT_MISSING_GROUP,
                    Severity.WARNING,
                    f"{ungrouped} content item(s) have a language but no translation group",
                    can_fix=True,
                    fix_context={"count": ungrouped},
                )
            )

        ungrouped = await self._count(
            db,
            self._term_scope(
                select(func.count(TaxonomyTerm.id)).where(
                    TaxonomyTerm.language.isnot(None), TaxonomyTerm.translation_group.is_(None)
                )
            ),
        )
        if ungrouped:
            violations.append(
                IntegrityViolation(
                    TERMS_MISSING_GROUP,
                    Severity.WARNING,
                    f"{ungrouped} taxonomy term(s) have a language but no translation group",
                    can_fix=True,
                    fix_context={"count": ungrouped},
                )
            )

        duplicates = await self._duplicate_groups(db, ContentItem, self._membership_scope)
        if duplicates:
            violations.append(
                IntegrityViolation(
                    DUPLICATE_CONTENT_LANGUAGES,
                    Severity.WARNING,
                    f"{len(duplicates)} content translation group(s) hold more than one item per language",
                    can_fix=False,
                    fix_context={"groups": duplicates[:DUPLICATE_SAMPLE_SIZE], "total": len(duplicates)},
                )
            )

        duplicates = await self._duplicate_groups(db, TaxonomyTerm, self._term_scope)
        if duplicates:
            violations.append(
                IntegrityViolation(
                    DUPLICATE_TERM_LANGUAGES,
                    Severity.WARNING,
                    f"{len(duplicates)} term translation group(s) hold more than one term per language",
                    can_fix=False,
                    fix_context={"groups": duplicates[:DUPLICATE_SAMPLE_SIZE], "total": len(duplicates)},
                )
            )

        return violations

    # ── Fixes ────────────────────────────────────────────────────────────────

    async def fix_preview(self, db: AsyncSession, issue_id: str, context: dict[str, Any] | None) -> str | None:
        lang = self.config.default_language
        if issue_id == CONTENT_MISSING_LANGUAGE:
            return f"Assign '{lang}' and a new translation group to up to {self.batch_limit} content item(s)"
        if issue_id == TERMS_MISSING_LANGUAGE:
            return f"Assign '{lang}' and a new translation group to up to {self.batch_limit} term(s)"
        if issue_id == CONTENT_MISSING_GROUP:
            return f"Create a translation group for up to {self.batch_limit} content item(s)"
        if issue_id == TERMS_MISSING_GROUP:
            return f"Create a translation group for up to {self.batch_limit} term(s)"
        return None

    async def apply_fix(self, db: AsyncSession, issue_id: str, context: dict[str, Any] | None) -> dict[str, Any]:
        if issue_id not in FIXABLE_ISSUES:
            raise FixNotAvailableError(self.check_id, issue_id)

        if issue_id in (CONTENT_MISSING_LANGUAGE, CONTENT_MISSING_GROUP):
            model, scope = ContentItem, self._content_scope
        else:
            model, scope = TaxonomyTerm, self._term_scope

        if issue_id in (CONTENT_MISSING_LANGUAGE, TERMS_MISSING_LANGUAGE):
            condition = model.language.is_(None)
        else:
            condition = (model.language.isnot(None)) & (model.translation_group.is_(None))

        result = await db.execute(scope(select(model).where(condition)).order_by(model.id).limit(self.batch_limit))
        rows = list(result.scalars().all())
        for row in rows:
            if not row.language:
                row.language = self.config.default_language
            if not row.translation_group:
                row.translation_group = new_group_id()
        await db.commit()

        remaining = await self._count(db, scope(select(func.count(model.id)).where(condition)))
        logger.info("Integrity fix %s: %d row(s) repaired, %d remaining", issue_id, len(rows), remaining)
        return {"fixed": len(rows), "remaining": remaining}
