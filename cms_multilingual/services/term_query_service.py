"""
Term Query Service

Term listings built in two filterable stages:

1. ``terms.query_args``    - filters receive the TermQuery and may add constraints
2. ``terms.query_clauses`` - filters receive the compiled TermClauses and may
                             rewrite joins and ordering

Two filters ship with the engine:

LanguageScopeFilter
    When the listing is bound to a content item (e.g. an assignment widget on
    the edit screen) only terms in that item's language are returned, falling
    back to the default language for items that have none yet. A marker flag
    on the query keeps the constraint from being appended twice.

TermOrderTransform
    Outer-joins the explicit per-term position and orders by
    (position, name, previous ordering). Count queries and orderings other
    than name/id are left alone.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession  # noqa: TC002

from cms_multilingual.exceptions import ValidationError
from cms_multilingual.models.content_item import ContentItem
from cms_multilingual.models.taxonomy_term import TaxonomyTerm, TermSortOrder
from cms_multilingual.plugins.hooks import HOOK_TERMS_QUERY_ARGS, HOOK_TERMS_QUERY_CLAUSES
from cms_multilingual.services.settings_service import MultilingualConfig

logger = logging.getLogger(__name__)

LANGUAGE_SCOPED_FLAG = "language_scoped"
CUSTOM_ORDER_FLAG = "custom_order"

FIELDS_ALL = "all"
FIELDS_IDS = "ids"
FIELDS_COUNT = "count"
VALID_FIELDS = frozenset({FIELDS_ALL, FIELDS_IDS, FIELDS_COUNT})

ORDERBY_COLUMNS = {
    "name": TaxonomyTerm.name,
    "id": TaxonomyTerm.id,
    "term_id": TaxonomyTerm.id,
    "slug": TaxonomyTerm.slug,
}
CUSTOM_ORDER_ORDERBY = frozenset({"name", "term_id", "id"})

FILTERABLE_COLUMNS = {
    "language": TaxonomyTerm.language,
    "translation_group": TaxonomyTerm.translation_group,
    "parent_id": TaxonomyTerm.parent_id,
}


@dataclass
class TermQuery:
    taxonomies: list[str]
    fields: str = FIELDS_ALL
    orderby: str | None = None
    order: str = "ASC"
    filters: list[dict[str, Any]] = field(default_factory=list)
    content_context: bool = False
    context_content_id: int | None = None
    context_language: str | None = None
    flags: set[str] = field(default_factory=set)

    def __post_init__(self) -> None:
        if self.context_content_id is not None:
            self.content_context = True
        if self.fields not in VALID_FIELDS:
            raise ValidationError(f"Unsupported fields value: {self.fields}", field="fields")
        if self.orderby is not None and self.orderby not in ORDERBY_COLUMNS:
            raise ValidationError(f"Unsupported orderby value: {self.orderby}", field="orderby")
        self.order = (self.order or "ASC").upper()
        if self.order not in ("ASC", "DESC"):
            raise ValidationError(f"Unsupported order value: {self.order}", field="order")


@dataclass
class TermClauses:
    statement: Any
    order_by: list[Any] = field(default_factory=list)
    order: str = "ASC"
    flags: set[str] = field(default_factory=set)


class LanguageScopeFilter:
    def __init__(self, config: MultilingualConfig):
        self.config = config

    def __call__(self, query: TermQuery) -> TermQuery:
        if not self.config.is_active or not query.content_context:
            return query
        if LANGUAGE_SCOPED_FLAG in query.flags:
            return query

        query.flags.add(LANGUAGE_SCOPED_FLAG)
        lang = query.context_language or self.config.default_language
        query.filters.append({"field": "language", "value": lang})
        return query


class TermOrderTransform:
    def __call__(self, clauses: TermClauses, query: TermQuery) -> TermClauses:
        if query.fields == FIELDS_COUNT:
            return clauses
        if query.orderby is not None and query.orderby not in CUSTOM_ORDER_ORDERBY:
            return clauses
        if CUSTOM_ORDER_FLAG in clauses.flags:
            return clauses

        existing = [col.desc() if clauses.order == "DESC" else col for col in clauses.order_by]
        clauses.statement = clauses.statement.outerjoin(TermSortOrder, TermSortOrder.term_id == TaxonomyTerm.id)
        # Terms without an explicit position sort after positioned ones.
        clauses.order_by = [
            TermSortOrder.position.is_(None),
            TermSortOrder.position.asc(),
            TaxonomyTerm.name.asc(),
            *existing,
        ]
        clauses.order = ""
        clauses.flags.add(CUSTOM_ORDER_FLAG)
        return clauses


class TermQueryService:
    def __init__(self, db: AsyncSession, config: MultilingualConfig, hooks=None):
        self.db = db
        self.config = config
        self.hooks = hooks

    async def _resolve_context_language(self, query: TermQuery) -> None:
        if query.context_language or query.context_content_id is None:
            return
        result = await self.db.execute(select(ContentItem.language).where(ContentItem.id == query.context_content_id))
        query.context_language = result.scalar()

    def build_clauses(self, query: TermQuery) -> TermClauses:
        if query.fields == FIELDS_COUNT:
            statement = select(func.count(TaxonomyTerm.id))
        elif query.fields == FIELDS_IDS:
            statement = select(TaxonomyTerm.id)
        else:
            statement = select(TaxonomyTerm)

        if query.taxonomies:
            statement = statement.where(TaxonomyTerm.taxonomy.in_(query.taxonomies))
        for constraint in query.filters:
            column = FILTERABLE_COLUMNS.get(constraint.get("field"))
            if column is None:
                raise ValidationError(f"Unsupported term filter: {constraint.get('field')}", field="filters")
            value = constraint.get("value")
            statement = statement.where(column.is_(None) if value is None else column == value)

        order_by = [] if query.fields == FIELDS_COUNT else [ORDERBY_COLUMNS[query.orderby or "name"]]
        return TermClauses(statement=statement, order_by=order_by, order=query.order)

    async def list_terms(self, query: TermQuery) -> list[TaxonomyTerm] | list[int] | int:
        await self._resolve_context_language(query)
        if self.hooks is not None:
            query = self.hooks.apply_filters(HOOK_TERMS_QUERY_ARGS, query)

        clauses = self.build_clauses(query)
        if self.hooks is not None:
            clauses = self.hooks.apply_filters(HOOK_TERMS_QUERY_CLAUSES, clauses, query)

        statement = clauses.statement
        if query.fields == FIELDS_COUNT:
            result = await self.db.execute(statement)
            return int(result.scalar() or 0)

        ordering = [col.desc() for col in clauses.order_by] if clauses.order == "DESC" else list(clauses.order_by)
        result = await self.db.execute(statement.order_by(*ordering))
        rows = list(result.scalars().all())
        logger.debug("Term listing %s returned %d rows", query.taxonomies, len(rows))
        return rows
