"""
Localized Routing

LocalizedRoutingResolver computes language-prefixed paths for content items
and terms, and generates the route patterns that map such paths back.

Paths are returned without leading or trailing slashes:

    default language / permalinks disabled  → canonical path, e.g. ``shop/chair``
    other language                          → ``fr/produits/chair``
    pages                                   → ``fr/about/team``
    terms                                   → ``fr/categorie/news``

RouteTable holds the compiled patterns. Rebuilding is deferred: changes to
content types, languages, or bases only mark the table dirty, and the next
``maybe_flush`` call rebuilds it once.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any

from cms_multilingual.content_types import ContentTypeRegistry, content_type_registry
from cms_multilingual.models.content_item import ContentItem
from cms_multilingual.models.taxonomy_term import TaxonomyTerm
from cms_multilingual.services.settings_service import MultilingualConfig
from cms_multilingual.utils.metrics import record_route_rebuild

logger = logging.getLogger(__name__)

ENTITY_CONTENT = "content"
ENTITY_TERM = "term"
ENTITY_PAGE = "page"


@dataclass(frozen=True)
class RoutePattern:
    pattern: str
    entity: str
    target: str | None
    language: str | None

    @property
    def regex(self) -> re.Pattern:
        return re.compile(self.pattern)


@dataclass(frozen=True)
class RouteMatch:
    entity: str
    target: str | None
    language: str
    slug: str


def _join(*parts: str | None) -> str:
    return "/".join(p.strip("/") for p in parts if p and p.strip("/"))


class LocalizedRoutingResolver:
    def __init__(self, config: MultilingualConfig, types: ContentTypeRegistry | None = None):
        self.config = config
        self.types = types if types is not None else content_type_registry

    # ── Content ──────────────────────────────────────────────────────────────

    def canonical_content_path(self, item: ContentItem, page_uri: str | None = None) -> str:
        definition = self.types.get_type(item.content_type)
        if definition is not None and definition.hierarchical:
            return _join(page_uri or item.slug)
        base = definition.base if definition is not None else item.content_type
        return _join(base, item.slug)

    def resolve_content_path(self, item: ContentItem, page_uri: str | None = None) -> str:
        canonical = self.canonical_content_path(item, page_uri)
        if not self.config.permalinks_enabled or not self.types.is_multilingual(item.content_type):
            return canonical

        lang = item.language
        if not lang or lang == self.config.default_language:
            return canonical

        definition = self.types.get_type(item.content_type)
        if definition is not None and definition.hierarchical:
            return _join(lang, page_uri or item.slug)

        default_base = definition.base if definition is not None else item.content_type
        base = self.config.permalink_base(item.content_type, lang) or default_base
        return _join(lang, base, item.slug)

    # ── Terms ────────────────────────────────────────────────────────────────

    def _taxonomy_default_base(self, taxonomy: str) -> str:
        definition = self.types.get_taxonomy(taxonomy)
        return definition.base if definition is not None else taxonomy

    def canonical_term_path(self, term: TaxonomyTerm) -> str:
        return _join(self._taxonomy_default_base(term.taxonomy), term.slug)

    def resolve_term_path(self, term: TaxonomyTerm, canonical: str | None = None) -> str:
        path = _join(canonical) if canonical else self.canonical_term_path(term)
        if not self.config.permalinks_enabled:
            return path

        lang = term.language or self.config.default_language
        if lang == self.config.default_language:
            return path

        default_base = self._taxonomy_default_base(term.taxonomy)
        localized_base = self.config.taxonomy_base(term.taxonomy, lang) or default_base
        if localized_base != default_base:
            path = re.sub(rf"^{re.escape(default_base)}/", f"{localized_base}/", path)
        return _join(lang, path)

    # ── Route patterns ───────────────────────────────────────────────────────

    def build_route_patterns(self) -> list[RoutePattern]:
        """Patterns for every routable type and taxonomy per non-default language; page catch-all last."""
        if not self.config.enabled or not self.config.permalinks_enabled:
            return []
        languages = self.config.non_default_languages
        if not languages:
            return []

        patterns: list[RoutePattern] = []
        for definition in self.types.routable_types():
            if not definition.multilingual:
                continue
            for lang in languages:
                base = self.config.permalink_base(definition.name, lang) or definition.base
                # Base-less types are reached through the page catch-all.
                if not base:
                    continue
                patterns.append(
                    RoutePattern(rf"^{lang}/{re.escape(base)}/([^/]+)/?$", ENTITY_CONTENT, definition.name, lang)
                )

        for taxonomy in self.types.all_taxonomies():
            if not taxonomy.public:
                continue
            for lang in languages:
                base = self.config.taxonomy_base(taxonomy.name, lang) or taxonomy.base
                patterns.append(RoutePattern(rf"^{lang}/{re.escape(base)}/([^/]+)/?$", ENTITY_TERM, taxonomy.name, lang))

        lang_group = "|".join(re.escape(lang) for lang in languages)
        patterns.append(RoutePattern(rf"^({lang_group})/(.+?)/?$", ENTITY_PAGE, None, None))
        return patterns


class RouteTable:
    """Compiled localized route patterns with deferred rebuilds."""

    def __init__(self) -> None:
        self._patterns: list[tuple[RoutePattern, re.Pattern]] = []
        self._dirty = True
        self.build_count = 0

    @property
    def is_dirty(self) -> bool:
        return self._dirty

    @property
    def patterns(self) -> list[RoutePattern]:
        return [pattern for pattern, _ in self._patterns]

    def mark_dirty(self, reason: str = "") -> None:
        if not self._dirty:
            logger.debug("Route table marked dirty%s", f": {reason}" if reason else "")
        self._dirty = True

    def on_registry_change(self, kind: str, name: str) -> None:
        self.mark_dirty(f"{kind} {name} registered")

    async def handle_settings_updated(self, payload: dict[str, Any]) -> None:
        self.mark_dirty(f"option {payload.get('key')} updated")

    def maybe_flush(self, resolver: LocalizedRoutingResolver) -> bool:
        """Rebuild from `resolver` if dirty. Returns True when a rebuild happened."""
        if not self._dirty:
            return False
        self._patterns = [(pattern, pattern.regex) for pattern in resolver.build_route_patterns()]
        self._dirty = False
        self.build_count += 1
        record_route_rebuild()
        logger.info("Route table rebuilt: %d patterns", len(self._patterns))
        return True

    def match(self, path: str) -> RouteMatch | None:
        candidate = path.strip("/")
        for pattern, regex in self._patterns:
            found = regex.match(candidate)
            if found is None:
                continue
            if pattern.entity == ENTITY_PAGE:
                return RouteMatch(ENTITY_PAGE, None, found.group(1), found.group(2))
            return RouteMatch(pattern.entity, pattern.target, pattern.language, found.group(1))
        return None


# ── Global singleton ──────────────────────────────────────────────────────────
route_table = RouteTable()
