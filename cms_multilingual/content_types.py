"""
Content type and taxonomy registry

Declares which entity types exist, their URL base segments, and which
taxonomies attach to them. The multilingual engine consults it for:
- which types take part in translation (``multilingual``)
- the default base segment used when localizing permalinks
- which taxonomies are synchronized across sibling translations

Registering a type or taxonomy notifies listeners; the route table uses this
to mark itself dirty.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

# Types that never receive localized routes of their own.
NON_ROUTABLE_TYPES: frozenset[str] = frozenset({"page", "attachment"})


@dataclass
class ContentTypeDefinition:
    name: str
    base: str = ""
    public: bool = True
    multilingual: bool = True
    hierarchical: bool = False
    taxonomies: list[str] = field(default_factory=list)


@dataclass
class TaxonomyDefinition:
    name: str
    base: str = ""
    public: bool = True
    object_types: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.base:
            self.base = self.name


class ContentTypeRegistry:
    """In-process registry of content types and taxonomies."""

    def __init__(self, with_builtins: bool = True) -> None:
        self._types: dict[str, ContentTypeDefinition] = {}
        self._taxonomies: dict[str, TaxonomyDefinition] = {}
        self._listeners: list[Callable[[str, str], None]] = []
        if with_builtins:
            self._register_builtins()

    def _register_builtins(self) -> None:
        self._types["post"] = ContentTypeDefinition("post", base="", taxonomies=["category", "tag"])
        self._types["page"] = ContentTypeDefinition("page", base="", hierarchical=True)
        self._taxonomies["category"] = TaxonomyDefinition("category", base="category", object_types=["post"])
        self._taxonomies["tag"] = TaxonomyDefinition("tag", base="tag", object_types=["post"])

    # ── Registration ──────────────────────────────────────────────────────────

    def register_type(self, definition: ContentTypeDefinition) -> None:
        self._types[definition.name] = definition
        for taxonomy in definition.taxonomies:
            tax = self._taxonomies.get(taxonomy)
            if tax and definition.name not in tax.object_types:
                tax.object_types.append(definition.name)
        logger.info("Content type registered: %s (base=%r)", definition.name, definition.base)
        self._notify("type", definition.name)

    def register_taxonomy(self, definition: TaxonomyDefinition) -> None:
        self._taxonomies[definition.name] = definition
        for type_name in definition.object_types:
            ctype = self._types.get(type_name)
            if ctype and definition.name not in ctype.taxonomies:
                ctype.taxonomies.append(definition.name)
        logger.info("Taxonomy registered: %s (base=%r)", definition.name, definition.base)
        self._notify("taxonomy", definition.name)

    def add_listener(self, listener: Callable[[str, str], None]) -> None:
        """Call ``listener(kind, name)`` after every registration. Adding the same listener twice is a no-op."""
        if listener not in self._listeners:
            self._listeners.append(listener)

    def _notify(self, kind: str, name: str) -> None:
        for listener in self._listeners:
            listener(kind, name)

    # ── Lookup ────────────────────────────────────────────────────────────────

    def get_type(self, name: str) -> ContentTypeDefinition | None:
        return self._types.get(name)

    def get_taxonomy(self, name: str) -> TaxonomyDefinition | None:
        return self._taxonomies.get(name)

    def all_types(self) -> list[ContentTypeDefinition]:
        return list(self._types.values())

    def all_taxonomies(self) -> list[TaxonomyDefinition]:
        return list(self._taxonomies.values())

    def is_multilingual(self, type_name: str) -> bool:
        ctype = self._types.get(type_name)
        return bool(ctype and ctype.multilingual and ctype.public and type_name != "attachment")

    def multilingual_types(self) -> list[str]:
        return [t.name for t in self._types.values() if self.is_multilingual(t.name)]

    def taxonomies_for(self, type_name: str) -> list[str]:
        """Taxonomies attached to a content type, in registration order."""
        return [tax.name for tax in self._taxonomies.values() if type_name in tax.object_types]

    def public_taxonomies(self) -> list[str]:
        return [tax.name for tax in self._taxonomies.values() if tax.public]

    def routable_types(self) -> list[ContentTypeDefinition]:
        """Public types that get their own localized route patterns."""
        return [t for t in self._types.values() if t.public and t.name not in NON_ROUTABLE_TYPES]


# ── Global singleton ──────────────────────────────────────────────────────────
content_type_registry = ContentTypeRegistry()
