"""
Field Registry

In-process field-schema registry: field groups with location rules, resolved
against an evaluation context to the flat set of field definitions that apply.

Rule groups combine with OR; rules inside one group combine with AND.
Supported rule types:
    content_type   - context["content_type"] equals value
    content_id     - context["content_id"] equals int(value)
    template       - context["template"] equals value
    taxonomy_term  - int(value) is among context["taxonomy_terms"][rule["taxonomy"]]

Only field definitions are held here; values live in ``content_field_values``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)

SECTION_TYPES = frozenset({"section", "ui_section"})


@dataclass
class FieldGroup:
    name: str
    fields: list[dict[str, Any]] = field(default_factory=list)
    rule_groups: list[list[dict[str, Any]]] = field(default_factory=list)


def _evaluate_rule(rule: dict[str, Any], context: dict[str, Any]) -> bool:
    rule_type = rule.get("type", "")
    value = rule.get("value", "")

    if rule_type == "content_type":
        return context.get("content_type") == value
    if rule_type == "content_id":
        try:
            return context.get("content_id") is not None and int(context["content_id"]) == int(value)
        except (TypeError, ValueError):
            return False
    if rule_type == "template":
        return (context.get("template") or "") == value
    if rule_type == "taxonomy_term":
        terms = context.get("taxonomy_terms", {}).get(rule.get("taxonomy", ""), [])
        try:
            return int(value) in [int(t) for t in terms]
        except (TypeError, ValueError):
            return False
    return False


def _evaluate_rule_groups(rule_groups: list[list[dict[str, Any]]], context: dict[str, Any]) -> bool:
    for rules in rule_groups:
        if rules and all(_evaluate_rule(rule, context) for rule in rules):
            return True
    return False


def flatten_fields(fields: list[dict[str, Any]], into: dict[str, dict[str, Any]] | None = None) -> dict[str, dict[str, Any]]:
    """Flatten a field tree into {name: definition}; sections contribute only their children."""
    flat = into if into is not None else {}
    for definition in fields:
        if definition.get("type") in SECTION_TYPES:
            flatten_fields(definition.get("sub_fields") or [], flat)
            continue
        if definition.get("name"):
            flat[definition["name"]] = definition
    return flat


class FieldRegistry:
    """Registry of field groups keyed by name."""

    def __init__(self) -> None:
        self._groups: dict[str, FieldGroup] = {}

    def register_group(
        self,
        name: str,
        fields: list[dict[str, Any]],
        rule_groups: list[list[dict[str, Any]]],
    ) -> FieldGroup:
        group = FieldGroup(name=name, fields=list(fields), rule_groups=[list(r) for r in rule_groups])
        self._groups[name] = group
        logger.debug("Field group registered: %s (%d fields)", name, len(fields))
        return group

    def unregister_group(self, name: str) -> None:
        self._groups.pop(name, None)

    def get_field_groups(self, context: dict[str, Any]) -> list[FieldGroup]:
        """Groups whose location rules match the context. Groups without rules never match."""
        return [g for g in self._groups.values() if g.rule_groups and _evaluate_rule_groups(g.rule_groups, context)]

    def get_fields_for_context(self, context: dict[str, Any]) -> dict[str, dict[str, Any]]:
        fields: dict[str, dict[str, Any]] = {}
        for group in self.get_field_groups(context):
            flatten_fields(group.fields, fields)
        return fields


# ── Global singleton ──────────────────────────────────────────────────────────
field_registry = FieldRegistry()
