"""
Hook Constants

Centralised list of hook names the multilingual engine fires and subscribes to.
Hook names follow the `category.action` convention.
"""

from __future__ import annotations

# ── Content lifecycle ──────────────────────────────────────────────────────────
HOOK_CONTENT_INSERTED = "content.inserted"
HOOK_CONTENT_SAVED = "content.saved"

# ── Term lifecycle ────────────────────────────────────────────────────────────
HOOK_TERM_SAVED = "term.saved"

# ── Term listing pipeline (filters) ───────────────────────────────────────────
HOOK_TERMS_QUERY_ARGS = "terms.query_args"
HOOK_TERMS_QUERY_CLAUSES = "terms.query_clauses"

# ── Configuration / translation events ────────────────────────────────────────
HOOK_SETTINGS_UPDATED = "settings.updated"
HOOK_TRANSLATION_CREATED = "translation.created"

# ── Master list ───────────────────────────────────────────────────────────────
ALL_HOOKS: list[str] = [
    HOOK_CONTENT_INSERTED,
    HOOK_CONTENT_SAVED,
    HOOK_TERM_SAVED,
    HOOK_TERMS_QUERY_ARGS,
    HOOK_TERMS_QUERY_CLAUSES,
    HOOK_SETTINGS_UPDATED,
    HOOK_TRANSLATION_CREATED,
]

# Named callbacks that must be registered at most once per hook.
CRITICAL_CALLBACKS: dict[str, str] = {
    "default_language_on_insert": HOOK_CONTENT_INSERTED,
    "assign_language": HOOK_CONTENT_SAVED,
    "taxonomy_sync": HOOK_CONTENT_SAVED,
    "slug_normalization": HOOK_CONTENT_SAVED,
    "term_language": HOOK_TERM_SAVED,
    "term_language_scope": HOOK_TERMS_QUERY_ARGS,
    "term_custom_order": HOOK_TERMS_QUERY_CLAUSES,
    "route_table_dirty": HOOK_SETTINGS_UPDATED,
}
