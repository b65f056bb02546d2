"""
Language code helpers shared by settings, translation creation and the HTTP layer.

Codes are stored lower-case with "-" as separator ("pt-br"). Labels fall back
to the code itself when no name is known.
"""

from __future__ import annotations

import re

# ── Constants ─────────────────────────────────────────────────────────────────

# Base language (2-3 letters) plus optional subtags, e.g. "fr", "pt-br", "zh-hant"
LANGUAGE_CODE_PATTERN = re.compile(r"^[a-z]{2,3}(-[a-z0-9]{2,8})*$")

# BCP 47 base language codes whose scripts read right-to-left
RTL_LOCALES: frozenset[str] = frozenset({"ar", "he", "fa", "ur", "yi", "ku"})

# Human-readable names used as labels when a configured language has none
LANGUAGE_NAMES: dict[str, str] = {
    "de": "Deutsch",
    "en": "English",
    "fr": "Français",
    "it": "Italiano",
    "es": "Español",
    "ar": "العربية",
    "zh": "中文",
    "ja": "日本語",
    "pt": "Português",
    "nl": "Nederlands",
}


# ── Public helpers ────────────────────────────────────────────────────────────


def normalize_language_code(code: str | None) -> str:
    """Return the canonical lower-case form of a language code.

    Raises:
        ValueError: if the code is empty or does not look like a language tag.
    """
    if not code or not isinstance(code, str):
        raise ValueError("Language code must be a non-empty string")
    normalized = code.strip().lower().replace("_", "-")
    if not LANGUAGE_CODE_PATTERN.match(normalized):
        raise ValueError(f"Invalid language code: {code!r}")
    return normalized


def is_rtl_locale(locale: str) -> bool:
    """Return True when the given locale is right-to-left.

    Compares only the base language tag, so both "ar" and "ar-SA" are RTL.
    """
    base = locale.split("-")[0].lower()
    return base in RTL_LOCALES


def _weighted_tags(header: str) -> list[str]:
    """Tags of an Accept-Language header, highest q first; ties keep header order."""
    entries: list[tuple[float, int, str]] = []
    for position, raw in enumerate(header.split(",")):
        tag, *params = (piece.strip() for piece in raw.split(";"))
        if not tag:
            continue
        quality = 1.0
        for param in params:
            name, _, value = param.partition("=")
            if name.strip().lower() != "q":
                continue
            try:
                quality = float(value)
            except ValueError:
                quality = 1.0
        entries.append((-quality, position, tag.lower()))
    return [tag for _, _, tag in sorted(entries)]


def parse_accept_language(header: str, supported: list[str]) -> str | None:
    """Best configured language for an Accept-Language header, or None.

    A tag matches a configured code exactly or through its base language
    ("fr-CA" picks "fr").
    """
    if not header:
        return None
    by_lower = {code.lower(): code for code in reversed(supported)}
    for tag in _weighted_tags(header):
        match = by_lower.get(tag) or by_lower.get(tag.split("-")[0])
        if match is not None:
            return match
    return None


def get_language_label(code: str) -> str:
    """Human-readable label for a language code, falling back to the code itself."""
    return LANGUAGE_NAMES.get(code.split("-")[0].lower(), code)


def get_language_info(code: str) -> dict[str, object]:
    """Return ``{"code", "name", "is_rtl"}`` for a language code."""
    return {
        "code": code,
        "name": get_language_label(code),
        "is_rtl": is_rtl_locale(code),
    }
