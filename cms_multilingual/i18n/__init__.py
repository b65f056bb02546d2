"""
i18n (Internationalization) package

Language code normalisation, language metadata, RTL detection, and
Accept-Language header parsing for the multilingual engine.
"""

from .locale import (
    LANGUAGE_CODE_PATTERN,
    LANGUAGE_NAMES,
    RTL_LOCALES,
    get_language_info,
    get_language_label,
    is_rtl_locale,
    normalize_language_code,
    parse_accept_language,
)

__all__ = [
    "LANGUAGE_CODE_PATTERN",
    "LANGUAGE_NAMES",
    "RTL_LOCALES",
    "get_language_info",
    "get_language_label",
    "is_rtl_locale",
    "normalize_language_code",
    "parse_accept_language",
]
