"""
Locale helper tests

Language code normalisation, Accept-Language negotiation against the
configured languages, and language metadata.
"""

import pytest

from cms_multilingual.i18n.locale import (
    get_language_info,
    get_language_label,
    is_rtl_locale,
    normalize_language_code,
    parse_accept_language,
)


class TestNormalizeLanguageCode:
    def test_lowercases_and_trims(self):
        assert normalize_language_code(" FR ") == "fr"

    def test_underscore_region_becomes_hyphen(self):
        assert normalize_language_code("pt_BR") == "pt-br"

    @pytest.mark.parametrize("bad", ["", None, "f", "french!", "12"])
    def test_rejects_malformed_codes(self, bad):
        with pytest.raises(ValueError):
            normalize_language_code(bad)


class TestAcceptLanguage:
    def test_exact_match(self):
        assert parse_accept_language("fr", ["de", "fr"]) == "fr"

    def test_quality_ordering(self):
        assert parse_accept_language("en;q=0.5, fr;q=0.9", ["de", "en", "fr"]) == "fr"

    def test_region_falls_back_to_base_language(self):
        assert parse_accept_language("fr-CA", ["de", "fr"]) == "fr"

    def test_no_match_returns_none(self):
        assert parse_accept_language("ja", ["de", "fr"]) is None

    def test_empty_header_returns_none(self):
        assert parse_accept_language("", ["de"]) is None


class TestLanguageInfo:
    def test_known_label(self):
        assert get_language_label("de") == "Deutsch"

    def test_unknown_label_falls_back_to_code(self):
        assert get_language_label("sw") == "sw"

    def test_rtl_detection_uses_base_tag(self):
        assert is_rtl_locale("ar-SA") is True
        assert is_rtl_locale("fr") is False

    def test_info_record(self):
        assert get_language_info("he") == {"code": "he", "name": "he", "is_rtl": True}
