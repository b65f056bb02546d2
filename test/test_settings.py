"""
Site option and multilingual configuration tests
"""

import pytest

from cms_multilingual.exceptions import ValidationError
from cms_multilingual.models.site_option import SiteOption
from cms_multilingual.plugins.hooks import HOOK_SETTINGS_UPDATED
from cms_multilingual.plugins.registry import HookRegistry
from cms_multilingual.services.settings_service import (
    MULTILINGUAL_KEY,
    SITE_SEO_KEY,
    MultilingualConfig,
    SettingsService,
)


class TestMultilingualConfig:
    def test_default_language_always_listed(self):
        config = MultilingualConfig(enabled=True, default_language="de", languages=[{"code": "fr"}])

        assert config.language_codes == ["de", "fr"]
        assert config.non_default_languages == ["fr"]

    def test_codes_and_bases_normalized(self):
        config = MultilingualConfig(
            default_language="DE",
            languages=[{"code": "EN_gb"}],
            permalink_bases={"product": {"FR": "/produits/", "en": "  "}},
        )

        assert config.default_language == "de"
        assert config.languages[0].code == "en-gb"
        assert config.permalink_bases == {"product": {"fr": "produits"}}
        assert config.permalink_base("product", "en") is None

    def test_labels_filled_in(self):
        config = MultilingualConfig(languages=[{"code": "fr"}, {"code": "de", "label": "Deutsch (CH)"}])

        assert config.languages[0].label
        assert config.languages[1].label == "Deutsch (CH)"

    def test_inactive_without_languages(self):
        assert not MultilingualConfig(enabled=True).is_active
        assert MultilingualConfig(enabled=True, languages=[{"code": "de"}]).is_active

    def test_invalid_code_rejected(self):
        with pytest.raises(ValueError):
            MultilingualConfig(languages=[{"code": "not a code!"}])


class TestSettingsService:
    async def test_unsaved_key_returns_defaults(self, test_db):
        seo = await SettingsService(test_db).get(SITE_SEO_KEY)

        assert seo == {"title": "", "description": "", "title_separator": "|"}

    async def test_stored_value_merged_over_defaults(self, test_db):
        test_db.add(SiteOption(key=SITE_SEO_KEY, value={"title": "Shop"}))
        await test_db.commit()

        seo = await SettingsService(test_db).get(SITE_SEO_KEY)

        assert seo["title"] == "Shop"
        assert seo["title_separator"] == "|"

    async def test_unknown_key(self, test_db):
        with pytest.raises(ValidationError):
            await SettingsService(test_db).get("nope")

    async def test_save_round_trips_config_and_fires_hook(self, test_db):
        hooks = HookRegistry()
        fired = []

        async def _listener(payload):
            fired.append(payload["key"])

        hooks.add_action(HOOK_SETTINGS_UPDATED, _listener)
        service = SettingsService(test_db, hooks)

        await service.save(
            MULTILINGUAL_KEY, {"enabled": True, "default_language": "en", "languages": [{"code": "en"}, {"code": "fr"}]}
        )
        config = await service.get_multilingual_config()

        assert config.is_active
        assert config.language_codes == ["en", "fr"]
        assert fired == [MULTILINGUAL_KEY]

    async def test_save_rejects_invalid_config(self, test_db):
        service = SettingsService(test_db)

        with pytest.raises(ValidationError):
            await service.save(MULTILINGUAL_KEY, {"languages": [{"code": "!!"}]})

        assert not await service.option_exists(MULTILINGUAL_KEY)

    async def test_populate_defaults_replaces_value(self, test_db):
        test_db.add(SiteOption(key=SITE_SEO_KEY, value={"title": "Old"}))
        await test_db.commit()

        await SettingsService(test_db).populate_defaults(SITE_SEO_KEY)

        assert (await test_db.get(SiteOption, SITE_SEO_KEY)).value["title"] == ""

    async def test_populate_defaults_fires_hook(self, test_db):
        hooks = HookRegistry()
        fired = []

        async def _listener(payload):
            fired.append(payload["key"])

        hooks.add_action(HOOK_SETTINGS_UPDATED, _listener)

        await SettingsService(test_db, hooks).populate_defaults(MULTILINGUAL_KEY)

        assert fired == [MULTILINGUAL_KEY]

    async def test_invalid_stored_config_falls_back(self, test_db):
        test_db.add(SiteOption(key=MULTILINGUAL_KEY, value={"enabled": True, "languages": [{"code": "??"}]}))
        await test_db.commit()

        config = await SettingsService(test_db).get_multilingual_config()

        assert config.enabled is False
