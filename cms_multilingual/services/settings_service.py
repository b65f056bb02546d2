"""
Settings Service

Stored site options (one JSON document per key in ``site_options``) plus the
typed multilingual configuration built from them.

Known keys are declared in OPTION_DEFAULTS; reading a key merges the stored
document over its defaults, so callers never see a partially populated blob.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession  # noqa: TC002

from cms_multilingual.config import settings
from cms_multilingual.exceptions import ValidationError
from cms_multilingual.i18n.locale import get_language_label, normalize_language_code
from cms_multilingual.models.site_option import SiteOption
from cms_multilingual.plugins.hooks import HOOK_SETTINGS_UPDATED

logger = logging.getLogger(__name__)

MULTILINGUAL_KEY = "multilingual_settings"
SITE_IMAGES_KEY = "site_images"
SITE_SEO_KEY = "site_seo"

CORE_OPTION_KEYS: tuple[str, ...] = (MULTILINGUAL_KEY, SITE_IMAGES_KEY, SITE_SEO_KEY)


# ── Typed multilingual configuration ──────────────────────────────────────────


class LanguageConfig(BaseModel):
    code: str
    label: str = ""

    @field_validator("code")
    @classmethod
    def _normalize_code(cls, v: str) -> str:
        return normalize_language_code(v)

    @model_validator(mode="after")
    def _default_label(self) -> LanguageConfig:
        if not self.label:
            self.label = get_language_label(self.code)
        return self


class MultilingualConfig(BaseModel):
    """Multilingual site configuration.

    ``permalink_bases`` maps entity type → language → base segment;
    ``taxonomy_bases`` maps taxonomy → language → base segment.
    """

    enabled: bool = False
    default_language: str = Field(default_factory=lambda: settings.default_language)
    languages: list[LanguageConfig] = Field(default_factory=list)
    fallback_enabled: bool = False
    fallback_language: str = Field(default_factory=lambda: settings.default_language)
    permalinks_enabled: bool = False
    permalink_bases: dict[str, dict[str, str]] = Field(default_factory=dict)
    taxonomy_bases: dict[str, dict[str, str]] = Field(default_factory=dict)
    localized_taxonomies_enabled: bool = False

    @field_validator("default_language", "fallback_language")
    @classmethod
    def _normalize_lang(cls, v: str) -> str:
        return normalize_language_code(v)

    @field_validator("permalink_bases", "taxonomy_bases")
    @classmethod
    def _clean_bases(cls, v: dict[str, dict[str, str]]) -> dict[str, dict[str, str]]:
        cleaned: dict[str, dict[str, str]] = {}
        for name, per_lang in (v or {}).items():
            cleaned[name] = {
                normalize_language_code(lang): str(base).strip().strip("/")
                for lang, base in (per_lang or {}).items()
                if base is not None and str(base).strip().strip("/")
            }
        return cleaned

    @property
    def language_codes(self) -> list[str]:
        """Configured codes in order; the default language is always included."""
        codes = [lang.code for lang in self.languages]
        if self.default_language not in codes:
            codes.insert(0, self.default_language)
        return codes

    @property
    def non_default_languages(self) -> list[str]:
        return [code for code in self.language_codes if code != self.default_language]

    @property
    def is_active(self) -> bool:
        return self.enabled and bool(self.languages)

    def has_language(self, code: str) -> bool:
        return code in self.language_codes

    def permalink_base(self, entity_type: str, lang: str) -> str | None:
        return self.permalink_bases.get(entity_type, {}).get(lang) or None

    def taxonomy_base(self, taxonomy: str, lang: str) -> str | None:
        return self.taxonomy_bases.get(taxonomy, {}).get(lang) or None


# ── Option registry ───────────────────────────────────────────────────────────


def _multilingual_defaults() -> dict[str, Any]:
    return MultilingualConfig().model_dump(mode="json")


OPTION_DEFAULTS: dict[str, Any] = {
    MULTILINGUAL_KEY: _multilingual_defaults,
    SITE_IMAGES_KEY: lambda: {"social_icon_id": None, "og_default_id": None},
    SITE_SEO_KEY: lambda: {"title": "", "description": "", "title_separator": "|"},
}


class SettingsService:
    """Read, merge, validate, and persist stored site options."""

    def __init__(self, db: AsyncSession, hooks=None):
        self.db = db
        self.hooks = hooks

    @staticmethod
    def get_defaults(key: str) -> dict[str, Any]:
        factory = OPTION_DEFAULTS.get(key)
        if factory is None:
            raise ValidationError(f"Unknown option key: {key}", field="key")
        return factory()

    async def _load(self, key: str) -> SiteOption | None:
        result = await self.db.execute(select(SiteOption).where(SiteOption.key == key))
        return result.scalars().first()

    async def option_exists(self, key: str) -> bool:
        return await self._load(key) is not None

    async def get(self, key: str) -> dict[str, Any]:
        """Return the stored document merged over the registered defaults."""
        defaults = self.get_defaults(key)
        option = await self._load(key)
        stored = option.value if option is not None and isinstance(option.value, dict) else {}
        return {**defaults, **stored}

    async def save(self, key: str, data: dict[str, Any]) -> dict[str, Any]:
        """Merge `data` over the current value, validate, persist, and fire settings.updated."""
        merged = {**(await self.get(key)), **(data or {})}
        if key == MULTILINGUAL_KEY:
            try:
                merged = MultilingualConfig.model_validate(merged).model_dump(mode="json")
            except ValueError as exc:
                raise ValidationError(f"Invalid multilingual settings: {exc}", field=key) from exc

        await self._write(key, merged)
        logger.info("Settings saved: %s", key)
        if self.hooks is not None:
            await self.hooks.do_action(HOOK_SETTINGS_UPDATED, {"key": key})
        return merged

    async def populate_defaults(self, key: str) -> dict[str, Any]:
        """Write the registered defaults for `key`, replacing any stored value."""
        defaults = self.get_defaults(key)
        await self._write(key, defaults)
        logger.info("Settings populated with defaults: %s", key)
        if self.hooks is not None:
            await self.hooks.do_action(HOOK_SETTINGS_UPDATED, {"key": key})
        return defaults

    async def _write(self, key: str, value: dict[str, Any]) -> None:
        option = await self._load(key)
        if option is None:
            self.db.add(SiteOption(key=key, value=value))
        else:
            option.value = value
        await self.db.commit()

    async def get_multilingual_config(self) -> MultilingualConfig:
        data = await self.get(MULTILINGUAL_KEY)
        try:
            return MultilingualConfig.model_validate(data)
        except ValueError as exc:
            logger.warning("Stored multilingual settings invalid, using defaults: %s", exc)
            return MultilingualConfig()
