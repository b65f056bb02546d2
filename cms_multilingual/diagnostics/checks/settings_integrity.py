"""
Settings integrity check

Reports core option keys that are missing from ``site_options`` entirely
(fixable by writing the registered defaults) and a default language that is
not among the configured languages (left to an administrator).
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession  # noqa: TC002

from cms_multilingual.diagnostics.base import FixableHealthCheck, IntegrityViolation, Severity
from cms_multilingual.exceptions import FixNotAvailableError
from cms_multilingual.models.site_option import SiteOption
from cms_multilingual.services.settings_service import CORE_OPTION_KEYS, MULTILINGUAL_KEY, SettingsService

logger = logging.getLogger(__name__)

MISSING_OPTION_PREFIX = "missing_core_option_"
DEFAULT_LANGUAGE_NOT_ENABLED = "default_language_not_enabled"


class SettingsIntegrityCheck(FixableHealthCheck):
    check_id = "settings_integrity"
    name = "Settings integrity"
    category = "settings"

    def __init__(self, option_keys: tuple[str, ...] = CORE_OPTION_KEYS, hooks=None):
        self.option_keys = option_keys
        self.hooks = hooks

    async def run(self, db: AsyncSession) -> list[IntegrityViolation]:
        result = await db.execute(select(SiteOption.key, SiteOption.value).where(SiteOption.key.in_(self.option_keys)))
        stored = dict(result.all())

        violations = [
            IntegrityViolation(
                f"{MISSING_OPTION_PREFIX}{key}",
                Severity.WARNING,
                f"Core option '{key}' is missing",
                can_fix=True,
                fix_context={"type": "populate_option", "key": key},
            )
            for key in self.option_keys
            if key not in stored
        ]

        multilingual = stored.get(MULTILINGUAL_KEY)
        if isinstance(multilingual, dict) and multilingual.get("languages"):
            default = multilingual.get("default_language")
            codes = [lang.get("code") for lang in multilingual["languages"] if isinstance(lang, dict)]
            if default and default not in codes:
                violations.append(
                    IntegrityViolation(
                        DEFAULT_LANGUAGE_NOT_ENABLED,
                        Severity.WARNING,
                        f"Default language '{default}' is not in the configured language list",
                        can_fix=False,
                        fix_context={"default_language": default, "languages": codes},
                    )
                )
        return violations

    def _option_key(self, issue_id: str, context: dict[str, Any] | None) -> str | None:
        if context and context.get("type") == "populate_option":
            key = context.get("key")
        elif issue_id.startswith(MISSING_OPTION_PREFIX):
            key = issue_id[len(MISSING_OPTION_PREFIX) :]
        else:
            return None
        return key if key in self.option_keys else None

    async def fix_preview(self, db: AsyncSession, issue_id: str, context: dict[str, Any] | None) -> str | None:
        key = self._option_key(issue_id, context)
        if key is None:
            return None
        return f"Populate option '{key}' with its default values"

    async def apply_fix(self, db: AsyncSession, issue_id: str, context: dict[str, Any] | None) -> dict[str, Any]:
        key = self._option_key(issue_id, context)
        if key is None:
            raise FixNotAvailableError(self.check_id, issue_id)
        await SettingsService(db, self.hooks).populate_defaults(key)
        return {"fixed": 1, "key": key}
