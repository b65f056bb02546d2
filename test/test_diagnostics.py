"""
Integrity diagnostics tests

Issue log lifecycle and eviction, failure isolation of checks, and the
fixes shipped with the multilingual and settings checks.
"""

import pytest

from cms_multilingual.diagnostics import HealthCheckRegistry
from cms_multilingual.diagnostics.base import HealthCheck, IntegrityViolation, Severity
from cms_multilingual.diagnostics.checks import MultilingualIntegrityCheck, SettingsIntegrityCheck, StructuralSanityCheck
from cms_multilingual.diagnostics.checks.multilingual_integrity import (
    CONTENT_MISSING_GROUP,
    CONTENT_MISSING_LANGUAGE,
    DUPLICATE_CONTENT_LANGUAGES,
    TERMS_MISSING_LANGUAGE,
)
from cms_multilingual.diagnostics.registry import issue_uid
from cms_multilingual.exceptions import CheckNotFoundError, FixNotAvailableError, ServiceError
from cms_multilingual.models.site_option import SiteOption
from cms_multilingual.plugins.hooks import HOOK_CONTENT_SAVED
from cms_multilingual.services.settings_service import MULTILINGUAL_KEY, SITE_IMAGES_KEY, SITE_SEO_KEY


class ScriptedCheck(HealthCheck):
    """Reports whatever issue ids are currently in `issues`."""

    check_id = "scripted"
    name = "Scripted"
    category = "test"

    def __init__(self, *issues: str):
        self.issues = list(issues)
        self.fail = False

    async def run(self, db):
        if self.fail:
            raise RuntimeError("check crashed")
        return [IntegrityViolation(issue, Severity.WARNING, f"issue {issue}") for issue in self.issues]


class WritingCheck(HealthCheck):
    check_id = "writer"

    async def run(self, db):
        db.add(SiteOption(key="sneaky", value={}))
        return []


def _by_issue(entries):
    return {entry.issue_id: entry for entry in entries}


class TestLogLifecycle:
    async def test_new_issue_is_logged_active(self, test_db):
        registry = HealthCheckRegistry(test_db, max_entries=10)
        registry.register(ScriptedCheck("a"))

        summary = await registry.run_all()
        entry = await registry.get_entry("scripted", "a")

        assert summary["found"] == 1
        assert summary["new"] == 1
        assert entry.issue_uid == issue_uid("scripted", "a")
        assert entry.status == "active"
        assert entry.severity == "warning"
        assert entry.last_scan is not None

    async def test_issue_stays_active_across_scans(self, test_db):
        registry = HealthCheckRegistry(test_db, max_entries=10)
        registry.register(ScriptedCheck("a"))
        await registry.run_all()

        summary = await registry.run_all()

        assert summary["new"] == 0
        assert (await registry.get_entry("scripted", "a")).status == "active"

    async def test_issue_resolved_one_scan_after_it_disappears(self, test_db):
        check = ScriptedCheck("a", "b")
        registry = HealthCheckRegistry(test_db, max_entries=10)
        registry.register(check)
        await registry.run_all()

        check.issues = ["b"]
        summary = await registry.run_all()
        log = _by_issue(await registry.get_log())

        assert summary["resolved"] == 1
        assert log["a"].status == "resolved"
        assert log["b"].status == "active"

    async def test_resolved_issue_reactivates(self, test_db):
        check = ScriptedCheck("a")
        registry = HealthCheckRegistry(test_db, max_entries=10)
        registry.register(check)
        await registry.run_all()
        check.issues = []
        await registry.run_all()

        check.issues = ["a"]
        await registry.run_all()

        assert (await registry.get_entry("scripted", "a")).status == "active"

    async def test_log_filter_and_clear_resolved(self, test_db):
        check = ScriptedCheck("a", "b")
        registry = HealthCheckRegistry(test_db, max_entries=10)
        registry.register(check)
        await registry.run_all()
        check.issues = ["a"]
        await registry.run_all()

        assert [e.issue_id for e in await registry.get_log("resolved")] == ["b"]
        assert await registry.clear_resolved() == 1
        assert [e.issue_id for e in await registry.get_log()] == ["a"]
        assert await registry.clear_all() == 1


class TestEviction:
    async def test_active_entries_outrank_resolved(self, test_db):
        """Above the cap, resolved entries are evicted before active ones"""
        check = ScriptedCheck("a", "b")
        registry = HealthCheckRegistry(test_db, max_entries=2)
        registry.register(check)
        await registry.run_all()

        check.issues = ["c"]
        summary = await registry.run_all()
        log = await registry.get_log()

        assert summary["evicted"] == 1
        assert len(log) == 2
        assert log[0].issue_id == "c"
        assert log[0].status == "active"
        assert log[1].status == "resolved"

    async def test_new_entries_beyond_cap_are_not_stored(self, test_db):
        registry = HealthCheckRegistry(test_db, max_entries=2)
        registry.register(ScriptedCheck("a", "b", "c"))

        summary = await registry.run_all()

        assert summary["evicted"] == 1
        assert len(await registry.get_log()) == 2


class TestCheckIsolation:
    async def test_failed_check_leaves_entries_untouched(self, test_db):
        check = ScriptedCheck("a")
        registry = HealthCheckRegistry(test_db, max_entries=10)
        registry.register(check)
        await registry.run_all()

        check.fail = True
        summary = await registry.run_all()

        assert summary["failed_checks"] == ["scripted"]
        assert (await registry.get_entry("scripted", "a")).status == "active"

    async def test_failed_check_does_not_stop_others(self, test_db):
        broken = ScriptedCheck()
        broken.fail = True
        registry = HealthCheckRegistry(test_db, max_entries=10)
        registry.register(broken)
        registry.register(SettingsIntegrityCheck())

        summary = await registry.run_all()

        assert summary["found"] == 3

    async def test_writing_during_run_is_rejected(self, test_db):
        registry = HealthCheckRegistry(test_db, max_entries=10)
        registry.register(WritingCheck())

        with pytest.raises(ServiceError):
            await registry.run_all()

        assert len(test_db.new) == 0

    async def test_unknown_check(self, test_db):
        with pytest.raises(CheckNotFoundError):
            await HealthCheckRegistry(test_db).apply_fix("nope", "x")


class TestMultilingualIntegrity:
    async def test_reports_missing_language_and_group(self, ml_config, types, test_db, make_content, make_term):
        await make_content("No Language")
        await make_content("No Group", language="de")
        await make_content("Ignored", status="trash")
        await make_term("Lose")

        violations = _by_issue(await MultilingualIntegrityCheck(ml_config, types).run(test_db))

        assert violations[CONTENT_MISSING_LANGUAGE].severity is Severity.CRITICAL
        assert violations[CONTENT_MISSING_LANGUAGE].fix_context == {"count": 1}
        assert violations[CONTENT_MISSING_GROUP].fix_context == {"count": 1}
        assert violations[TERMS_MISSING_LANGUAGE].can_fix

    async def test_duplicates_reported_but_not_fixable(self, engine, make_content):
        await make_content("A", language="de", group="g-dup")
        await make_content("B", language="de", group="g-dup")

        await engine.run_all_checks()
        entry = await engine.diagnostics().get_entry("multilingual_integrity", DUPLICATE_CONTENT_LANGUAGES)

        assert entry.can_fix is False
        assert entry.fix_context == {"groups": [{"group_id": "g-dup", "language": "de", "count": 2}], "total": 1}
        with pytest.raises(FixNotAvailableError):
            await engine.apply_fix("multilingual_integrity", DUPLICATE_CONTENT_LANGUAGES)

    async def test_trashed_duplicate_reported(self, ml_config, types, test_db, make_content):
        """A trashed row still counts as a member of its language"""
        await make_content("Live", language="fr", group="g-trash")
        await make_content("Binned", language="fr", group="g-trash", status="trash")

        violations = _by_issue(await MultilingualIntegrityCheck(ml_config, types).run(test_db))

        assert violations[DUPLICATE_CONTENT_LANGUAGES].fix_context == {
            "groups": [{"group_id": "g-trash", "language": "fr", "count": 2}],
            "total": 1,
        }

    async def test_fix_then_rescan_resolves(self, engine, make_content):
        """Missing language: active, fixed, then resolved on the next scan"""
        legacy = await make_content("Legacy")
        legacy_id = legacy.id
        await engine.run_all_checks()

        preview = await engine.fix_preview("multilingual_integrity", CONTENT_MISSING_LANGUAGE)
        result = await engine.apply_fix("multilingual_integrity", CONTENT_MISSING_LANGUAGE)
        summary = await engine.run_all_checks()
        entry = await engine.diagnostics().get_entry("multilingual_integrity", CONTENT_MISSING_LANGUAGE)
        fixed = await engine.content.get_content(legacy_id)

        assert "'de'" in preview
        assert result == {
            "check_id": "multilingual_integrity",
            "issue_id": CONTENT_MISSING_LANGUAGE,
            "fixed": 1,
            "remaining": 0,
        }
        assert summary["resolved"] == 1
        assert entry.status == "resolved"
        assert fixed.language == "de"
        assert fixed.translation_group

    async def test_fix_works_in_batches(self, ml_config, types, test_db, make_content):
        for i in range(3):
            await make_content(f"Legacy {i}")
        check = MultilingualIntegrityCheck(ml_config, types, batch_limit=2)

        first = await check.apply_fix(test_db, CONTENT_MISSING_LANGUAGE, None)
        second = await check.apply_fix(test_db, CONTENT_MISSING_LANGUAGE, None)

        assert first == {"fixed": 2, "remaining": 1}
        assert second == {"fixed": 1, "remaining": 0}


class TestSettingsIntegrity:
    async def test_missing_core_options(self, test_db):
        test_db.add(SiteOption(key=SITE_SEO_KEY, value={}))
        await test_db.commit()

        violations = _by_issue(await SettingsIntegrityCheck().run(test_db))

        assert set(violations) == {f"missing_core_option_{MULTILINGUAL_KEY}", f"missing_core_option_{SITE_IMAGES_KEY}"}

    async def test_populate_fix(self, engine, test_db):
        await engine.run_all_checks()

        result = await engine.apply_fix("settings_integrity", f"missing_core_option_{SITE_IMAGES_KEY}")

        assert result["fixed"] == 1
        assert await test_db.get(SiteOption, SITE_IMAGES_KEY) is not None

    async def test_populate_fix_marks_route_table_dirty(self, engine, routes):
        """Restoring the multilingual option goes through settings.updated like a regular save"""
        await engine.run_all_checks()
        routes.maybe_flush(engine.routing)
        assert routes.is_dirty is False

        await engine.apply_fix("settings_integrity", f"missing_core_option_{MULTILINGUAL_KEY}")

        assert routes.is_dirty is True

    async def test_default_language_not_enabled(self, test_db):
        test_db.add(
            SiteOption(key=MULTILINGUAL_KEY, value={"default_language": "it", "languages": [{"code": "de"}]})
        )
        await test_db.commit()

        violations = _by_issue(await SettingsIntegrityCheck().run(test_db))

        assert violations["default_language_not_enabled"].can_fix is False


class TestStructuralSanity:
    async def test_clean_engine_reports_nothing(self, engine, test_db):
        assert await StructuralSanityCheck(engine.hooks).run(test_db) == []

    async def test_duplicate_callback_reported(self, engine, test_db):
        engine.hooks.add_action(HOOK_CONTENT_SAVED, engine.sync.handle_content_save, priority=20, name="taxonomy_sync")

        violations = await StructuralSanityCheck(engine.hooks).run(test_db)

        assert [v.issue_id for v in violations] == ["duplicate_hook_taxonomy_sync"]
        assert violations[0].fix_context["count"] == 2

    async def test_second_init_does_not_duplicate(self, engine, test_db):
        engine.init()

        assert await StructuralSanityCheck(engine.hooks).run(test_db) == []

    async def test_registry_has_all_checks(self, engine):
        assert [c.check_id for c in engine.diagnostics().all_checks()] == [
            "multilingual_integrity",
            "settings_integrity",
            "structural_sanity",
        ]

    async def test_structural_issues_have_no_preview(self, engine):
        assert await engine.fix_preview("structural_sanity", "duplicate_hook_taxonomy_sync") is None
