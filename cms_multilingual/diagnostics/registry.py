"""
Health Check Registry

Runs registered checks and maintains the persistent issue log
(``diagnostic_log``).

Log lifecycle per run_all():
    - every reported issue is keyed by md5("{check_id}|{issue_id}")
    - known issues are refreshed and marked active; new ones are inserted
    - active issues not reported this run become resolved, unless their check
      failed to run, in which case they are left as they were
    - every entry gets last_scan = now
    - above max_entries, entries are evicted: resolved before active, then
      oldest first_seen first
"""

from __future__ import annotations

import hashlib
import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession  # noqa: TC002

from cms_multilingual.config import settings
from cms_multilingual.diagnostics.base import FixableHealthCheck, HealthCheck, IntegrityViolation
from cms_multilingual.exceptions import CheckNotFoundError, FixNotAvailableError, ServiceError
from cms_multilingual.models.diagnostic_log import DiagnosticLogEntry, IssueStatus
from cms_multilingual.utils.metrics import update_active_issue_counts

logger = logging.getLogger(__name__)


def issue_uid(check_id: str, issue_id: str) -> str:
    return hashlib.md5(f"{check_id}|{issue_id}".encode()).hexdigest()


def _naive(ts: datetime | None) -> datetime:
    if ts is None:
        return datetime.min
    return ts.replace(tzinfo=None) if ts.tzinfo else ts


def retention_key(entry: DiagnosticLogEntry) -> tuple:
    """Sort key: entries that sort first are kept longest."""
    return (
        entry.status != IssueStatus.ACTIVE.value,
        -_naive(entry.first_seen).timestamp() if entry.first_seen else 0.0,
        entry.issue_uid,
    )


class HealthCheckRegistry:
    def __init__(self, db: AsyncSession, max_entries: int | None = None):
        self.db = db
        self.max_entries = max_entries if max_entries is not None else settings.diagnostics_max_log_entries
        self._checks: dict[str, HealthCheck] = {}

    # ── Registration ──────────────────────────────────────────────────────────

    def register(self, check: HealthCheck) -> None:
        self._checks[check.check_id] = check
        logger.debug("Health check registered: %s", check.check_id)

    def get_check(self, check_id: str) -> HealthCheck | None:
        return self._checks.get(check_id)

    def require_check(self, check_id: str) -> HealthCheck:
        check = self._checks.get(check_id)
        if check is None:
            raise CheckNotFoundError(check_id)
        return check

    def all_checks(self) -> list[HealthCheck]:
        return list(self._checks.values())

    # ── Audit run ─────────────────────────────────────────────────────────────

    def _has_pending_changes(self) -> bool:
        return bool(self.db.new or self.db.dirty or self.db.deleted)

    async def _run_check(self, check: HealthCheck) -> list[IntegrityViolation] | None:
        try:
            violations = await check.run(self.db)
        except Exception as exc:
            logger.warning("Health check %s failed: %s", check.check_id, exc)
            if self._has_pending_changes():
                await self.db.rollback()
            return None
        if self._has_pending_changes():
            await self.db.rollback()
            raise ServiceError(f"Health check '{check.check_id}' modified the session during run", service="diagnostics")
        return violations

    async def run_all(self) -> dict[str, Any]:
        now = datetime.now(timezone.utc)
        findings: dict[str, tuple[str, IntegrityViolation]] = {}
        failed: list[str] = []

        for check in self._checks.values():
            violations = await self._run_check(check)
            if violations is None:
                failed.append(check.check_id)
                continue
            for violation in violations:
                findings[issue_uid(check.check_id, violation.issue_id)] = (check.check_id, violation)

        result = await self.db.execute(select(DiagnosticLogEntry))
        log = {entry.issue_uid: entry for entry in result.scalars().all()}
        new_count = 0
        resolved_count = 0

        for uid, (check_id, violation) in findings.items():
            entry = log.get(uid)
            if entry is None:
                entry = DiagnosticLogEntry(
                    issue_uid=uid,
                    check_id=check_id,
                    issue_id=violation.issue_id,
                    first_seen=now,
                )
                self.db.add(entry)
                log[uid] = entry
                new_count += 1
            entry.last_seen = now
            entry.status = IssueStatus.ACTIVE.value
            entry.message = violation.message
            entry.severity = getattr(violation.severity, "value", violation.severity)
            entry.can_fix = bool(violation.can_fix)
            entry.fix_context = violation.fix_context

        for uid, entry in log.items():
            if entry.status == IssueStatus.ACTIVE.value and uid not in findings and entry.check_id not in failed:
                entry.status = IssueStatus.RESOLVED.value
                resolved_count += 1
            entry.last_scan = now

        evicted = 0
        if len(log) > self.max_entries:
            ranked = sorted(log.values(), key=retention_key)
            for entry in ranked[self.max_entries :]:
                if entry in self.db.new:
                    self.db.expunge(entry)
                else:
                    await self.db.delete(entry)
                evicted += 1

        await self.db.commit()

        active_by_severity: dict[str, int] = {}
        for entry in sorted(log.values(), key=retention_key)[: self.max_entries]:
            if entry.status == IssueStatus.ACTIVE.value:
                active_by_severity[entry.severity] = active_by_severity.get(entry.severity, 0) + 1
        update_active_issue_counts(active_by_severity)

        summary = {
            "scanned_at": now.isoformat(),
            "checks": len(self._checks),
            "found": len(findings),
            "new": new_count,
            "resolved": resolved_count,
            "evicted": evicted,
            "failed_checks": failed,
            "active_by_severity": active_by_severity,
        }
        logger.info(
            "Diagnostics run: %d found (%d new), %d resolved, %d evicted, %d failed checks",
            len(findings),
            new_count,
            resolved_count,
            evicted,
            len(failed),
        )
        return summary

    # ── Log access ───────────────────────────────────────────────────────────

    async def get_log(self, status: str | None = None) -> list[DiagnosticLogEntry]:
        query = select(DiagnosticLogEntry)
        if status is not None:
            query = query.where(DiagnosticLogEntry.status == status)
        result = await self.db.execute(query)
        return sorted(result.scalars().all(), key=retention_key)

    async def get_entry(self, check_id: str, issue_id: str) -> DiagnosticLogEntry | None:
        return await self.db.get(DiagnosticLogEntry, issue_uid(check_id, issue_id))

    async def clear_resolved(self) -> int:
        result = await self.db.execute(
            delete(DiagnosticLogEntry).where(DiagnosticLogEntry.status == IssueStatus.RESOLVED.value)
        )
        await self.db.commit()
        cleared = result.rowcount or 0
        logger.info("Diagnostics log: cleared %d resolved entries", cleared)
        return cleared

    async def clear_all(self) -> int:
        result = await self.db.execute(delete(DiagnosticLogEntry))
        await self.db.commit()
        cleared = result.rowcount or 0
        logger.info("Diagnostics log: cleared all %d entries", cleared)
        return cleared

    # ── Fixes ────────────────────────────────────────────────────────────────

    async def _fix_context(self, check_id: str, issue_id: str, context: dict[str, Any] | None) -> dict[str, Any] | None:
        if context is not None:
            return context
        entry = await self.get_entry(check_id, issue_id)
        return entry.fix_context if entry is not None else None

    async def fix_preview(self, check_id: str, issue_id: str, context: dict[str, Any] | None = None) -> str | None:
        check = self.require_check(check_id)
        if not isinstance(check, FixableHealthCheck):
            return None
        return await check.fix_preview(self.db, issue_id, await self._fix_context(check_id, issue_id, context))

    async def apply_fix(self, check_id: str, issue_id: str, context: dict[str, Any] | None = None) -> dict[str, Any]:
        check = self.require_check(check_id)
        if not isinstance(check, FixableHealthCheck):
            raise FixNotAvailableError(check_id, issue_id)
        entry = await self.get_entry(check_id, issue_id)
        if entry is not None and not entry.can_fix:
            raise FixNotAvailableError(check_id, issue_id)

        result = await check.apply_fix(self.db, issue_id, await self._fix_context(check_id, issue_id, context))
        logger.info("Diagnostics fix applied: %s/%s -> %s", check_id, issue_id, result)
        return {"check_id": check_id, "issue_id": issue_id, **result}


def build_default_registry(
    db: AsyncSession,
    config,
    hooks=None,
    types=None,
    max_entries: int | None = None,
    fix_batch_limit: int | None = None,
) -> HealthCheckRegistry:
    """Registry with the multilingual, settings, and structural checks."""
    from cms_multilingual.diagnostics.checks.multilingual_integrity import MultilingualIntegrityCheck
    from cms_multilingual.diagnostics.checks.settings_integrity import SettingsIntegrityCheck
    from cms_multilingual.diagnostics.checks.structural_sanity import StructuralSanityCheck

    registry = HealthCheckRegistry(db, max_entries=max_entries)
    registry.register(MultilingualIntegrityCheck(config, types=types, batch_limit=fix_batch_limit))
    registry.register(SettingsIntegrityCheck(hooks=hooks))
    if hooks is not None:
        registry.register(StructuralSanityCheck(hooks))
    return registry
