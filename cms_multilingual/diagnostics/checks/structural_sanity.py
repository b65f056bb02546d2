"""
Structural sanity check

A critical save-path callback registered twice runs twice per save, which
doubles synchronization work and can reorder it against the other handlers.
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession  # noqa: TC002

from cms_multilingual.diagnostics.base import HealthCheck, IntegrityViolation, Severity
from cms_multilingual.plugins.hooks import CRITICAL_CALLBACKS
from cms_multilingual.plugins.registry import HookRegistry


class StructuralSanityCheck(HealthCheck):
    check_id = "structural_sanity"
    name = "Structural sanity"
    category = "structure"

    def __init__(self, hooks: HookRegistry, callbacks: dict[str, str] | None = None):
        self.hooks = hooks
        self.callbacks = callbacks if callbacks is not None else CRITICAL_CALLBACKS

    async def run(self, db: AsyncSession) -> list[IntegrityViolation]:
        violations = []
        for name, hook_name in self.callbacks.items():
            registered = self.hooks.count_callbacks(hook_name, name)
            if registered > 1:
                violations.append(
                    IntegrityViolation(
                        f"duplicate_hook_{name}",
                        Severity.WARNING,
                        f"Callback '{name}' is registered {registered} times on '{hook_name}'",
                        fix_context={"hook": hook_name, "callback": name, "count": registered},
                    )
                )
        return violations
