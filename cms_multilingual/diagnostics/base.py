"""
Health check contracts

HealthCheck.run() is read-only: it inspects the store and returns
IntegrityViolation records. Checks that can repair what they find extend
FixableHealthCheck, which adds fix_preview() and apply_fix(). Only the
registry persists findings; checks never write during run().
"""

from __future__ import annotations

import enum
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession  # noqa: TC002

from cms_multilingual.exceptions import FixNotAvailableError


class Severity(str, enum.Enum):
    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"


@dataclass
class IntegrityViolation:
    issue_id: str
    severity: Severity
    message: str
    can_fix: bool = False
    fix_context: dict[str, Any] | None = field(default=None)


class HealthCheck(ABC):
    check_id: str = ""
    name: str = ""
    category: str = ""

    @abstractmethod
    async def run(self, db: AsyncSession) -> list[IntegrityViolation]:
        """Inspect the store and report violations. Must not modify the session."""


class FixableHealthCheck(HealthCheck):
    async def fix_preview(self, db: AsyncSession, issue_id: str, context: dict[str, Any] | None) -> str | None:
        """Describe what apply_fix would do, or None when the issue has no fix."""
        return None

    async def apply_fix(self, db: AsyncSession, issue_id: str, context: dict[str, Any] | None) -> dict[str, Any]:
        raise FixNotAvailableError(self.check_id, issue_id)
