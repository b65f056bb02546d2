"""
DiagnosticLogEntry model

Persistent log of issues detected by the integrity auditor. One row per
(check, issue) pair, keyed by a stable uid. Rows move between ``active`` and
``resolved`` across scans and are evicted once the log exceeds its cap.
"""

import enum

from sqlalchemy import JSON, Boolean, Column, DateTime, Index, String, Text

from cms_multilingual.database import Base


class IssueStatus(str, enum.Enum):
    ACTIVE = "active"
    RESOLVED = "resolved"


class DiagnosticLogEntry(Base):
    __tablename__ = "diagnostic_log"

    issue_uid = Column(String(32), primary_key=True)
    check_id = Column(String(100), nullable=False, index=True)
    issue_id = Column(String(200), nullable=False)
    first_seen = Column(DateTime(timezone=True), nullable=False)
    last_seen = Column(DateTime(timezone=True), nullable=False)
    last_scan = Column(DateTime(timezone=True), nullable=True)
    status = Column(String(10), nullable=False, default=IssueStatus.ACTIVE.value)
    severity = Column(String(10), nullable=False)
    message = Column(Text, nullable=False)
    can_fix = Column(Boolean, nullable=False, default=False)
    fix_context = Column(JSON, nullable=True)

    __table_args__ = (Index("idx_diagnostic_status_first_seen", "status", "first_seen"),)

    def to_dict(self) -> dict:
        return {
            "issue_uid": self.issue_uid,
            "check_id": self.check_id,
            "issue_id": self.issue_id,
            "first_seen": self.first_seen.isoformat() if self.first_seen else None,
            "last_seen": self.last_seen.isoformat() if self.last_seen else None,
            "last_scan": self.last_scan.isoformat() if self.last_scan else None,
            "status": self.status,
            "severity": self.severity,
            "message": self.message,
            "can_fix": self.can_fix,
            "fix_context": self.fix_context,
        }

    def __repr__(self) -> str:
        return f"<DiagnosticLogEntry(check={self.check_id}, issue={self.issue_id}, status={self.status})>"
