from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class DiagnosticLogEntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    issue_uid: str
    check_id: str
    issue_id: str
    status: str
    severity: str
    message: str
    can_fix: bool
    fix_context: dict[str, Any] | None = None
    first_seen: datetime
    last_seen: datetime
    last_scan: datetime | None = None


class CheckInfo(BaseModel):
    check_id: str
    name: str
    category: str
    fixable: bool


class FixRequest(BaseModel):
    check_id: str = Field(..., title="Check ID")
    issue_id: str = Field(..., title="Issue ID")
    context: dict[str, Any] | None = Field(None, description="Overrides the fix context stored in the log.")


class FixPreviewResponse(BaseModel):
    check_id: str
    issue_id: str
    description: str | None


class ClearResponse(BaseModel):
    cleared: int
