"""
Diagnostics Routes

router  (prefix: /api/v1/diagnostics)
    GET    /checks          → registered checks
    POST   /run             → run every check and update the issue log
    GET    /log             → issue log, optionally filtered by status
    POST   /fix/preview     → describe the fix for one issue
    POST   /fix             → apply the fix for one issue
    DELETE /log/resolved    → drop resolved entries
    DELETE /log             → drop every entry
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, Query

from cms_multilingual.diagnostics.base import FixableHealthCheck
from cms_multilingual.models.diagnostic_log import IssueStatus
from cms_multilingual.routes.multilingual import get_engine
from cms_multilingual.schemas.diagnostics import (
    CheckInfo,
    ClearResponse,
    DiagnosticLogEntryResponse,
    FixPreviewResponse,
    FixRequest,
)
from cms_multilingual.services.multilingual_service import MultilingualService

router = APIRouter(tags=["Diagnostics"])
logger = logging.getLogger(__name__)


@router.get("/checks", response_model=list[CheckInfo])
async def list_checks(engine: MultilingualService = Depends(get_engine)) -> list[CheckInfo]:
    return [
        CheckInfo(
            check_id=check.check_id,
            name=check.name,
            category=check.category,
            fixable=isinstance(check, FixableHealthCheck),
        )
        for check in engine.diagnostics().all_checks()
    ]


@router.post("/run")
async def run_checks(engine: MultilingualService = Depends(get_engine)) -> dict[str, Any]:
    return await engine.run_all_checks()


@router.get("/log", response_model=list[DiagnosticLogEntryResponse])
async def get_log(
    status: IssueStatus | None = Query(None),
    engine: MultilingualService = Depends(get_engine),
) -> list[DiagnosticLogEntryResponse]:
    entries = await engine.diagnostics().get_log(status.value if status else None)
    return [DiagnosticLogEntryResponse.model_validate(entry) for entry in entries]


@router.post("/fix/preview", response_model=FixPreviewResponse)
async def preview_fix(
    payload: FixRequest,
    engine: MultilingualService = Depends(get_engine),
) -> FixPreviewResponse:
    description = await engine.fix_preview(payload.check_id, payload.issue_id, payload.context)
    return FixPreviewResponse(check_id=payload.check_id, issue_id=payload.issue_id, description=description)


@router.post("/fix")
async def apply_fix(
    payload: FixRequest,
    engine: MultilingualService = Depends(get_engine),
) -> dict[str, Any]:
    return await engine.apply_fix(payload.check_id, payload.issue_id, payload.context)


@router.delete("/log/resolved", response_model=ClearResponse)
async def clear_resolved(engine: MultilingualService = Depends(get_engine)) -> ClearResponse:
    return ClearResponse(cleared=await engine.diagnostics().clear_resolved())


@router.delete("/log", response_model=ClearResponse)
async def clear_log(engine: MultilingualService = Depends(get_engine)) -> ClearResponse:
    return ClearResponse(cleared=await engine.diagnostics().clear_all())
