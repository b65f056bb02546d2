"""
Monitoring Routes

/health is a liveness probe. /ready checks the database and reports the
multilingual configuration and route table state. /metrics is the Prometheus
scrape endpoint.
"""

import logging
import time
from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Depends, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from cms_multilingual.config import settings
from cms_multilingual.database import get_db
from cms_multilingual.services.routing_service import route_table
from cms_multilingual.services.settings_service import SettingsService

router = APIRouter(tags=["Monitoring"])
logger = logging.getLogger(__name__)

STARTED_AT = time.monotonic()


class HealthStatus(BaseModel):
    status: str
    timestamp: str
    version: str
    uptime_seconds: float


class ReadinessStatus(BaseModel):
    status: str
    timestamp: str
    checks: dict[str, dict[str, Any]]


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("/health", response_model=HealthStatus)
async def health_check() -> HealthStatus:
    return HealthStatus(
        status="healthy",
        timestamp=_now(),
        version=settings.app_version,
        uptime_seconds=round(time.monotonic() - STARTED_AT, 2),
    )


@router.get("/ready", response_model=ReadinessStatus)
async def readiness_check(db: AsyncSession = Depends(get_db)) -> ReadinessStatus:
    """Ready when the database answers; the other entries are informational."""
    database = await _probe_database(db)
    checks: dict[str, dict[str, Any]] = {"database": database}
    if database["status"] == "healthy":
        config = await SettingsService(db).get_multilingual_config()
        checks["multilingual"] = {
            "status": "healthy",
            "active": config.is_active,
            "default_language": config.default_language,
            "languages": config.language_codes,
        }
    checks["route_table"] = {
        "status": "healthy",
        "dirty": route_table.is_dirty,
        "rebuilds": route_table.build_count,
    }
    return ReadinessStatus(
        status="ready" if database["status"] == "healthy" else "not_ready",
        timestamp=_now(),
        checks=checks,
    )


@router.get("/metrics")
async def prometheus_metrics() -> Response:
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


async def _probe_database(db: AsyncSession) -> dict[str, Any]:
    started = time.perf_counter()
    try:
        await db.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        logger.warning("Database readiness probe failed: %s", exc)
        return {"status": "unhealthy", "message": "Database connection failed"}
    return {"status": "healthy", "latency_ms": round((time.perf_counter() - started) * 1000, 2)}
