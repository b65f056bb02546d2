"""
Scheduled Integrity Audit

Runs the diagnostics registry on a fixed interval as an APScheduler job.
The engine never schedules itself; this job is only installed when
DIAGNOSTICS_INTERVAL_HOURS is positive.
"""

import logging

from apscheduler.triggers.interval import IntervalTrigger

from cms_multilingual.database import AsyncSessionLocal

logger = logging.getLogger(__name__)


async def run_scheduled_audit() -> dict:
    """
    Run every registered check in a dedicated DB session.

    Returns the run summary, or an empty dict on failure (graceful degradation).
    """
    # Deferred import avoids circular dependency between utils and services
    from cms_multilingual.services.multilingual_service import MultilingualService

    async with AsyncSessionLocal() as db:
        try:
            engine = await MultilingualService.create(db)
            summary = await engine.run_all_checks()
            logger.info("diagnostics_schedule: audit finished: %s", summary)
            return summary
        except Exception as exc:
            logger.warning("diagnostics_schedule: audit failed: %s", exc)
            return {}


def install_diagnostics_job(scheduler, interval_hours: int) -> bool:
    """
    Register the periodic audit with the shared APScheduler instance.

    Args:
        scheduler: The application's AsyncIOScheduler (from cms_multilingual.scheduler).
        interval_hours: How often to run; values below 1 disable the job.
    """
    if interval_hours < 1:
        logger.info("diagnostics_schedule: disabled")
        return False
    scheduler.add_job(
        run_scheduled_audit,
        trigger=IntervalTrigger(hours=interval_hours),
        id="diagnostics_audit",
        replace_existing=True,
        max_instances=1,
    )
    logger.info("diagnostics_schedule: installed (interval=%dh)", interval_hours)
    return True
