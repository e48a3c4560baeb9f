"""Background jobs owned by the application lifespan."""

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from letrus_care.core.config import settings
from letrus_care.core.database import Database
from letrus_care.modules.financial_plans.overdue import OverdueSweeper
from letrus_care.shared.utils.dates import business_now

logger = logging.getLogger(__name__)

OVERDUE_SWEEP_JOB_ID = "overdue_sweep"


def create_scheduler(database: Database) -> AsyncIOScheduler:
    """
    Scheduler with the overdue sweep job registered (not started).

    A tick that is still running when the next one is due is skipped
    (max_instances=1), and missed ticks collapse into one (coalesce). The
    first tick runs right away.
    """
    scheduler = AsyncIOScheduler(timezone=settings.tz)
    sweeper = OverdueSweeper(database)
    scheduler.add_job(
        sweeper.run_once,
        "interval",
        minutes=settings.overdue_sweep_interval_minutes,
        id=OVERDUE_SWEEP_JOB_ID,
        replace_existing=True,
        max_instances=1,
        coalesce=True,
        next_run_time=business_now(),
    )
    return scheduler


def start_scheduler(database: Database) -> AsyncIOScheduler | None:
    if not settings.overdue_sweep_enabled:
        logger.info("Overdue sweep disabled")
        return None
    scheduler = create_scheduler(database)
    scheduler.start()
    logger.info(
        "Overdue sweep scheduled every %s minute(s)", settings.overdue_sweep_interval_minutes
    )
    return scheduler


def shutdown_scheduler(scheduler: AsyncIOScheduler | None) -> None:
    if scheduler is not None and scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")
