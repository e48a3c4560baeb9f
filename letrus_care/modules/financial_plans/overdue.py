"""
Overdue sweep: pending entries whose due date has passed become overdue.

Day boundaries are those of the business timezone. An entry due on the 10th
turns overdue from the first sweep on the 11th.
"""

import logging
from datetime import datetime

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from letrus_care.core.config import settings
from letrus_care.core.database import Database
from letrus_care.modules.financial_plans.models import FinancialPlanEntry, FinancialPlanStatus
from letrus_care.shared.utils.dates import overdue_cutoff

logger = logging.getLogger(__name__)


async def mark_overdue(db: AsyncSession, now: datetime | None = None) -> int:
    """
    Flip pending entries due on or before yesterday to overdue.

    Does not commit. Only pending rows match, so paid entries are never
    touched and repeating the sweep changes nothing.
    """
    cutoff = overdue_cutoff(now)
    result = await db.execute(
        update(FinancialPlanEntry)
        .where(
            FinancialPlanEntry.status == FinancialPlanStatus.PENDING.value,
            FinancialPlanEntry.due_date <= cutoff.date(),
        )
        .values(status=FinancialPlanStatus.OVERDUE.value)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount or 0


class OverdueSweeper:
    """Runs the sweep in its own session; used by the scheduler."""

    def __init__(self, database: Database):
        self.database = database

    async def run_once(self, now: datetime | None = None) -> int:
        """
        One sweep tick. Never raises: failures are logged and the next tick
        retries. Returns the number of entries marked overdue.
        """
        try:
            async with self.database.session() as session:
                count = await mark_overdue(session, now)
                await session.commit()
        except Exception as exc:
            logger.error("Overdue sweep failed: %s", exc, exc_info=settings.debug)
            return 0

        if count:
            logger.info("Overdue sweep: %s financial plan entries marked overdue", count)
        else:
            logger.debug("Overdue sweep: nothing to update")
        return count
