"""Read side of financial plans: listings and aggregates used by the dashboard."""

from datetime import date
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from letrus_care.modules.financial_plans.models import FinancialPlanEntry, FinancialPlanStatus
from letrus_care.shared.utils.money import round_money


class FinancialPlanService:
    def __init__(self, db: AsyncSession):
        self.db = db

    def _filtered(
        self,
        query,
        center_id: int,
        school_year_id: int | None = None,
        status: FinancialPlanStatus | None = None,
        due_from: date | None = None,
        due_to: date | None = None,
    ):
        query = query.where(FinancialPlanEntry.center_id == center_id)
        if school_year_id is not None:
            query = query.where(FinancialPlanEntry.school_year_id == school_year_id)
        if status is not None:
            query = query.where(FinancialPlanEntry.status == status.value)
        if due_from is not None:
            query = query.where(FinancialPlanEntry.due_date >= due_from)
        if due_to is not None:
            query = query.where(FinancialPlanEntry.due_date <= due_to)
        return query

    async def list_for_enrollment(
        self,
        enrollment_id: int,
        school_year_id: int | None = None,
        paid: bool | None = None,
    ) -> list[FinancialPlanEntry]:
        """
        Entries of one enrollment in due-date order.

        paid=True returns paid entries, paid=False everything not yet paid
        (pending and overdue), None returns all.
        """
        query = select(FinancialPlanEntry).where(FinancialPlanEntry.enrollment_id == enrollment_id)
        if school_year_id is not None:
            query = query.where(FinancialPlanEntry.school_year_id == school_year_id)
        if paid is True:
            query = query.where(FinancialPlanEntry.status == FinancialPlanStatus.PAID.value)
        elif paid is False:
            query = query.where(FinancialPlanEntry.status != FinancialPlanStatus.PAID.value)

        result = await self.db.execute(query.order_by(FinancialPlanEntry.due_date, FinancialPlanEntry.id))
        return list(result.scalars().all())

    async def count_entries(
        self,
        center_id: int,
        school_year_id: int | None = None,
        status: FinancialPlanStatus | None = None,
        due_from: date | None = None,
        due_to: date | None = None,
    ) -> int:
        query = self._filtered(
            select(func.count(FinancialPlanEntry.id)),
            center_id,
            school_year_id=school_year_id,
            status=status,
            due_from=due_from,
            due_to=due_to,
        )
        return (await self.db.execute(query)).scalar() or 0

    async def sum_entries(
        self,
        center_id: int,
        school_year_id: int | None = None,
        status: FinancialPlanStatus | None = None,
        due_from: date | None = None,
        due_to: date | None = None,
    ) -> Decimal:
        """Total tuition of the matching entries."""
        query = self._filtered(
            select(func.coalesce(func.sum(FinancialPlanEntry.tuition_fee), 0)),
            center_id,
            school_year_id=school_year_id,
            status=status,
            due_from=due_from,
            due_to=due_to,
        )
        return round_money((await self.db.execute(query)).scalar())
