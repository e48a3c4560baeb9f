"""Read-only figures for a center's dashboard."""

from datetime import date
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from letrus_care.modules.courses.models import CourseStatus, SchoolClass
from letrus_care.modules.enrollments.models import Enrollment, EnrollmentStatus
from letrus_care.modules.financial_plans.models import FinancialPlanStatus
from letrus_care.modules.financial_plans.service import FinancialPlanService
from letrus_care.modules.payments.models import Payment, PaymentStatus
from letrus_care.modules.school_years.calendar import MONTH_NAMES
from letrus_care.shared.utils.dates import business_now
from letrus_care.shared.utils.money import round_money

GROWTH_MONTHS = 5


def _recent_months(today: date, count: int = GROWTH_MONTHS) -> list[tuple[int, int]]:
    """(year, month) pairs of the last `count` months, oldest first, this month included."""
    months = []
    year, month = today.year, today.month
    for _ in range(count):
        months.append((year, month))
        month -= 1
        if month == 0:
            month, year = 12, year - 1
    return list(reversed(months))


class DashboardService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.plans = FinancialPlanService(db)

    async def _count(self, query) -> int:
        return (await self.db.execute(query)).scalar() or 0

    async def get_summary(self, center_id: int, today: date | None = None) -> dict:
        today = today or business_now().date()
        not_dropped = Enrollment.status != EnrollmentStatus.DROPPED.value

        return {
            "total_active_classes": await self._count(
                select(func.count(SchoolClass.id)).where(
                    SchoolClass.center_id == center_id,
                    SchoolClass.status == CourseStatus.ACTIVE.value,
                )
            ),
            "total_active_students": await self._count(
                select(func.count(Enrollment.id)).where(Enrollment.center_id == center_id, not_dropped)
            ),
            "total_daily_enrollments": await self._count(
                select(func.count(Enrollment.id)).where(
                    Enrollment.center_id == center_id,
                    not_dropped,
                    Enrollment.enrollment_date == today,
                )
            ),
            "total_incomplete_enrollments": await self._count(
                select(func.count(Enrollment.id)).where(
                    Enrollment.center_id == center_id,
                    Enrollment.status == EnrollmentStatus.ENROLLED.value,
                )
            ),
            "total_daily_payments": await self._count(
                select(func.count(Payment.id)).where(
                    Payment.center_id == center_id,
                    Payment.status == PaymentStatus.PAID.value,
                    Payment.payment_date == today,
                )
            ),
            "total_overdue_fees": await self.plans.count_entries(
                center_id, status=FinancialPlanStatus.OVERDUE
            ),
            "overdue_amount": await self.plans.sum_entries(center_id, status=FinancialPlanStatus.OVERDUE),
            "pending_amount": await self.plans.sum_entries(center_id, status=FinancialPlanStatus.PENDING),
            "student_growth": await self._student_growth(center_id, today),
            "payment_growth": await self._payment_growth(center_id, today),
        }

    async def _student_growth(self, center_id: int, today: date) -> list[dict]:
        """Non-dropped enrollments per month over the recent months."""
        months = _recent_months(today)
        start = date(months[0][0], months[0][1], 1)

        result = await self.db.execute(
            select(Enrollment.enrollment_date).where(
                Enrollment.center_id == center_id,
                Enrollment.status != EnrollmentStatus.DROPPED.value,
                Enrollment.enrollment_date >= start,
                Enrollment.enrollment_date <= today,
            )
        )
        counts = dict.fromkeys(months, 0)
        for (enrolled_on,) in result.all():
            counts[(enrolled_on.year, enrolled_on.month)] += 1

        return [
            {"month": MONTH_NAMES[month - 1], "year": year, "students": counts[(year, month)]}
            for year, month in months
        ]

    async def _payment_growth(self, center_id: int, today: date) -> list[dict]:
        """Paid amount per month over the recent months."""
        months = _recent_months(today)
        start = date(months[0][0], months[0][1], 1)

        result = await self.db.execute(
            select(Payment.payment_date, Payment.amount).where(
                Payment.center_id == center_id,
                Payment.status == PaymentStatus.PAID.value,
                Payment.payment_date >= start,
                Payment.payment_date <= today,
            )
        )
        totals: dict[tuple[int, int], Decimal] = dict.fromkeys(months, Decimal("0"))
        for paid_on, amount in result.all():
            totals[(paid_on.year, paid_on.month)] += amount

        return [
            {"month": MONTH_NAMES[month - 1], "year": year, "amount": round_money(totals[(year, month)])}
            for year, month in months
        ]
