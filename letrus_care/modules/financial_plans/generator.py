"""
Financial plan generation.

For an enrollment, writes one pending entry per billing month from
max(enrollment date, school year start) to the school year end. Re-running
only fills in missing months.
"""

import logging
from dataclasses import dataclass, field

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from letrus_care.core.audit import AuditAction, AuditService
from letrus_care.core.config import settings
from letrus_care.core.exceptions import (
    ClassNotFoundError,
    CourseNotFoundError,
    NoActiveSchoolYearError,
    ValidationError,
)
from letrus_care.modules.courses.ledger import TuitionFeeLedger
from letrus_care.modules.courses.models import Course, SchoolClass, TuitionFee
from letrus_care.modules.enrollments.models import Enrollment
from letrus_care.modules.financial_plans.models import FinancialPlanEntry, FinancialPlanStatus
from letrus_care.modules.school_years.calendar import (
    BillingMonth,
    compute_due_dates,
    enumerate_billing_months,
)
from letrus_care.modules.school_years.models import SchoolYear

logger = logging.getLogger(__name__)


@dataclass
class GenerationResult:
    enrollment_id: int
    school_year_id: int
    tuition_fee_id: int
    created: list[BillingMonth] = field(default_factory=list)
    skipped: list[BillingMonth] = field(default_factory=list)
    failed: list[BillingMonth] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return not self.failed


class FinancialPlanGenerator:
    """
    Writes through the caller's session and never commits.

    Each month is inserted in its own savepoint, so one failing month does
    not undo the others.
    """

    def __init__(self, db: AsyncSession, max_attempts: int | None = None):
        self.db = db
        self.max_attempts = max_attempts or settings.plan_entry_insert_attempts
        self.ledger = TuitionFeeLedger(db)
        self.audit = AuditService(db)

    async def _current_school_year(self, center_id: int) -> SchoolYear:
        result = await self.db.execute(
            select(SchoolYear).where(
                SchoolYear.center_id == center_id,
                SchoolYear.is_current.is_(True),
            )
        )
        school_year = result.scalar_one_or_none()
        if not school_year:
            raise NoActiveSchoolYearError(center_id)
        return school_year

    async def _course_of(self, enrollment: Enrollment) -> Course:
        class_result = await self.db.execute(
            select(SchoolClass).where(SchoolClass.id == enrollment.class_id)
        )
        school_class = class_result.scalar_one_or_none()
        if not school_class:
            raise ClassNotFoundError(enrollment.class_id)

        course_result = await self.db.execute(select(Course).where(Course.id == school_class.course_id))
        course = course_result.scalar_one_or_none()
        if not course:
            raise CourseNotFoundError(school_class.course_id)
        return course

    async def _bound_fee(self, enrollment: Enrollment, course: Course) -> TuitionFee:
        if enrollment.tuition_fee_id is not None:
            return await self.ledger.get_version(enrollment.tuition_fee_id)
        version = await self.ledger.get_fee_as_of(course.id, enrollment.enrollment_date)
        enrollment.tuition_fee_id = version.id
        return version

    async def _existing_months(self, enrollment_id: int) -> set[tuple[str, int]]:
        result = await self.db.execute(
            select(FinancialPlanEntry.month, FinancialPlanEntry.year).where(
                FinancialPlanEntry.enrollment_id == enrollment_id
            )
        )
        return {(month, year) for month, year in result.all()}

    async def generate(self, enrollment: Enrollment, user_id: int | None = None) -> GenerationResult:
        """
        Create the missing entries of an enrollment's plan.

        Raises NoActiveSchoolYearError, ValidationError (enrollment dated after
        the school year), ClassNotFoundError, CourseNotFoundError or
        NoHistoricalFeeError before anything is written.
        """
        school_year = await self._current_school_year(enrollment.center_id)
        if enrollment.enrollment_date > school_year.end_date:
            raise ValidationError(
                f"Enrollment date {enrollment.enrollment_date} is after the end of school year "
                f"{school_year.description} ({school_year.end_date})",
                field="enrollment_date",
            )
        course = await self._course_of(enrollment)
        version = await self._bound_fee(enrollment, course)
        await self.db.flush()

        start = max(enrollment.enrollment_date, school_year.start_date)
        months = enumerate_billing_months(start, school_year.end_date)
        due_dates = compute_due_dates(months)
        existing = await self._existing_months(enrollment.id)

        result = GenerationResult(
            enrollment_id=enrollment.id,
            school_year_id=school_year.id,
            tuition_fee_id=version.id,
        )

        for billing_month, due_date in zip(months, due_dates):
            if (billing_month.month, billing_month.year) in existing:
                result.skipped.append(billing_month)
                continue

            for attempt in range(1, self.max_attempts + 1):
                entry = FinancialPlanEntry(
                    enrollment_id=enrollment.id,
                    center_id=enrollment.center_id,
                    user_id=enrollment.user_id,
                    school_year_id=school_year.id,
                    month=billing_month.month,
                    year=billing_month.year,
                    due_date=due_date,
                    tuition_fee=version.fee,
                    status=FinancialPlanStatus.PENDING.value,
                    linked_payment_id=None,
                )
                try:
                    async with self.db.begin_nested():
                        self.db.add(entry)
                except IntegrityError:
                    # Written concurrently by another generator run
                    result.skipped.append(billing_month)
                    break
                except SQLAlchemyError as exc:
                    logger.warning(
                        "Enrollment %s: insert of %s/%s failed (attempt %s/%s): %s",
                        enrollment.id,
                        billing_month.month,
                        billing_month.year,
                        attempt,
                        self.max_attempts,
                        exc,
                    )
                    if attempt == self.max_attempts:
                        result.failed.append(billing_month)
                else:
                    result.created.append(billing_month)
                    break

        if result.complete:
            enrollment.has_financial_plan = True
        await self.db.flush()

        await self.audit.log(
            action=AuditAction.GENERATE_FINANCIAL_PLAN,
            entity_type="Enrollment",
            entity_id=enrollment.id,
            user_id=user_id,
            center_id=enrollment.center_id,
            new_values={
                "school_year_id": school_year.id,
                "tuition_fee_id": version.id,
                "created": len(result.created),
                "skipped": len(result.skipped),
                "failed": [f"{m.month}/{m.year}" for m in result.failed],
            },
        )

        log = logger.info if result.complete else logger.error
        log(
            "Enrollment %s financial plan: %s created, %s skipped, %s failed",
            enrollment.id,
            len(result.created),
            len(result.skipped),
            len(result.failed),
        )
        return result
