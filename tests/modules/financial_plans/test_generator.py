from datetime import date, datetime, timezone
from decimal import Decimal

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from letrus_care.core.exceptions import (
    ClassNotFoundError,
    CourseNotFoundError,
    NoActiveSchoolYearError,
    NoHistoricalFeeError,
    ValidationError,
)
from letrus_care.modules.courses.ledger import TuitionFeeLedger
from letrus_care.modules.courses.schemas import TuitionFeeFields
from letrus_care.modules.enrollments.models import Enrollment, EnrollmentStatus
from letrus_care.modules.enrollments.service import EnrollmentService
from letrus_care.modules.financial_plans.generator import FinancialPlanGenerator
from letrus_care.modules.financial_plans.models import FinancialPlanEntry, FinancialPlanStatus
from letrus_care.modules.financial_plans.service import FinancialPlanService

JAN_1 = datetime(2026, 1, 1, tzinfo=timezone.utc)
FEB_20 = datetime(2026, 2, 20, tzinfo=timezone.utc)


async def _entry_count(db: AsyncSession, enrollment_id: int) -> int:
    result = await db.execute(
        select(func.count(FinancialPlanEntry.id)).where(FinancialPlanEntry.enrollment_id == enrollment_id)
    )
    return result.scalar()


@pytest.fixture
async def setup(factory):
    """Center with a current 2026 school year, a course at 5000 and one class."""
    center = await factory.center()
    school_year = await factory.school_year(center)
    course = await factory.course(center, fee="5000", fee_effective_at=JAN_1)
    school_class = await factory.school_class(course)
    student = await factory.student(center)
    return {
        "center": center,
        "school_year": school_year,
        "course": course,
        "school_class": school_class,
        "student": student,
    }


class TestFinancialPlanGeneration:
    async def test_plan_from_enrollment_month(self, db_session: AsyncSession, factory, setup):
        enrollment, result = await factory.enrollment(setup["student"], setup["school_class"], date(2026, 3, 15))

        assert result.complete
        assert len(result.created) == 10
        assert enrollment.has_financial_plan is True

        entries = await FinancialPlanService(db_session).list_for_enrollment(enrollment.id)
        assert [e.month for e in entries][:2] == ["Março", "Abril"]
        assert entries[0].due_date == date(2026, 4, 10)
        assert entries[-1].month == "Dezembro"
        assert entries[-1].due_date == date(2027, 1, 10)
        assert all(e.status == FinancialPlanStatus.PENDING.value for e in entries)
        assert all(e.tuition_fee == Decimal("5000.00") for e in entries)
        assert all(e.school_year_id == setup["school_year"].id for e in entries)

    async def test_enrollment_before_school_year_start(self, db_session: AsyncSession, factory):
        center = await factory.center()
        await factory.school_year(center, start=date(2026, 2, 1))
        course = await factory.course(center, fee_effective_at=datetime(2025, 6, 1, tzinfo=timezone.utc))
        school_class = await factory.school_class(course)
        student = await factory.student(center)

        enrollment, result = await factory.enrollment(student, school_class, date(2025, 11, 20))

        assert len(result.created) == 11
        assert result.created[0].month == "Fevereiro"
        assert await _entry_count(db_session, enrollment.id) == 11

    async def test_regeneration_is_idempotent(self, db_session: AsyncSession, factory, setup):
        enrollment, _ = await factory.enrollment(setup["student"], setup["school_class"], date(2026, 3, 15))

        result = await FinancialPlanGenerator(db_session).generate(enrollment)
        await db_session.commit()

        assert result.created == []
        assert len(result.skipped) == 10
        assert result.complete
        assert await _entry_count(db_session, enrollment.id) == 10

    async def test_regeneration_fills_missing_months(self, db_session: AsyncSession, factory, setup):
        enrollment, _ = await factory.enrollment(setup["student"], setup["school_class"], date(2026, 3, 15))
        entries = await FinancialPlanService(db_session).list_for_enrollment(enrollment.id)
        await db_session.delete(entries[3])
        await db_session.commit()

        result = await FinancialPlanGenerator(db_session).generate(enrollment)
        await db_session.commit()

        assert [m.month for m in result.created] == ["Junho"]
        assert await _entry_count(db_session, enrollment.id) == 10

    async def test_fee_bound_at_enrollment_date(self, db_session: AsyncSession, factory, setup):
        """A price change after the enrollment date does not reach the plan."""
        await TuitionFeeLedger(db_session).replace_fee(
            setup["course"].id, TuitionFeeFields(fee=Decimal("6000")), effective_at=FEB_20
        )
        await db_session.commit()

        enrollment, result = await factory.enrollment(setup["student"], setup["school_class"], date(2026, 2, 10))

        entries = await FinancialPlanService(db_session).list_for_enrollment(enrollment.id)
        assert len(entries) == 11
        assert all(e.tuition_fee == Decimal("5000.00") for e in entries)
        assert enrollment.tuition_fee_id == result.tuition_fee_id

    async def test_bound_fee_survives_later_regeneration(self, db_session: AsyncSession, factory, setup):
        enrollment, first = await factory.enrollment(setup["student"], setup["school_class"], date(2026, 3, 15))
        await TuitionFeeLedger(db_session).replace_fee(
            setup["course"].id, TuitionFeeFields(fee=Decimal("7000")), effective_at=datetime(2026, 4, 1, tzinfo=timezone.utc)
        )
        await db_session.commit()

        result = await FinancialPlanGenerator(db_session).generate(enrollment)

        assert result.tuition_fee_id == first.tuition_fee_id

    async def test_no_current_school_year(self, db_session: AsyncSession, factory):
        center = await factory.center()
        await factory.school_year(center, is_current=False)
        course = await factory.course(center, fee_effective_at=JAN_1)
        school_class = await factory.school_class(course)
        student = await factory.student(center)
        student_id = student.id

        with pytest.raises(NoActiveSchoolYearError):
            await factory.enrollment(student, school_class, date(2026, 3, 15))

        # The enrollment is rolled back together with its plan
        result = await db_session.execute(select(func.count(Enrollment.id)).where(Enrollment.student_id == student_id))
        assert result.scalar() == 0

    async def test_no_fee_on_enrollment_date(self, db_session: AsyncSession, factory):
        center = await factory.center()
        await factory.school_year(center)
        course = await factory.course(center, fee_effective_at=datetime(2026, 3, 1, tzinfo=timezone.utc))
        school_class = await factory.school_class(course)
        student = await factory.student(center)
        student_id = student.id

        with pytest.raises(NoHistoricalFeeError):
            await factory.enrollment(student, school_class, date(2026, 2, 10))

        assert (await db_session.execute(select(func.count(Enrollment.id)).where(Enrollment.student_id == student_id))).scalar() == 0
        assert (await db_session.execute(select(func.count(FinancialPlanEntry.id)))).scalar() == 0

    async def test_failed_month_leaves_plan_incomplete(self, db_session: AsyncSession, factory, setup, monkeypatch):
        """A month that keeps failing is reported; the others are still written."""
        enrollment, _ = await factory.enrollment(setup["student"], setup["school_class"], date(2026, 11, 5))
        entries = await FinancialPlanService(db_session).list_for_enrollment(enrollment.id)
        await db_session.delete(entries[0])
        enrollment.has_financial_plan = False
        await db_session.commit()

        original_add = db_session.add
        attempts = []

        def flaky_add(instance, *args, **kwargs):
            if isinstance(instance, FinancialPlanEntry):
                attempts.append(instance.month)
                raise OperationalError("INSERT", {}, Exception("connection reset"))
            return original_add(instance, *args, **kwargs)

        monkeypatch.setattr(db_session, "add", flaky_add)
        result = await FinancialPlanGenerator(db_session, max_attempts=2).generate(enrollment)
        monkeypatch.undo()
        await db_session.commit()

        assert attempts == ["Novembro", "Novembro"]
        assert [m.month for m in result.failed] == ["Novembro"]
        assert [m.month for m in result.skipped] == ["Dezembro"]
        assert result.complete is False
        assert enrollment.has_financial_plan is False

    async def test_dropped_enrollment_keeps_entries(self, db_session: AsyncSession, factory, setup):
        enrollment, _ = await factory.enrollment(setup["student"], setup["school_class"], date(2026, 3, 15))

        await EnrollmentService(db_session).change_status(enrollment.id, EnrollmentStatus.DROPPED)

        assert await _entry_count(db_session, enrollment.id) == 10

    async def test_enrollment_after_school_year_end(self, db_session: AsyncSession, factory, setup):
        student_id = setup["student"].id

        with pytest.raises(ValidationError) as exc_info:
            await factory.enrollment(setup["student"], setup["school_class"], date(2027, 2, 5))

        assert exc_info.value.details == {"field": "enrollment_date"}
        result = await db_session.execute(select(func.count(Enrollment.id)).where(Enrollment.student_id == student_id))
        assert result.scalar() == 0

    async def test_concurrently_written_month_is_skipped(self, db_session: AsyncSession, factory, setup, monkeypatch):
        """Rows that appear after the existence check hit the unique constraint and count as skipped."""
        enrollment, _ = await factory.enrollment(setup["student"], setup["school_class"], date(2026, 11, 5))
        enrollment_id = enrollment.id
        generator = FinancialPlanGenerator(db_session)

        async def nothing_written_yet(_enrollment_id):
            return set()

        monkeypatch.setattr(generator, "_existing_months", nothing_written_yet)
        result = await generator.generate(enrollment)
        await db_session.commit()

        assert result.created == []
        assert [m.month for m in result.skipped] == ["Novembro", "Dezembro"]
        assert result.failed == []
        assert await _entry_count(db_session, enrollment_id) == 2

    async def test_class_removed_after_enrollment(self, db_session: AsyncSession, factory, setup):
        enrollment, _ = await factory.enrollment(setup["student"], setup["school_class"], date(2026, 3, 15))
        enrollment.class_id = 987654
        await db_session.commit()

        with pytest.raises(ClassNotFoundError):
            await FinancialPlanGenerator(db_session).generate(enrollment)

    async def test_course_removed_after_enrollment(self, db_session: AsyncSession, factory, setup):
        enrollment, _ = await factory.enrollment(setup["student"], setup["school_class"], date(2026, 3, 15))
        setup["school_class"].course_id = 987654
        await db_session.commit()

        with pytest.raises(CourseNotFoundError) as exc_info:
            await FinancialPlanGenerator(db_session).generate(enrollment)

        assert exc_info.value.code == "COURSE_NOT_FOUND"
        assert await _entry_count(db_session, enrollment.id) == 10
