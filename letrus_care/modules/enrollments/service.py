"""Service for Enrollments module."""

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from letrus_care.core.audit import AuditAction, AuditService
from letrus_care.core.exceptions import (
    AppException,
    ClassNotFoundError,
    DuplicateError,
    NotFoundError,
    ValidationError,
)
from letrus_care.modules.courses.models import SchoolClass
from letrus_care.modules.enrollments.models import Enrollment, EnrollmentStatus
from letrus_care.modules.enrollments.schemas import EnrollmentCreate
from letrus_care.modules.financial_plans.generator import FinancialPlanGenerator, GenerationResult
from letrus_care.modules.students.models import Student
from letrus_care.shared.utils.dates import business_now

logger = logging.getLogger(__name__)

# Allowed status changes; "dropped" and "completed" are final
_TRANSITIONS = {
    EnrollmentStatus.ENROLLED.value: {EnrollmentStatus.COMPLETED.value, EnrollmentStatus.DROPPED.value},
}


class EnrollmentService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.audit = AuditService(db)

    async def create_enrollment(
        self, data: EnrollmentCreate, user_id: int | None = None
    ) -> tuple[Enrollment, GenerationResult]:
        """
        Enroll a student in a class and generate the financial plan.

        If the plan cannot be generated (no current school year, missing
        class/course, no fee version on the enrollment date) the enrollment
        is rolled back and the error propagates.
        """
        student = (
            await self.db.execute(select(Student).where(Student.id == data.student_id))
        ).scalar_one_or_none()
        if not student:
            raise NotFoundError("Student", data.student_id)
        if student.center_id != data.center_id:
            raise ValidationError("Student belongs to another center", field="student_id")

        school_class = (
            await self.db.execute(select(SchoolClass).where(SchoolClass.id == data.class_id))
        ).scalar_one_or_none()
        if not school_class:
            raise ClassNotFoundError(data.class_id)
        if school_class.center_id != data.center_id:
            raise ValidationError("Class belongs to another center", field="class_id")

        existing = await self.db.execute(
            select(Enrollment.id).where(
                Enrollment.student_id == data.student_id,
                Enrollment.class_id == data.class_id,
                Enrollment.status == EnrollmentStatus.ENROLLED.value,
            )
        )
        if existing.scalar_one_or_none():
            raise DuplicateError("Enrollment", "class_id", data.class_id)

        enrollment = Enrollment(
            center_id=data.center_id,
            student_id=data.student_id,
            class_id=data.class_id,
            user_id=user_id,
            enrollment_date=data.enrollment_date or business_now().date(),
            status=EnrollmentStatus.ENROLLED.value,
            has_scholarship=data.has_scholarship,
            has_financial_plan=False,
        )
        self.db.add(enrollment)
        await self.db.flush()

        await self.audit.log(
            action=AuditAction.CREATE,
            entity_type="Enrollment",
            entity_id=enrollment.id,
            user_id=user_id,
            center_id=enrollment.center_id,
            new_values={
                "student_id": enrollment.student_id,
                "class_id": enrollment.class_id,
                "enrollment_date": enrollment.enrollment_date.isoformat(),
            },
        )

        try:
            result = await FinancialPlanGenerator(self.db).generate(enrollment, user_id=user_id)
        except AppException:
            await self.db.rollback()
            raise

        await self.db.commit()
        return enrollment, result

    async def get_enrollment(self, enrollment_id: int) -> Enrollment:
        result = await self.db.execute(select(Enrollment).where(Enrollment.id == enrollment_id))
        enrollment = result.scalar_one_or_none()
        if not enrollment:
            raise NotFoundError("Enrollment", enrollment_id)
        return enrollment

    async def get_by_student(self, student_id: int) -> Enrollment:
        """Latest enrollment of a student."""
        result = await self.db.execute(
            select(Enrollment)
            .where(Enrollment.student_id == student_id)
            .order_by(Enrollment.enrollment_date.desc(), Enrollment.id.desc())
            .limit(1)
        )
        enrollment = result.scalar_one_or_none()
        if not enrollment:
            raise NotFoundError("Enrollment for student", student_id)
        return enrollment

    async def list_enrollments(
        self,
        center_id: int,
        status: EnrollmentStatus | None = None,
        page: int = 1,
        limit: int = 20,
    ) -> tuple[list[Enrollment], int]:
        query = select(Enrollment).where(Enrollment.center_id == center_id)
        if status:
            query = query.where(Enrollment.status == status.value)

        total = (
            await self.db.execute(select(func.count()).select_from(query.subquery()))
        ).scalar() or 0

        query = (
            query.order_by(Enrollment.enrollment_date.desc(), Enrollment.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        result = await self.db.execute(query)
        return list(result.scalars().all()), total

    async def change_status(
        self, enrollment_id: int, status: EnrollmentStatus, user_id: int | None = None
    ) -> Enrollment:
        """
        Complete or drop an enrollment.

        Plan entries are left as they are; dropping does not cancel them.
        """
        enrollment = await self.get_enrollment(enrollment_id)
        if status.value == enrollment.status:
            return enrollment
        if status.value not in _TRANSITIONS.get(enrollment.status, set()):
            raise ValidationError(
                f"Cannot change enrollment status from {enrollment.status} to {status.value}",
                field="status",
            )

        old_status = enrollment.status
        enrollment.status = status.value

        await self.audit.log(
            action=AuditAction.UPDATE,
            entity_type="Enrollment",
            entity_id=enrollment.id,
            user_id=user_id,
            center_id=enrollment.center_id,
            old_values={"status": old_status},
            new_values={"status": enrollment.status},
        )
        await self.db.commit()
        return enrollment

    async def generate_financial_plan(
        self, enrollment_id: int, user_id: int | None = None
    ) -> tuple[Enrollment, GenerationResult]:
        """Fill in missing plan entries of an existing enrollment."""
        enrollment = await self.get_enrollment(enrollment_id)
        result = await FinancialPlanGenerator(self.db).generate(enrollment, user_id=user_id)
        await self.db.commit()
        return enrollment, result
