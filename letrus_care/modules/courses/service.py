"""Service for Courses module (courses, classes, tuition fee versions)."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from letrus_care.core.audit import AuditAction, AuditService
from letrus_care.core.exceptions import ClassNotFoundError, CourseNotFoundError, ValidationError
from letrus_care.modules.courses.ledger import TuitionFeeLedger
from letrus_care.modules.courses.models import (
    Course,
    CourseStatus,
    SchoolClass,
    TuitionFee,
    TuitionFeeStatus,
)
from letrus_care.modules.courses.schemas import CourseCreate, CourseUpdate, SchoolClassCreate


class CourseService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.audit = AuditService(db)
        self.ledger = TuitionFeeLedger(db)

    # --- Courses ---

    async def create_course(self, data: CourseCreate, created_by_id: int | None = None) -> tuple[Course, TuitionFee]:
        """Create a course together with its first active tuition fee version."""
        course = Course(
            center_id=data.center_id,
            name=data.name,
            description=data.description,
            start_date=data.start_date,
            end_date=data.end_date,
            course_type=data.course_type.value,
            status=CourseStatus.ACTIVE.value,
        )
        self.db.add(course)
        await self.db.flush()

        fee = await self.ledger.replace_fee(course.id, data.tuition_fee, user_id=created_by_id)

        await self.audit.log(
            action=AuditAction.CREATE,
            entity_type="Course",
            entity_id=course.id,
            user_id=created_by_id,
            center_id=course.center_id,
            new_values={"name": course.name, "fee": str(fee.fee)},
        )
        await self.db.commit()
        return course, fee

    async def get_course(self, course_id: int) -> Course:
        result = await self.db.execute(select(Course).where(Course.id == course_id))
        course = result.scalar_one_or_none()
        if not course:
            raise CourseNotFoundError(course_id)
        return course

    async def list_courses(
        self, center_id: int, include_inactive: bool = False
    ) -> list[tuple[Course, TuitionFee | None]]:
        """Courses of a center merged with their active tuition fee."""
        query = (
            select(Course, TuitionFee)
            .outerjoin(
                TuitionFee,
                (TuitionFee.course_id == Course.id)
                & (TuitionFee.status == TuitionFeeStatus.ACTIVE.value),
            )
            .where(Course.center_id == center_id)
        )
        if not include_inactive:
            query = query.where(Course.status == CourseStatus.ACTIVE.value)
        result = await self.db.execute(query.order_by(Course.name))
        return [(course, fee) for course, fee in result.all()]

    async def update_course(
        self, course_id: int, data: CourseUpdate, updated_by_id: int | None = None
    ) -> tuple[Course, TuitionFee | None]:
        course = await self.get_course(course_id)

        changes = data.model_dump(exclude_unset=True, exclude={"tuition_fee"})
        old_values = {}
        for field, value in changes.items():
            if value is None and field in ("name", "course_type"):
                continue
            old_values[field] = str(getattr(course, field))
            setattr(course, field, value.value if field == "course_type" else value)

        if course.start_date and course.end_date and course.end_date < course.start_date:
            raise ValidationError("end_date must not be before start_date", field="end_date")

        if data.tuition_fee is not None:
            fee = await self.ledger.replace_fee(course.id, data.tuition_fee, user_id=updated_by_id)
        else:
            fee = await self.ledger.find_active_fee(course.id)

        await self.audit.log(
            action=AuditAction.UPDATE,
            entity_type="Course",
            entity_id=course.id,
            user_id=updated_by_id,
            center_id=course.center_id,
            old_values=old_values or None,
            new_values={k: str(v) for k, v in changes.items()} or None,
        )
        await self.db.commit()
        return course, fee

    async def deactivate_course(self, course_id: int, deactivated_by_id: int | None = None) -> Course:
        """Soft-delete a course: it and its fee versions become inactive."""
        course = await self.get_course(course_id)
        course.status = CourseStatus.INACTIVE.value
        versions = await self.ledger.deactivate_all(course.id)

        await self.audit.log(
            action=AuditAction.DEACTIVATE,
            entity_type="Course",
            entity_id=course.id,
            user_id=deactivated_by_id,
            center_id=course.center_id,
            comment=f"{versions} tuition fee version(s) deactivated",
        )
        await self.db.commit()
        return course

    async def fee_history(self, course_id: int) -> list[TuitionFee]:
        await self.get_course(course_id)
        return await self.ledger.list_versions(course_id)

    # --- Classes ---

    async def create_class(self, data: SchoolClassCreate, created_by_id: int | None = None) -> SchoolClass:
        course = await self.get_course(data.course_id)
        if course.center_id != data.center_id:
            raise ValidationError("Course belongs to another center", field="course_id")
        if not course.is_active:
            raise ValidationError("Course is inactive", field="course_id")

        school_class = SchoolClass(
            center_id=data.center_id,
            course_id=course.id,
            name=data.name,
            grade=data.grade,
            status=CourseStatus.ACTIVE.value,
        )
        self.db.add(school_class)
        await self.db.flush()

        await self.audit.log(
            action=AuditAction.CREATE,
            entity_type="SchoolClass",
            entity_id=school_class.id,
            user_id=created_by_id,
            center_id=school_class.center_id,
            new_values={"name": school_class.name, "course_id": course.id},
        )
        await self.db.commit()
        return school_class

    async def get_class(self, class_id: int) -> SchoolClass:
        result = await self.db.execute(select(SchoolClass).where(SchoolClass.id == class_id))
        school_class = result.scalar_one_or_none()
        if not school_class:
            raise ClassNotFoundError(class_id)
        return school_class

    async def list_classes(self, center_id: int, course_id: int | None = None) -> list[SchoolClass]:
        query = select(SchoolClass).where(SchoolClass.center_id == center_id)
        if course_id is not None:
            query = query.where(SchoolClass.course_id == course_id)
        result = await self.db.execute(query.order_by(SchoolClass.name))
        return list(result.scalars().all())
