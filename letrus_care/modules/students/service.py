"""Service for Students module."""

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from letrus_care.core.audit import AuditAction, AuditService
from letrus_care.core.exceptions import DuplicateError, NotFoundError
from letrus_care.modules.students.models import Student, StudentStatus
from letrus_care.modules.students.schemas import StudentCreate


class StudentService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.audit = AuditService(db)

    async def create_student(self, data: StudentCreate, created_by_id: int | None = None) -> Student:
        existing = await self.db.execute(
            select(Student).where(
                Student.center_id == data.center_id,
                Student.student_code == data.student_code,
            )
        )
        if existing.scalar_one_or_none():
            raise DuplicateError("Student", "student_code", data.student_code)

        student = Student(
            center_id=data.center_id,
            student_code=data.student_code,
            full_name=data.full_name,
            birth_date=data.birth_date,
            phone=data.phone,
            guardian_name=data.guardian_name,
            status=StudentStatus.ACTIVE.value,
        )
        self.db.add(student)
        await self.db.flush()

        await self.audit.log(
            action=AuditAction.CREATE,
            entity_type="Student",
            entity_id=student.id,
            user_id=created_by_id,
            center_id=student.center_id,
            new_values={"student_code": student.student_code, "full_name": student.full_name},
        )
        await self.db.commit()
        return student

    async def get_student(self, student_id: int) -> Student:
        result = await self.db.execute(select(Student).where(Student.id == student_id))
        student = result.scalar_one_or_none()
        if not student:
            raise NotFoundError("Student", student_id)
        return student

    async def list_students(
        self, center_id: int, page: int = 1, limit: int = 20
    ) -> tuple[list[Student], int]:
        query = select(Student).where(Student.center_id == center_id)
        total = (
            await self.db.execute(select(func.count()).select_from(query.subquery()))
        ).scalar() or 0

        query = query.order_by(Student.full_name).offset((page - 1) * limit).limit(limit)
        result = await self.db.execute(query)
        return list(result.scalars().all()), total
