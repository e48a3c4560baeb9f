"""Student model."""

from datetime import date
from enum import StrEnum

from sqlalchemy import BigInteger, Date, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from letrus_care.core.database.base import BaseModel


class StudentStatus(StrEnum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class Student(BaseModel):
    """Student registered at a center."""

    __tablename__ = "students"

    center_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("centers.id"), nullable=False, index=True
    )
    student_code: Mapped[str] = mapped_column(String(50), nullable=False)
    full_name: Mapped[str] = mapped_column(String(200), nullable=False)
    birth_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    guardian_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=StudentStatus.ACTIVE.value, index=True
    )

    __table_args__ = (
        UniqueConstraint("center_id", "student_code", name="uq_students_center_code"),
    )

    @property
    def is_active(self) -> bool:
        return self.status == StudentStatus.ACTIVE.value
