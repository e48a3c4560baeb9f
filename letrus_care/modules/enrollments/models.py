"""Enrollment model."""

from datetime import date
from enum import StrEnum

from sqlalchemy import BigInteger, Boolean, Date, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from letrus_care.core.database.base import BaseModel


class EnrollmentStatus(StrEnum):
    ENROLLED = "enrolled"
    COMPLETED = "completed"
    DROPPED = "dropped"


class Enrollment(BaseModel):
    """
    A student in a class.

    tuition_fee_id is the fee version in force on enrollment_date. It is bound
    once, when the plan is first generated, and never recomputed.
    """

    __tablename__ = "enrollments"

    student_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("students.id"), nullable=False, index=True
    )
    class_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("classes.id"), nullable=False, index=True
    )
    center_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("centers.id"), nullable=False, index=True
    )
    user_id: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("users.id"), nullable=True
    )
    enrollment_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=EnrollmentStatus.ENROLLED.value, index=True
    )
    tuition_fee_id: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("tuition_fees.id"), nullable=True
    )
    has_scholarship: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    has_financial_plan: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
