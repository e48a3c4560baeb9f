"""Course, class and versioned tuition fee models."""

from datetime import date, datetime
from decimal import Decimal
from enum import StrEnum

from sqlalchemy import (
    BigInteger,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Numeric,
    String,
    Text,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from letrus_care.core.database.base import Base, BaseModel, BigIntPK, utcnow


class CourseStatus(StrEnum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class CourseType(StrEnum):
    ON_HOME = "on_home"
    ON_CENTER = "on_center"


class TuitionFeeStatus(StrEnum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class Course(BaseModel):
    """Course offered by a center. Prices live in TuitionFee versions."""

    __tablename__ = "courses"

    center_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("centers.id"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=CourseStatus.ACTIVE.value, index=True
    )
    course_type: Mapped[str] = mapped_column(
        String(20), nullable=False, default=CourseType.ON_CENTER.value
    )

    classes: Mapped[list["SchoolClass"]] = relationship("SchoolClass", back_populates="course")

    @property
    def is_active(self) -> bool:
        return self.status == CourseStatus.ACTIVE.value


class SchoolClass(BaseModel):
    """A class (turma) of a course; enrollments point here."""

    __tablename__ = "classes"

    center_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("centers.id"), nullable=False, index=True
    )
    course_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("courses.id"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    grade: Mapped[str | None] = mapped_column(String(50), nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=CourseStatus.ACTIVE.value
    )

    course: Mapped["Course"] = relationship("Course", back_populates="classes")


class TuitionFee(Base):
    """
    One version of a course's prices.

    Versions are never deleted. Exactly one is active per course at a time
    (partial unique index below); inactive ones answer "what was the fee
    as of date D" through created_at.
    """

    __tablename__ = "tuition_fees"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    course_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("courses.id"), nullable=False, index=True
    )

    fee: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)
    fee_fine: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)
    enrollment_fee: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)
    confirmation_enrollment_fee: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)

    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=TuitionFeeStatus.ACTIVE.value
    )

    # Set in Python (always UTC) so point-in-time lookups compare like with like
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, index=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    __table_args__ = (
        Index(
            "uq_tuition_fees_one_active_per_course",
            "course_id",
            unique=True,
            postgresql_where=text("status = 'active'"),
            sqlite_where=text("status = 'active'"),
        ),
    )

    @property
    def is_active(self) -> bool:
        return self.status == TuitionFeeStatus.ACTIVE.value
