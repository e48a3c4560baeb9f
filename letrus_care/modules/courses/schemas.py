from datetime import date, datetime
from decimal import Decimal

from pydantic import Field, model_validator

from letrus_care.modules.courses.models import CourseStatus, CourseType
from letrus_care.shared.schemas import BaseSchema


# --- Tuition fee ---


class TuitionFeeFields(BaseSchema):
    """Prices of one tuition fee version."""

    fee: Decimal = Field(ge=0)
    fee_fine: Decimal = Field(Decimal("0"), ge=0)
    enrollment_fee: Decimal = Field(Decimal("0"), ge=0)
    confirmation_enrollment_fee: Decimal = Field(Decimal("0"), ge=0)


class TuitionFeeResponse(BaseSchema):
    id: int
    course_id: int
    fee: Decimal
    fee_fine: Decimal
    enrollment_fee: Decimal
    confirmation_enrollment_fee: Decimal
    status: str
    created_at: datetime


# --- Course ---


class CourseCreate(BaseSchema):
    center_id: int
    name: str = Field(min_length=1, max_length=200)
    description: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    course_type: CourseType = CourseType.ON_CENTER
    tuition_fee: TuitionFeeFields

    @model_validator(mode="after")
    def check_dates(self):
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class CourseUpdate(BaseSchema):
    """Partial update. A new tuition_fee creates a new fee version."""

    name: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    course_type: CourseType | None = None
    tuition_fee: TuitionFeeFields | None = None


class CourseResponse(BaseSchema):
    id: int
    center_id: int
    name: str
    description: str | None
    start_date: date | None
    end_date: date | None
    status: CourseStatus
    course_type: CourseType
    created_at: datetime


class CourseWithFeeResponse(CourseResponse):
    """Course merged with its currently active tuition fee."""

    tuition_fee: TuitionFeeResponse | None


# --- Class ---


class SchoolClassCreate(BaseSchema):
    center_id: int
    course_id: int
    name: str = Field(min_length=1, max_length=100)
    grade: str | None = Field(None, max_length=50)


class SchoolClassResponse(BaseSchema):
    id: int
    center_id: int
    course_id: int
    name: str
    grade: str | None
    status: str
