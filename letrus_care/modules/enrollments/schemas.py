from datetime import date, datetime

from letrus_care.modules.enrollments.models import EnrollmentStatus
from letrus_care.modules.financial_plans.generator import GenerationResult
from letrus_care.shared.schemas import BaseSchema


class EnrollmentCreate(BaseSchema):
    center_id: int
    student_id: int
    class_id: int
    # Defaults to today in the business timezone
    enrollment_date: date | None = None
    has_scholarship: bool = False


class EnrollmentStatusUpdate(BaseSchema):
    status: EnrollmentStatus


class EnrollmentResponse(BaseSchema):
    id: int
    center_id: int
    student_id: int
    class_id: int
    user_id: int | None
    enrollment_date: date
    status: EnrollmentStatus
    tuition_fee_id: int | None
    has_scholarship: bool
    has_financial_plan: bool
    created_at: datetime


class GenerationResultResponse(BaseSchema):
    school_year_id: int
    tuition_fee_id: int
    created_months: list[str]
    skipped_months: list[str]
    failed_months: list[str]
    complete: bool

    @classmethod
    def from_result(cls, result: GenerationResult) -> "GenerationResultResponse":
        def labels(months):
            return [f"{m.month}/{m.year}" for m in months]

        return cls(
            school_year_id=result.school_year_id,
            tuition_fee_id=result.tuition_fee_id,
            created_months=labels(result.created),
            skipped_months=labels(result.skipped),
            failed_months=labels(result.failed),
            complete=result.complete,
        )


class EnrollmentCreatedResponse(BaseSchema):
    enrollment: EnrollmentResponse
    financial_plan: GenerationResultResponse
