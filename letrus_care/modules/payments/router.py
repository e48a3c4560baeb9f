from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from letrus_care.core.auth.dependencies import StaffUser, ensure_center_access
from letrus_care.core.database import get_db
from letrus_care.modules.enrollments.service import EnrollmentService
from letrus_care.modules.financial_plans.models import FinancialPlanEntry
from letrus_care.modules.payments.models import Payment
from letrus_care.modules.payments.schemas import (
    NOT_AVAILABLE,
    PaymentCreate,
    PaymentRecordedResponse,
    PaymentResponse,
    PaymentSearchResult,
    PaymentUpdate,
)
from letrus_care.modules.payments.service import PaymentService
from letrus_care.modules.students.models import Student
from letrus_care.shared.schemas import PaginatedResponse, SuccessResponse

router = APIRouter(prefix="/payments", tags=["Payments"])


def _to_response(payment: Payment, entry: FinancialPlanEntry | None) -> PaymentResponse:
    response = PaymentResponse.model_validate(payment)
    response.payment_month_reference = entry.month if entry else NOT_AVAILABLE
    response.payment_year_reference = entry.year if entry else NOT_AVAILABLE
    return response


def _to_search_result(payment: Payment, entry: FinancialPlanEntry | None, student: Student) -> PaymentSearchResult:
    return PaymentSearchResult(
        **_to_response(payment, entry).model_dump(),
        student_id=student.id,
        student_code=student.student_code,
        student_name=student.full_name,
    )


@router.post("", response_model=SuccessResponse[PaymentRecordedResponse], status_code=status.HTTP_201_CREATED)
async def record_payment(
    data: PaymentCreate,
    current_user: StaffUser,
    db: AsyncSession = Depends(get_db),
):
    ensure_center_access(current_user, data.center_id)
    payment, entry = await PaymentService(db).record_payment(data, user_id=current_user.id)
    return SuccessResponse(
        data=PaymentRecordedResponse(
            payment=_to_response(payment, entry),
            financial_plan_entry_id=entry.id,
        ),
        message="Payment recorded",
    )


@router.get("/center/{center_id}", response_model=SuccessResponse[PaginatedResponse[PaymentResponse]])
async def list_payments(
    center_id: int,
    current_user: StaffUser,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    ensure_center_access(current_user, center_id)
    rows, total = await PaymentService(db).list_payments(center_id, page=page, limit=limit)
    return SuccessResponse(
        data=PaginatedResponse.create(
            items=[_to_response(payment, entry) for payment, entry in rows],
            total=total,
            page=page,
            limit=limit,
        )
    )


@router.get(
    "/center/{center_id}/search",
    response_model=SuccessResponse[PaginatedResponse[PaymentSearchResult]],
)
async def search_payments(
    center_id: int,
    current_user: StaffUser,
    query: str = Query(..., min_length=1, description="Student name or code"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    ensure_center_access(current_user, center_id)
    rows, total = await PaymentService(db).search_payments(center_id, query, page=page, limit=limit)
    return SuccessResponse(
        data=PaginatedResponse.create(
            items=[_to_search_result(payment, entry, student) for payment, entry, student in rows],
            total=total,
            page=page,
            limit=limit,
        )
    )


@router.get("/enrollment/{enrollment_id}", response_model=SuccessResponse[list[PaymentResponse]])
async def list_enrollment_payments(
    enrollment_id: int,
    current_user: StaffUser,
    db: AsyncSession = Depends(get_db),
):
    enrollment = await EnrollmentService(db).get_enrollment(enrollment_id)
    ensure_center_access(current_user, enrollment.center_id)
    rows = await PaymentService(db).list_for_enrollment(enrollment_id)
    return SuccessResponse(data=[_to_response(payment, entry) for payment, entry in rows])


@router.get("/{payment_id}", response_model=SuccessResponse[PaymentResponse])
async def get_payment(
    payment_id: int,
    current_user: StaffUser,
    db: AsyncSession = Depends(get_db),
):
    payment, entry = await PaymentService(db).get_payment(payment_id)
    ensure_center_access(current_user, payment.center_id)
    return SuccessResponse(data=_to_response(payment, entry))


@router.patch("/{payment_id}", response_model=SuccessResponse[PaymentResponse])
async def update_payment(
    payment_id: int,
    data: PaymentUpdate,
    current_user: StaffUser,
    db: AsyncSession = Depends(get_db),
):
    """Correct the method or date; amount and reconciliation are never touched."""
    service = PaymentService(db)
    payment, _ = await service.get_payment(payment_id)
    ensure_center_access(current_user, payment.center_id)
    payment, entry = await service.update_payment(payment_id, data, user_id=current_user.id)
    return SuccessResponse(data=_to_response(payment, entry), message="Payment updated")
