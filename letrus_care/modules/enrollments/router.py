from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from letrus_care.core.auth.dependencies import StaffUser, ensure_center_access
from letrus_care.core.database import get_db
from letrus_care.modules.enrollments.models import EnrollmentStatus
from letrus_care.modules.enrollments.schemas import (
    EnrollmentCreate,
    EnrollmentCreatedResponse,
    EnrollmentResponse,
    EnrollmentStatusUpdate,
    GenerationResultResponse,
)
from letrus_care.modules.enrollments.service import EnrollmentService
from letrus_care.shared.schemas import PaginatedResponse, SuccessResponse

router = APIRouter(prefix="/enrollments", tags=["Enrollments"])


@router.post("", response_model=SuccessResponse[EnrollmentCreatedResponse], status_code=status.HTTP_201_CREATED)
async def create_enrollment(
    data: EnrollmentCreate,
    current_user: StaffUser,
    db: AsyncSession = Depends(get_db),
):
    """Enroll a student; the financial plan is generated in the same transaction."""
    ensure_center_access(current_user, data.center_id)
    enrollment, result = await EnrollmentService(db).create_enrollment(data, user_id=current_user.id)
    return SuccessResponse(
        data=EnrollmentCreatedResponse(
            enrollment=EnrollmentResponse.model_validate(enrollment),
            financial_plan=GenerationResultResponse.from_result(result),
        ),
        message="Enrollment created",
    )


@router.get("/center/{center_id}", response_model=SuccessResponse[PaginatedResponse[EnrollmentResponse]])
async def list_enrollments(
    center_id: int,
    current_user: StaffUser,
    enrollment_status: EnrollmentStatus | None = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    ensure_center_access(current_user, center_id)
    enrollments, total = await EnrollmentService(db).list_enrollments(
        center_id, status=enrollment_status, page=page, limit=limit
    )
    return SuccessResponse(
        data=PaginatedResponse.create(
            items=[EnrollmentResponse.model_validate(e) for e in enrollments],
            total=total,
            page=page,
            limit=limit,
        )
    )


@router.get("/student/{student_id}", response_model=SuccessResponse[EnrollmentResponse])
async def get_student_enrollment(
    student_id: int,
    current_user: StaffUser,
    db: AsyncSession = Depends(get_db),
):
    enrollment = await EnrollmentService(db).get_by_student(student_id)
    ensure_center_access(current_user, enrollment.center_id)
    return SuccessResponse(data=EnrollmentResponse.model_validate(enrollment))


@router.get("/{enrollment_id}", response_model=SuccessResponse[EnrollmentResponse])
async def get_enrollment(
    enrollment_id: int,
    current_user: StaffUser,
    db: AsyncSession = Depends(get_db),
):
    enrollment = await EnrollmentService(db).get_enrollment(enrollment_id)
    ensure_center_access(current_user, enrollment.center_id)
    return SuccessResponse(data=EnrollmentResponse.model_validate(enrollment))


@router.patch("/{enrollment_id}/status", response_model=SuccessResponse[EnrollmentResponse])
async def change_enrollment_status(
    enrollment_id: int,
    data: EnrollmentStatusUpdate,
    current_user: StaffUser,
    db: AsyncSession = Depends(get_db),
):
    service = EnrollmentService(db)
    ensure_center_access(current_user, (await service.get_enrollment(enrollment_id)).center_id)
    enrollment = await service.change_status(enrollment_id, data.status, user_id=current_user.id)
    return SuccessResponse(data=EnrollmentResponse.model_validate(enrollment), message="Enrollment updated")


@router.post("/{enrollment_id}/financial-plan", response_model=SuccessResponse[GenerationResultResponse])
async def generate_financial_plan(
    enrollment_id: int,
    current_user: StaffUser,
    db: AsyncSession = Depends(get_db),
):
    """Create any missing plan entries (safe to repeat)."""
    service = EnrollmentService(db)
    ensure_center_access(current_user, (await service.get_enrollment(enrollment_id)).center_id)
    _, result = await service.generate_financial_plan(enrollment_id, user_id=current_user.id)
    return SuccessResponse(data=GenerationResultResponse.from_result(result))
