from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from letrus_care.core.auth.dependencies import AdminUser, StaffUser, ensure_center_access
from letrus_care.core.database import get_db
from letrus_care.modules.courses.models import Course, TuitionFee
from letrus_care.modules.courses.schemas import (
    CourseCreate,
    CourseResponse,
    CourseUpdate,
    CourseWithFeeResponse,
    SchoolClassCreate,
    SchoolClassResponse,
    TuitionFeeResponse,
)
from letrus_care.modules.courses.service import CourseService
from letrus_care.shared.schemas import SuccessResponse

router = APIRouter(prefix="/courses", tags=["Courses"])
classes_router = APIRouter(prefix="/classes", tags=["Classes"])


def _with_fee(course: Course, fee: TuitionFee | None) -> CourseWithFeeResponse:
    return CourseWithFeeResponse(
        **CourseResponse.model_validate(course).model_dump(),
        tuition_fee=TuitionFeeResponse.model_validate(fee) if fee else None,
    )


@router.post("", response_model=SuccessResponse[CourseWithFeeResponse], status_code=status.HTTP_201_CREATED)
async def create_course(
    data: CourseCreate,
    current_user: AdminUser,
    db: AsyncSession = Depends(get_db),
):
    ensure_center_access(current_user, data.center_id)
    course, fee = await CourseService(db).create_course(data, created_by_id=current_user.id)
    return SuccessResponse(data=_with_fee(course, fee), message="Course created")


@router.get("/center/{center_id}", response_model=SuccessResponse[list[CourseWithFeeResponse]])
async def list_courses(
    center_id: int,
    current_user: StaffUser,
    include_inactive: bool = Query(False),
    db: AsyncSession = Depends(get_db),
):
    ensure_center_access(current_user, center_id)
    rows = await CourseService(db).list_courses(center_id, include_inactive=include_inactive)
    return SuccessResponse(data=[_with_fee(course, fee) for course, fee in rows])


@router.get("/{course_id}", response_model=SuccessResponse[CourseWithFeeResponse])
async def get_course(
    course_id: int,
    current_user: StaffUser,
    db: AsyncSession = Depends(get_db),
):
    service = CourseService(db)
    course = await service.get_course(course_id)
    ensure_center_access(current_user, course.center_id)
    fee = await service.ledger.find_active_fee(course.id)
    return SuccessResponse(data=_with_fee(course, fee))


@router.patch("/{course_id}", response_model=SuccessResponse[CourseWithFeeResponse])
async def update_course(
    course_id: int,
    data: CourseUpdate,
    current_user: AdminUser,
    db: AsyncSession = Depends(get_db),
):
    service = CourseService(db)
    ensure_center_access(current_user, (await service.get_course(course_id)).center_id)
    course, fee = await service.update_course(course_id, data, updated_by_id=current_user.id)
    return SuccessResponse(data=_with_fee(course, fee), message="Course updated")


@router.delete("/{course_id}", response_model=SuccessResponse[CourseResponse])
async def deactivate_course(
    course_id: int,
    current_user: AdminUser,
    db: AsyncSession = Depends(get_db),
):
    service = CourseService(db)
    ensure_center_access(current_user, (await service.get_course(course_id)).center_id)
    course = await service.deactivate_course(course_id, deactivated_by_id=current_user.id)
    return SuccessResponse(data=CourseResponse.model_validate(course), message="Course deactivated")


@router.get("/{course_id}/tuition-fees", response_model=SuccessResponse[list[TuitionFeeResponse]])
async def tuition_fee_history(
    course_id: int,
    current_user: StaffUser,
    db: AsyncSession = Depends(get_db),
):
    service = CourseService(db)
    ensure_center_access(current_user, (await service.get_course(course_id)).center_id)
    versions = await service.fee_history(course_id)
    return SuccessResponse(data=[TuitionFeeResponse.model_validate(v) for v in versions])


# --- Classes ---


@classes_router.post("", response_model=SuccessResponse[SchoolClassResponse], status_code=status.HTTP_201_CREATED)
async def create_class(
    data: SchoolClassCreate,
    current_user: AdminUser,
    db: AsyncSession = Depends(get_db),
):
    ensure_center_access(current_user, data.center_id)
    school_class = await CourseService(db).create_class(data, created_by_id=current_user.id)
    return SuccessResponse(data=SchoolClassResponse.model_validate(school_class), message="Class created")


@classes_router.get("/center/{center_id}", response_model=SuccessResponse[list[SchoolClassResponse]])
async def list_classes(
    center_id: int,
    current_user: StaffUser,
    course_id: int | None = Query(None),
    db: AsyncSession = Depends(get_db),
):
    ensure_center_access(current_user, center_id)
    classes = await CourseService(db).list_classes(center_id, course_id=course_id)
    return SuccessResponse(data=[SchoolClassResponse.model_validate(c) for c in classes])


@classes_router.get("/{class_id}", response_model=SuccessResponse[SchoolClassResponse])
async def get_class(
    class_id: int,
    current_user: StaffUser,
    db: AsyncSession = Depends(get_db),
):
    school_class = await CourseService(db).get_class(class_id)
    ensure_center_access(current_user, school_class.center_id)
    return SuccessResponse(data=SchoolClassResponse.model_validate(school_class))
