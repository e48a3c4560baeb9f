from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from letrus_care.core.auth.dependencies import StaffUser, ensure_center_access
from letrus_care.core.database import get_db
from letrus_care.modules.students.schemas import StudentCreate, StudentResponse
from letrus_care.modules.students.service import StudentService
from letrus_care.shared.schemas import PaginatedResponse, SuccessResponse

router = APIRouter(prefix="/students", tags=["Students"])


@router.post("", response_model=SuccessResponse[StudentResponse], status_code=status.HTTP_201_CREATED)
async def create_student(
    data: StudentCreate,
    current_user: StaffUser,
    db: AsyncSession = Depends(get_db),
):
    ensure_center_access(current_user, data.center_id)
    student = await StudentService(db).create_student(data, created_by_id=current_user.id)
    return SuccessResponse(data=StudentResponse.model_validate(student), message="Student created")


@router.get("/center/{center_id}", response_model=SuccessResponse[PaginatedResponse[StudentResponse]])
async def list_students(
    center_id: int,
    current_user: StaffUser,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    ensure_center_access(current_user, center_id)
    students, total = await StudentService(db).list_students(center_id, page, limit)
    return SuccessResponse(
        data=PaginatedResponse.create(
            items=[StudentResponse.model_validate(s) for s in students],
            total=total,
            page=page,
            limit=limit,
        )
    )


@router.get("/{student_id}", response_model=SuccessResponse[StudentResponse])
async def get_student(
    student_id: int,
    current_user: StaffUser,
    db: AsyncSession = Depends(get_db),
):
    student = await StudentService(db).get_student(student_id)
    ensure_center_access(current_user, student.center_id)
    return SuccessResponse(data=StudentResponse.model_validate(student))
