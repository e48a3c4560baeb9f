from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from letrus_care.core.auth.dependencies import AdminUser, CurrentUser, ensure_center_access
from letrus_care.core.database import get_db
from letrus_care.modules.centers.schemas import CenterCreate, CenterResponse
from letrus_care.modules.centers.service import CenterService
from letrus_care.shared.schemas import SuccessResponse

router = APIRouter(prefix="/centers", tags=["Centers"])


@router.post("", response_model=SuccessResponse[CenterResponse], status_code=status.HTTP_201_CREATED)
async def create_center(
    data: CenterCreate,
    current_user: AdminUser,
    db: AsyncSession = Depends(get_db),
):
    center = await CenterService(db).create_center(data, created_by_id=current_user.id)
    return SuccessResponse(data=CenterResponse.model_validate(center), message="Center created")


@router.get("/{center_id}", response_model=SuccessResponse[CenterResponse])
async def get_center(
    center_id: int,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
):
    ensure_center_access(current_user, center_id)
    center = await CenterService(db).get_center(center_id)
    return SuccessResponse(data=CenterResponse.model_validate(center))


@router.get("", response_model=SuccessResponse[list[CenterResponse]])
async def list_centers(
    current_user: AdminUser,
    db: AsyncSession = Depends(get_db),
):
    centers = await CenterService(db).list_centers()
    if current_user.center_id is not None:
        centers = [c for c in centers if c.id == current_user.center_id]
    return SuccessResponse(data=[CenterResponse.model_validate(c) for c in centers])
