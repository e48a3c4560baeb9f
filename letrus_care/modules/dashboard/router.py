from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from letrus_care.core.auth.dependencies import StaffUser, ensure_center_access
from letrus_care.core.database import get_db
from letrus_care.modules.dashboard.schemas import DashboardSummary
from letrus_care.modules.dashboard.service import DashboardService
from letrus_care.shared.schemas import SuccessResponse

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


@router.get("/center/{center_id}", response_model=SuccessResponse[DashboardSummary])
async def get_dashboard(
    center_id: int,
    current_user: StaffUser,
    db: AsyncSession = Depends(get_db),
):
    ensure_center_access(current_user, center_id)
    summary = await DashboardService(db).get_summary(center_id)
    return SuccessResponse(data=DashboardSummary(**summary))
