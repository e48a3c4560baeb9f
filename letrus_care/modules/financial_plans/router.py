from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from letrus_care.core.auth.dependencies import AdminUser, StaffUser, ensure_center_access
from letrus_care.core.database import get_db
from letrus_care.modules.enrollments.service import EnrollmentService
from letrus_care.modules.financial_plans.models import FinancialPlanStatus
from letrus_care.modules.financial_plans.overdue import mark_overdue
from letrus_care.modules.financial_plans.schemas import (
    FinancialPlanEntryResponse,
    FinancialPlanSummary,
    OverdueSweepResponse,
)
from letrus_care.modules.financial_plans.service import FinancialPlanService
from letrus_care.shared.schemas import SuccessResponse

router = APIRouter(prefix="/financial-plans", tags=["Financial Plans"])


@router.get("/enrollment/{enrollment_id}", response_model=SuccessResponse[list[FinancialPlanEntryResponse]])
async def get_enrollment_plan(
    enrollment_id: int,
    current_user: StaffUser,
    school_year_id: int | None = Query(None),
    paid: bool | None = Query(None, description="true: paid only, false: pending and overdue"),
    db: AsyncSession = Depends(get_db),
):
    enrollment = await EnrollmentService(db).get_enrollment(enrollment_id)
    ensure_center_access(current_user, enrollment.center_id)
    entries = await FinancialPlanService(db).list_for_enrollment(
        enrollment_id, school_year_id=school_year_id, paid=paid
    )
    return SuccessResponse(data=[FinancialPlanEntryResponse.model_validate(e) for e in entries])


@router.get("/center/{center_id}/summary", response_model=SuccessResponse[FinancialPlanSummary])
async def get_summary(
    center_id: int,
    current_user: StaffUser,
    school_year_id: int | None = Query(None),
    entry_status: FinancialPlanStatus | None = Query(None, alias="status"),
    due_from: date | None = Query(None),
    due_to: date | None = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """Count and total of a center's plan entries."""
    ensure_center_access(current_user, center_id)
    service = FinancialPlanService(db)
    filters = dict(school_year_id=school_year_id, status=entry_status, due_from=due_from, due_to=due_to)
    return SuccessResponse(
        data=FinancialPlanSummary(
            status=entry_status,
            count=await service.count_entries(center_id, **filters),
            total=await service.sum_entries(center_id, **filters),
        )
    )


@router.post("/overdue-sweep", response_model=SuccessResponse[OverdueSweepResponse])
async def run_overdue_sweep(
    current_user: AdminUser,
    db: AsyncSession = Depends(get_db),
):
    """Run the overdue sweep now instead of waiting for the next tick."""
    updated = await mark_overdue(db)
    await db.commit()
    return SuccessResponse(data=OverdueSweepResponse(updated=updated), message="Overdue sweep completed")
