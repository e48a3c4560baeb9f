from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from letrus_care.core.auth.dependencies import AdminUser, StaffUser, ensure_center_access
from letrus_care.core.database import get_db
from letrus_care.modules.school_years.calendar import compute_due_dates, enumerate_billing_months
from letrus_care.modules.school_years.schemas import (
    BillingMonthResponse,
    SchoolYearCreate,
    SchoolYearResponse,
    SchoolYearUpdate,
)
from letrus_care.modules.school_years.service import SchoolYearService
from letrus_care.shared.schemas import SuccessResponse

router = APIRouter(prefix="/school-years", tags=["School Years"])


@router.post("", response_model=SuccessResponse[SchoolYearResponse], status_code=status.HTTP_201_CREATED)
async def create_school_year(
    data: SchoolYearCreate,
    current_user: AdminUser,
    db: AsyncSession = Depends(get_db),
):
    ensure_center_access(current_user, data.center_id)
    school_year = await SchoolYearService(db).create_school_year(data, created_by_id=current_user.id)
    return SuccessResponse(data=SchoolYearResponse.model_validate(school_year), message="School year created")


@router.get("/center/{center_id}", response_model=SuccessResponse[list[SchoolYearResponse]])
async def list_school_years(
    center_id: int,
    current_user: StaffUser,
    db: AsyncSession = Depends(get_db),
):
    ensure_center_access(current_user, center_id)
    years = await SchoolYearService(db).list_school_years(center_id)
    return SuccessResponse(data=[SchoolYearResponse.model_validate(y) for y in years])


@router.get("/center/{center_id}/current", response_model=SuccessResponse[SchoolYearResponse])
async def get_current_school_year(
    center_id: int,
    current_user: StaffUser,
    db: AsyncSession = Depends(get_db),
):
    ensure_center_access(current_user, center_id)
    school_year = await SchoolYearService(db).get_current_school_year(center_id)
    return SuccessResponse(data=SchoolYearResponse.model_validate(school_year))


@router.get("/{school_year_id}", response_model=SuccessResponse[SchoolYearResponse])
async def get_school_year(
    school_year_id: int,
    current_user: StaffUser,
    db: AsyncSession = Depends(get_db),
):
    school_year = await SchoolYearService(db).get_school_year(school_year_id)
    ensure_center_access(current_user, school_year.center_id)
    return SuccessResponse(data=SchoolYearResponse.model_validate(school_year))


@router.get("/{school_year_id}/billing-months", response_model=SuccessResponse[list[BillingMonthResponse]])
async def get_billing_months(
    school_year_id: int,
    current_user: StaffUser,
    db: AsyncSession = Depends(get_db),
):
    """Billing months of the whole school year with their due dates."""
    school_year = await SchoolYearService(db).get_school_year(school_year_id)
    ensure_center_access(current_user, school_year.center_id)
    months = enumerate_billing_months(school_year.start_date, school_year.end_date)
    return SuccessResponse(
        data=[
            BillingMonthResponse(month=m.month, year=m.year, month_index=m.month_index, due_date=due)
            for m, due in zip(months, compute_due_dates(months))
        ]
    )


@router.patch("/{school_year_id}", response_model=SuccessResponse[SchoolYearResponse])
async def update_school_year(
    school_year_id: int,
    data: SchoolYearUpdate,
    current_user: AdminUser,
    db: AsyncSession = Depends(get_db),
):
    service = SchoolYearService(db)
    ensure_center_access(current_user, (await service.get_school_year(school_year_id)).center_id)
    school_year = await service.update_school_year(school_year_id, data, updated_by_id=current_user.id)
    return SuccessResponse(data=SchoolYearResponse.model_validate(school_year), message="School year updated")


@router.post("/{school_year_id}/set-current", response_model=SuccessResponse[SchoolYearResponse])
async def set_current_school_year(
    school_year_id: int,
    current_user: AdminUser,
    db: AsyncSession = Depends(get_db),
):
    service = SchoolYearService(db)
    ensure_center_access(current_user, (await service.get_school_year(school_year_id)).center_id)
    school_year = await service.set_current_school_year(school_year_id, user_id=current_user.id)
    return SuccessResponse(data=SchoolYearResponse.model_validate(school_year), message="Current school year set")
