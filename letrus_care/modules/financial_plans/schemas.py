from datetime import date, datetime
from decimal import Decimal

from letrus_care.modules.financial_plans.models import FinancialPlanStatus
from letrus_care.shared.schemas import BaseSchema


class FinancialPlanEntryResponse(BaseSchema):
    id: int
    enrollment_id: int
    center_id: int
    school_year_id: int
    month: str
    year: int
    due_date: date
    tuition_fee: Decimal
    status: FinancialPlanStatus
    linked_payment_id: int | None
    created_at: datetime


class FinancialPlanSummary(BaseSchema):
    status: FinancialPlanStatus | None
    count: int
    total: Decimal


class OverdueSweepResponse(BaseSchema):
    updated: int
