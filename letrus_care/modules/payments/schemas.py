from datetime import date, datetime
from decimal import Decimal

from pydantic import Field, field_validator

from letrus_care.core.exceptions import ValidationError
from letrus_care.modules.payments.models import PaymentMethod, PaymentStatus
from letrus_care.modules.school_years.calendar import canonical_month_name
from letrus_care.shared.schemas import BaseSchema

NOT_AVAILABLE = "N/D"


class PaymentCreate(BaseSchema):
    center_id: int
    enrollment_id: int
    amount: Decimal = Field(gt=0)
    late_fee: Decimal = Field(Decimal("0"), ge=0)
    # Defaults to today in the business timezone
    payment_date: date | None = None
    payment_method: PaymentMethod = PaymentMethod.CASH
    month: str = Field(description="Billing month paid for, e.g. 'Março'")
    year: int = Field(ge=2000, le=2100)

    @field_validator("month")
    @classmethod
    def canonical_month(cls, v: str) -> str:
        try:
            return canonical_month_name(v)
        except ValidationError as exc:
            raise ValueError(exc.message) from None


class PaymentResponse(BaseSchema):
    id: int
    center_id: int
    enrollment_id: int
    user_id: int | None
    receipt_number: str
    amount: Decimal
    late_fee: Decimal
    payment_date: date
    payment_method: PaymentMethod
    status: PaymentStatus
    created_at: datetime
    payment_month_reference: str = NOT_AVAILABLE
    payment_year_reference: int | str = NOT_AVAILABLE


class PaymentRecordedResponse(BaseSchema):
    payment: PaymentResponse
    financial_plan_entry_id: int


class PaymentUpdate(BaseSchema):
    """Only the method and date of a payment can be corrected."""

    payment_method: PaymentMethod | None = None
    payment_date: date | None = None


class PaymentSearchResult(PaymentResponse):
    student_id: int
    student_code: str
    student_name: str
