from decimal import Decimal

from letrus_care.shared.schemas import BaseSchema


class StudentGrowthPoint(BaseSchema):
    month: str
    year: int
    students: int


class PaymentGrowthPoint(BaseSchema):
    month: str
    year: int
    amount: Decimal


class DashboardSummary(BaseSchema):
    total_active_classes: int
    total_active_students: int
    total_daily_enrollments: int
    total_incomplete_enrollments: int
    total_daily_payments: int
    total_overdue_fees: int
    overdue_amount: Decimal
    pending_amount: Decimal
    student_growth: list[StudentGrowthPoint]
    payment_growth: list[PaymentGrowthPoint]
