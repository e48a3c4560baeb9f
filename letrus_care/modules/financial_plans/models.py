"""Financial plan entry: one tuition obligation per enrollment per billing month."""

from datetime import date
from decimal import Decimal
from enum import StrEnum

from sqlalchemy import BigInteger, Date, ForeignKey, Integer, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from letrus_care.core.database.base import BaseModel


class FinancialPlanStatus(StrEnum):
    PENDING = "pending"
    PAID = "paid"
    OVERDUE = "overdue"


class FinancialPlanEntry(BaseModel):
    """
    Written by the generator, then mutated only by two transitions:
    reconciliation (pending|overdue -> paid) and the overdue sweep
    (pending -> overdue). Rows are never deleted.
    """

    __tablename__ = "financial_plan_entries"

    enrollment_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("enrollments.id"), nullable=False, index=True
    )
    center_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("centers.id"), nullable=False, index=True
    )
    user_id: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("users.id"), nullable=True
    )
    school_year_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("school_years.id"), nullable=False, index=True
    )

    month: Mapped[str] = mapped_column(String(20), nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    due_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    tuition_fee: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)

    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=FinancialPlanStatus.PENDING.value, index=True
    )
    linked_payment_id: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("payments.id"), nullable=True, index=True
    )

    __table_args__ = (
        UniqueConstraint(
            "enrollment_id", "month", "year", name="uq_financial_plan_entries_enrollment_month_year"
        ),
    )

    @property
    def is_paid(self) -> bool:
        return self.status == FinancialPlanStatus.PAID.value
