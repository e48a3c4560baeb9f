"""Payment model."""

from datetime import date
from decimal import Decimal
from enum import StrEnum

from sqlalchemy import BigInteger, Date, ForeignKey, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from letrus_care.core.database.base import BaseModel


class PaymentMethod(StrEnum):
    CASH = "cash"
    MULTICAIXA_EXPRESS = "multicaixa_express"
    BANK_TRANSFER = "bank_transfer"


class PaymentStatus(StrEnum):
    PAID = "paid"
    PENDING = "pending"
    OVERDUE = "overdue"


class Payment(BaseModel):
    """
    Money received for an enrollment.

    The month it pays for is not stored here: it is the financial plan
    entry whose linked_payment_id points at this row.
    """

    __tablename__ = "payments"

    enrollment_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("enrollments.id"), nullable=False, index=True
    )
    center_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("centers.id"), nullable=False, index=True
    )
    user_id: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("users.id"), nullable=True
    )
    receipt_number: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    amount: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)
    late_fee: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False, default=Decimal("0.00"))
    payment_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    payment_method: Mapped[str] = mapped_column(
        String(30), nullable=False, default=PaymentMethod.CASH.value
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=PaymentStatus.PAID.value, index=True
    )
