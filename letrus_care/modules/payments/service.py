"""
Payments and their reconciliation against financial plan entries.

A payment names the (month, year) it pays for. That entry is locked, checked
and marked paid with a link back to the payment, in the same transaction that
creates the payment.
"""

import logging
from calendar import monthrange
from datetime import date

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from letrus_care.core.audit import AuditAction, AuditService
from letrus_care.core.exceptions import (
    AlreadyReconciledError,
    FinancialPlanNotReadyError,
    NoActiveSchoolYearError,
    NotFoundError,
    PlanEntryMissingError,
    ValidationError,
)
from letrus_care.core.receipts.numbers import ReceiptNumberGenerator
from letrus_care.modules.courses.ledger import TuitionFeeLedger
from letrus_care.modules.courses.models import SchoolClass
from letrus_care.modules.enrollments.models import Enrollment
from letrus_care.modules.financial_plans.models import FinancialPlanEntry, FinancialPlanStatus
from letrus_care.modules.payments.models import Payment, PaymentStatus
from letrus_care.modules.payments.schemas import PaymentCreate, PaymentUpdate
from letrus_care.modules.school_years.calendar import (
    BillingMonth,
    canonical_month_name,
    compute_due_dates,
    month_index,
)
from letrus_care.modules.school_years.models import SchoolYear
from letrus_care.modules.students.models import Student
from letrus_care.shared.utils.dates import business_now
from letrus_care.shared.utils.money import round_money

logger = logging.getLogger(__name__)


class PaymentService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.audit = AuditService(db)

    async def _get_enrollment(self, enrollment_id: int) -> Enrollment:
        result = await self.db.execute(select(Enrollment).where(Enrollment.id == enrollment_id))
        enrollment = result.scalar_one_or_none()
        if not enrollment:
            raise NotFoundError("Enrollment", enrollment_id)
        return enrollment

    async def _lock_entry(self, enrollment_id: int, month: str, year: int) -> FinancialPlanEntry | None:
        result = await self.db.execute(
            select(FinancialPlanEntry)
            .where(
                FinancialPlanEntry.enrollment_id == enrollment_id,
                FinancialPlanEntry.month == month,
                FinancialPlanEntry.year == year,
            )
            .with_for_update()
        )
        return result.scalar_one_or_none()

    @staticmethod
    def _ensure_open(entry: FinancialPlanEntry, payment_id: int | None = None) -> None:
        """Pending and overdue entries can be paid; anything linked or paid cannot."""
        linked_elsewhere = entry.linked_payment_id is not None and entry.linked_payment_id != payment_id
        if linked_elsewhere or entry.status == FinancialPlanStatus.PAID.value:
            raise AlreadyReconciledError(entry.id, entry.month, entry.year, entry.linked_payment_id)

    async def record_payment(self, data: PaymentCreate, user_id: int | None = None) -> tuple[Payment, FinancialPlanEntry]:
        """
        Create a payment and mark the referenced plan entry paid.

        Raises NotFoundError, FinancialPlanNotReadyError, PlanEntryMissingError
        or AlreadyReconciledError; on any of them nothing is written.
        """
        enrollment = await self._get_enrollment(data.enrollment_id)
        if enrollment.center_id != data.center_id:
            raise ValidationError("Enrollment belongs to another center", field="enrollment_id")
        if not enrollment.has_financial_plan:
            raise FinancialPlanNotReadyError(enrollment.id)

        entry = await self._lock_entry(enrollment.id, data.month, data.year)
        if entry is None:
            raise PlanEntryMissingError(enrollment.id, data.month, data.year)
        self._ensure_open(entry)

        receipt_number = await ReceiptNumberGenerator(self.db).next_number(enrollment.center_id)
        payment = Payment(
            enrollment_id=enrollment.id,
            center_id=enrollment.center_id,
            user_id=user_id,
            receipt_number=receipt_number,
            amount=round_money(data.amount),
            late_fee=round_money(data.late_fee),
            payment_date=data.payment_date or business_now().date(),
            payment_method=data.payment_method.value,
            status=PaymentStatus.PAID.value,
        )
        self.db.add(payment)
        await self.db.flush()

        entry, _ = await self.reconcile(payment, data.month, data.year, user_id=user_id)

        await self.audit.log(
            action=AuditAction.RECORD_PAYMENT,
            entity_type="Payment",
            entity_id=payment.id,
            user_id=user_id,
            center_id=payment.center_id,
            new_values={
                "receipt_number": payment.receipt_number,
                "amount": str(payment.amount),
                "financial_plan_entry_id": entry.id,
            },
        )
        await self.db.commit()
        return payment, entry

    async def reconcile(
        self,
        payment: Payment,
        month: str,
        year: int,
        materialize_missing: bool = False,
        user_id: int | None = None,
    ) -> tuple[FinancialPlanEntry, bool]:
        """
        Link a payment to its (month, year) entry and mark the entry paid.

        With materialize_missing=True a missing entry is created already paid
        (historical data only). Returns (entry, created). Does not commit.
        """
        month = canonical_month_name(month)
        entry = await self._lock_entry(payment.enrollment_id, month, year)
        created = False
        if entry is None:
            if not materialize_missing:
                raise PlanEntryMissingError(payment.enrollment_id, month, year)
            entry = await self._materialize_entry(payment, month, year, user_id=user_id)
            created = True
        else:
            self._ensure_open(entry, payment_id=payment.id)

        entry.status = FinancialPlanStatus.PAID.value
        entry.linked_payment_id = payment.id
        await self.db.flush()

        logger.info(
            "Payment %s reconciled with financial plan entry %s (%s/%s)",
            payment.id,
            entry.id,
            month,
            year,
        )
        return entry, created

    async def _materialize_entry(
        self, payment: Payment, month: str, year: int, user_id: int | None = None
    ) -> FinancialPlanEntry:
        enrollment = await self._get_enrollment(payment.enrollment_id)
        index = month_index(month)
        first_day = date(year, index + 1, 1)
        last_day = date(year, index + 1, monthrange(year, index + 1)[1])

        # The school year covering that month, else the current one
        result = await self.db.execute(
            select(SchoolYear)
            .where(
                SchoolYear.center_id == enrollment.center_id,
                SchoolYear.start_date <= last_day,
                SchoolYear.end_date >= first_day,
            )
            .order_by(SchoolYear.is_current.desc(), SchoolYear.start_date.desc())
            .limit(1)
        )
        school_year = result.scalar_one_or_none()
        if school_year is None:
            result = await self.db.execute(
                select(SchoolYear).where(
                    SchoolYear.center_id == enrollment.center_id,
                    SchoolYear.is_current.is_(True),
                )
            )
            school_year = result.scalar_one_or_none()
        if school_year is None:
            raise NoActiveSchoolYearError(enrollment.center_id)

        ledger = TuitionFeeLedger(self.db)
        if enrollment.tuition_fee_id is not None:
            version = await ledger.get_version(enrollment.tuition_fee_id)
        else:
            course_id = (
                await self.db.execute(
                    select(SchoolClass.course_id).where(SchoolClass.id == enrollment.class_id)
                )
            ).scalar_one()
            version = await ledger.get_fee_as_of(course_id, enrollment.enrollment_date)

        (due_date,) = compute_due_dates([BillingMonth(month, year, index)])
        entry = FinancialPlanEntry(
            enrollment_id=enrollment.id,
            center_id=enrollment.center_id,
            user_id=enrollment.user_id,
            school_year_id=school_year.id,
            month=month,
            year=year,
            due_date=due_date,
            tuition_fee=version.fee,
            status=FinancialPlanStatus.PAID.value,
            linked_payment_id=payment.id,
        )
        self.db.add(entry)
        await self.db.flush()

        await self.audit.log(
            action=AuditAction.MATERIALIZE_PLAN_ENTRY,
            entity_type="FinancialPlanEntry",
            entity_id=entry.id,
            user_id=user_id,
            center_id=entry.center_id,
            new_values={"payment_id": payment.id, "month": month, "year": year},
        )
        logger.info(
            "Materialized financial plan entry %s for enrollment %s (%s/%s)",
            entry.id,
            enrollment.id,
            month,
            year,
        )
        return entry

    async def get_payment(self, payment_id: int) -> tuple[Payment, FinancialPlanEntry | None]:
        """Payment with the entry it paid (None when never reconciled)."""
        result = await self.db.execute(
            select(Payment, FinancialPlanEntry)
            .outerjoin(FinancialPlanEntry, FinancialPlanEntry.linked_payment_id == Payment.id)
            .where(Payment.id == payment_id)
        )
        row = result.first()
        if not row:
            raise NotFoundError("Payment", payment_id)
        return row[0], row[1]

    async def list_payments(
        self, center_id: int, page: int = 1, limit: int = 20
    ) -> tuple[list[tuple[Payment, FinancialPlanEntry | None]], int]:
        """Center payments, newest first, each with the entry it paid."""
        total = (
            await self.db.execute(
                select(func.count(Payment.id)).where(Payment.center_id == center_id)
            )
        ).scalar() or 0

        result = await self.db.execute(
            select(Payment, FinancialPlanEntry)
            .outerjoin(FinancialPlanEntry, FinancialPlanEntry.linked_payment_id == Payment.id)
            .where(Payment.center_id == center_id)
            .order_by(Payment.payment_date.desc(), Payment.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return [(payment, entry) for payment, entry in result.all()], total

    async def search_payments(
        self, center_id: int, query: str, page: int = 1, limit: int = 20
    ) -> tuple[list[tuple[Payment, FinancialPlanEntry | None, Student]], int]:
        """Center payments of students whose name or code matches `query`."""
        query = query.strip()
        if not query:
            raise ValidationError("Search term is required", field="query")

        search_term = f"%{query}%"
        base = (
            select(Payment.id)
            .join(Enrollment, Enrollment.id == Payment.enrollment_id)
            .join(Student, Student.id == Enrollment.student_id)
            .where(
                Payment.center_id == center_id,
                or_(
                    Student.full_name.ilike(search_term),
                    Student.student_code.ilike(search_term),
                ),
            )
        )
        total = (
            await self.db.execute(select(func.count()).select_from(base.subquery()))
        ).scalar() or 0

        result = await self.db.execute(
            select(Payment, FinancialPlanEntry, Student)
            .join(Enrollment, Enrollment.id == Payment.enrollment_id)
            .join(Student, Student.id == Enrollment.student_id)
            .outerjoin(FinancialPlanEntry, FinancialPlanEntry.linked_payment_id == Payment.id)
            .where(Payment.id.in_(base))
            .order_by(Payment.payment_date.desc(), Payment.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return [(payment, entry, student) for payment, entry, student in result.all()], total

    async def update_payment(
        self, payment_id: int, data: PaymentUpdate, user_id: int | None = None
    ) -> tuple[Payment, FinancialPlanEntry | None]:
        """
        Correct the method or date of a recorded payment.

        Amount, receipt number and the link to the plan entry stay as they are.
        """
        payment, entry = await self.get_payment(payment_id)

        old_values = {}
        new_values = {}
        if data.payment_method is not None and data.payment_method.value != payment.payment_method:
            old_values["payment_method"] = payment.payment_method
            payment.payment_method = data.payment_method.value
            new_values["payment_method"] = payment.payment_method
        if data.payment_date is not None and data.payment_date != payment.payment_date:
            old_values["payment_date"] = payment.payment_date.isoformat()
            payment.payment_date = data.payment_date
            new_values["payment_date"] = payment.payment_date.isoformat()

        if not new_values:
            return payment, entry

        await self.audit.log(
            action=AuditAction.UPDATE,
            entity_type="Payment",
            entity_id=payment.id,
            user_id=user_id,
            center_id=payment.center_id,
            old_values=old_values,
            new_values=new_values,
        )
        await self.db.commit()
        return payment, entry

    async def list_for_enrollment(self, enrollment_id: int) -> list[tuple[Payment, FinancialPlanEntry | None]]:
        result = await self.db.execute(
            select(Payment, FinancialPlanEntry)
            .outerjoin(FinancialPlanEntry, FinancialPlanEntry.linked_payment_id == Payment.id)
            .where(Payment.enrollment_id == enrollment_id)
            .order_by(Payment.payment_date.desc(), Payment.id.desc())
        )
        return [(payment, entry) for payment, entry in result.all()]
