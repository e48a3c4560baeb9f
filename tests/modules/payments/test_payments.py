from datetime import date, datetime, timezone
from decimal import Decimal

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from letrus_care.core.exceptions import (
    AlreadyReconciledError,
    FinancialPlanNotReadyError,
    NotFoundError,
    PlanEntryMissingError,
    ValidationError,
)
from letrus_care.modules.financial_plans.models import FinancialPlanEntry, FinancialPlanStatus
from letrus_care.modules.payments.models import Payment, PaymentMethod
from letrus_care.modules.payments.schemas import PaymentCreate, PaymentUpdate
from letrus_care.modules.payments.service import PaymentService

JAN_1 = datetime(2026, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
async def enrollment(factory):
    """Enrolled on 15 March 2026: plan runs Março..Dezembro."""
    center = await factory.center()
    await factory.school_year(center)
    course = await factory.course(center, fee="5000", fee_effective_at=JAN_1)
    school_class = await factory.school_class(course)
    student = await factory.student(center)
    enrollment, _ = await factory.enrollment(student, school_class, date(2026, 3, 15))
    return enrollment


def _payment(enrollment, month: str = "Março", year: int = 2026, amount: str = "5000") -> PaymentCreate:
    return PaymentCreate(
        center_id=enrollment.center_id,
        enrollment_id=enrollment.id,
        amount=Decimal(amount),
        payment_date=date(2026, 4, 2),
        payment_method=PaymentMethod.MULTICAIXA_EXPRESS,
        month=month,
        year=year,
    )


async def _entry(db: AsyncSession, enrollment_id: int, month: str) -> FinancialPlanEntry:
    result = await db.execute(
        select(FinancialPlanEntry).where(
            FinancialPlanEntry.enrollment_id == enrollment_id,
            FinancialPlanEntry.month == month,
        )
    )
    return result.scalar_one()


class TestRecordPayment:
    async def test_payment_reconciles_entry(self, db_session: AsyncSession, enrollment):
        payment, entry = await PaymentService(db_session).record_payment(_payment(enrollment))

        assert entry.month == "Março"
        assert entry.status == FinancialPlanStatus.PAID.value
        assert entry.linked_payment_id == payment.id
        assert payment.amount == Decimal("5000.00")
        assert payment.receipt_number.startswith(f"REC-{enrollment.center_id}-")
        assert payment.receipt_number.endswith("-000001")

        other = await _entry(db_session, enrollment.id, "Abril")
        assert other.status == FinancialPlanStatus.PENDING.value

    async def test_month_name_is_case_insensitive(self, db_session: AsyncSession, enrollment):
        _, entry = await PaymentService(db_session).record_payment(_payment(enrollment, month="ABRIL"))

        assert entry.month == "Abril"

    async def test_second_payment_for_same_month(self, db_session: AsyncSession, enrollment):
        service = PaymentService(db_session)
        first, _ = await service.record_payment(_payment(enrollment))

        with pytest.raises(AlreadyReconciledError) as exc_info:
            await service.record_payment(_payment(enrollment))

        assert exc_info.value.details["linked_payment_id"] == first.id
        entry = await _entry(db_session, enrollment.id, "Março")
        assert entry.linked_payment_id == first.id
        payments = (await db_session.execute(select(Payment))).scalars().all()
        assert len(payments) == 1

    async def test_month_outside_plan(self, db_session: AsyncSession, enrollment):
        with pytest.raises(PlanEntryMissingError):
            await PaymentService(db_session).record_payment(_payment(enrollment, month="Janeiro"))

        assert (await db_session.execute(select(Payment))).scalars().all() == []

    async def test_overdue_entry_can_be_paid(self, db_session: AsyncSession, enrollment):
        entry = await _entry(db_session, enrollment.id, "Março")
        entry.status = FinancialPlanStatus.OVERDUE.value
        await db_session.commit()

        payment, paid = await PaymentService(db_session).record_payment(_payment(enrollment))

        assert paid.id == entry.id
        assert paid.status == FinancialPlanStatus.PAID.value
        assert paid.linked_payment_id == payment.id

    async def test_plan_not_ready(self, db_session: AsyncSession, enrollment):
        enrollment.has_financial_plan = False
        await db_session.commit()

        with pytest.raises(FinancialPlanNotReadyError):
            await PaymentService(db_session).record_payment(_payment(enrollment))

    async def test_receipt_numbers_are_sequential(self, db_session: AsyncSession, enrollment):
        service = PaymentService(db_session)

        first, _ = await service.record_payment(_payment(enrollment, month="Março"))
        second, _ = await service.record_payment(_payment(enrollment, month="Abril"))

        assert first.receipt_number.endswith("-000001")
        assert second.receipt_number.endswith("-000002")


class TestReconcile:
    async def test_materialize_missing_entry(self, db_session: AsyncSession, enrollment):
        """Historical payments may create their own entry, already paid."""
        payment = Payment(
            enrollment_id=enrollment.id,
            center_id=enrollment.center_id,
            receipt_number="HIST-1",
            amount=Decimal("5000"),
            late_fee=Decimal("0"),
            payment_date=date(2026, 2, 5),
            payment_method=PaymentMethod.CASH.value,
            status="paid",
        )
        db_session.add(payment)
        await db_session.flush()

        entry, created = await PaymentService(db_session).reconcile(
            payment, "Fevereiro", 2026, materialize_missing=True
        )
        await db_session.commit()

        assert created is True
        assert entry.status == FinancialPlanStatus.PAID.value
        assert entry.linked_payment_id == payment.id
        assert entry.due_date == date(2026, 3, 10)
        assert entry.tuition_fee == Decimal("5000.00")

    async def test_missing_entry_without_materialize(self, db_session: AsyncSession, enrollment):
        payment = Payment(
            enrollment_id=enrollment.id,
            center_id=enrollment.center_id,
            receipt_number="HIST-2",
            amount=Decimal("5000"),
            late_fee=Decimal("0"),
            payment_date=date(2026, 2, 5),
            payment_method=PaymentMethod.CASH.value,
            status="paid",
        )
        db_session.add(payment)
        await db_session.flush()

        with pytest.raises(PlanEntryMissingError):
            await PaymentService(db_session).reconcile(payment, "Fevereiro", 2026)


class TestSearchPayments:
    async def test_search_by_student_name_or_code(self, db_session: AsyncSession, enrollment):
        service = PaymentService(db_session)
        payment, _ = await service.record_payment(_payment(enrollment))

        for query in ("aluno", "alu-001"):
            rows, total = await service.search_payments(enrollment.center_id, query)
            assert total == 1
            found, entry, student = rows[0]
            assert found.id == payment.id
            assert entry.month == "Março"
            assert student.student_code == "ALU-001"

    async def test_no_match(self, db_session: AsyncSession, enrollment):
        await PaymentService(db_session).record_payment(_payment(enrollment))

        rows, total = await PaymentService(db_session).search_payments(enrollment.center_id, "Joaquina")

        assert (rows, total) == ([], 0)

    async def test_other_center_is_not_searched(self, db_session: AsyncSession, factory, enrollment):
        await PaymentService(db_session).record_payment(_payment(enrollment))
        other = await factory.center("Centro B")

        _, total = await PaymentService(db_session).search_payments(other.id, "aluno")

        assert total == 0

    async def test_blank_query(self, db_session: AsyncSession, enrollment):
        with pytest.raises(ValidationError):
            await PaymentService(db_session).search_payments(enrollment.center_id, "   ")


class TestUpdatePayment:
    async def test_method_and_date_change(self, db_session: AsyncSession, enrollment):
        service = PaymentService(db_session)
        payment, entry = await service.record_payment(_payment(enrollment))
        receipt_number = payment.receipt_number

        updated, linked = await service.update_payment(
            payment.id,
            PaymentUpdate(payment_method=PaymentMethod.BANK_TRANSFER, payment_date=date(2026, 4, 3)),
        )

        assert updated.payment_method == PaymentMethod.BANK_TRANSFER.value
        assert updated.payment_date == date(2026, 4, 3)
        assert updated.amount == Decimal("5000.00")
        assert updated.receipt_number == receipt_number
        assert linked.id == entry.id
        assert linked.status == FinancialPlanStatus.PAID.value
        assert linked.linked_payment_id == payment.id

    async def test_unknown_payment(self, db_session: AsyncSession, enrollment):
        with pytest.raises(NotFoundError):
            await PaymentService(db_session).update_payment(987654, PaymentUpdate(payment_method=PaymentMethod.CASH))


class TestPaymentEndpoints:
    async def test_record_payment(self, client: AsyncClient, admin_headers, enrollment):
        response = await client.post(
            "/api/v1/payments",
            headers=admin_headers,
            json={
                "center_id": enrollment.center_id,
                "enrollment_id": enrollment.id,
                "amount": "5000",
                "payment_method": "cash",
                "month": "março",
                "year": 2026,
            },
        )

        assert response.status_code == 201
        payment = response.json()["data"]["payment"]
        assert payment["payment_month_reference"] == "Março"
        assert payment["payment_year_reference"] == 2026
        assert Decimal(payment["amount"]) == Decimal("5000")

    async def test_already_reconciled(self, client: AsyncClient, admin_headers, enrollment):
        body = {
            "center_id": enrollment.center_id,
            "enrollment_id": enrollment.id,
            "amount": "5000",
            "month": "Março",
            "year": 2026,
        }
        first = await client.post("/api/v1/payments", headers=admin_headers, json=body)
        assert first.status_code == 201

        response = await client.post("/api/v1/payments", headers=admin_headers, json=body)

        assert response.status_code == 409
        assert response.json()["code"] == "ALREADY_RECONCILED"

    async def test_plan_entry_missing(self, client: AsyncClient, admin_headers, enrollment):
        response = await client.post(
            "/api/v1/payments",
            headers=admin_headers,
            json={
                "center_id": enrollment.center_id,
                "enrollment_id": enrollment.id,
                "amount": "5000",
                "month": "Janeiro",
                "year": 2026,
            },
        )

        assert response.status_code == 409
        assert response.json()["code"] == "PLAN_ENTRY_MISSING"

    async def test_unlinked_payment_shows_not_available(
        self, client: AsyncClient, admin_headers, db_session: AsyncSession, enrollment
    ):
        payment = Payment(
            enrollment_id=enrollment.id,
            center_id=enrollment.center_id,
            receipt_number="HIST-3",
            amount=Decimal("5000"),
            late_fee=Decimal("0"),
            payment_date=date(2026, 2, 5),
            payment_method=PaymentMethod.CASH.value,
            status="paid",
        )
        db_session.add(payment)
        await db_session.commit()

        response = await client.get(f"/api/v1/payments/{payment.id}", headers=admin_headers)

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["payment_month_reference"] == "N/D"
        assert data["payment_year_reference"] == "N/D"

    async def test_search_endpoint(self, client: AsyncClient, admin_headers, db_session: AsyncSession, enrollment):
        await PaymentService(db_session).record_payment(_payment(enrollment))

        response = await client.get(
            f"/api/v1/payments/center/{enrollment.center_id}/search",
            headers=admin_headers,
            params={"query": "ALU-001"},
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["total"] == 1
        item = data["items"][0]
        assert item["student_code"] == "ALU-001"
        assert item["student_name"] == "Aluno ALU-001"
        assert item["payment_month_reference"] == "Março"

    async def test_edit_ignores_amount(self, client: AsyncClient, admin_headers, db_session: AsyncSession, enrollment):
        payment, _ = await PaymentService(db_session).record_payment(_payment(enrollment))

        response = await client.patch(
            f"/api/v1/payments/{payment.id}",
            headers=admin_headers,
            json={"payment_method": "bank_transfer", "payment_date": "2026-04-03", "amount": "1"},
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["payment_method"] == "bank_transfer"
        assert data["payment_date"] == "2026-04-03"
        assert Decimal(data["amount"]) == Decimal("5000")
        assert data["payment_month_reference"] == "Março"
