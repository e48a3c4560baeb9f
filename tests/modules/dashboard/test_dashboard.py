from datetime import date, datetime, timezone
from decimal import Decimal
from zoneinfo import ZoneInfo

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from letrus_care.modules.dashboard.service import DashboardService, _recent_months
from letrus_care.modules.financial_plans.overdue import mark_overdue
from letrus_care.modules.payments.models import PaymentMethod
from letrus_care.modules.payments.schemas import PaymentCreate
from letrus_care.modules.payments.service import PaymentService

JAN_1 = datetime(2026, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
async def busy_center(db_session: AsyncSession, factory):
    """One enrollment (Março..Dezembro at 5000), Março paid on 2 April, Abril overdue."""
    center = await factory.center()
    await factory.school_year(center)
    course = await factory.course(center, fee="5000", fee_effective_at=JAN_1)
    school_class = await factory.school_class(course)
    student = await factory.student(center)
    enrollment, _ = await factory.enrollment(student, school_class, date(2026, 3, 15))

    await PaymentService(db_session).record_payment(
        PaymentCreate(
            center_id=center.id,
            enrollment_id=enrollment.id,
            amount=Decimal("5000"),
            payment_date=date(2026, 4, 2),
            payment_method=PaymentMethod.CASH,
            month="Março",
            year=2026,
        )
    )
    await mark_overdue(db_session, now=datetime(2026, 5, 11, 9, 0, tzinfo=ZoneInfo("Africa/Luanda")))
    await db_session.commit()
    return center


class TestDashboardService:
    async def test_summary(self, db_session: AsyncSession, busy_center):
        summary = await DashboardService(db_session).get_summary(busy_center.id, today=date(2026, 4, 2))

        assert summary["total_active_classes"] == 1
        assert summary["total_active_students"] == 1
        assert summary["total_daily_enrollments"] == 0
        assert summary["total_incomplete_enrollments"] == 1
        assert summary["total_daily_payments"] == 1
        assert summary["total_overdue_fees"] == 1
        assert summary["overdue_amount"] == Decimal("5000.00")
        assert summary["pending_amount"] == Decimal("40000.00")

    async def test_growth_series(self, db_session: AsyncSession, busy_center):
        summary = await DashboardService(db_session).get_summary(busy_center.id, today=date(2026, 4, 2))

        students = summary["student_growth"]
        assert [p["month"] for p in students] == ["Dezembro", "Janeiro", "Fevereiro", "Março", "Abril"]
        assert [p["students"] for p in students] == [0, 0, 0, 1, 0]
        assert summary["payment_growth"][-1] == {"month": "Abril", "year": 2026, "amount": Decimal("5000.00")}

    async def test_empty_center(self, db_session: AsyncSession, factory):
        center = await factory.center()

        summary = await DashboardService(db_session).get_summary(center.id, today=date(2026, 4, 2))

        assert summary["total_active_students"] == 0
        assert summary["overdue_amount"] == Decimal("0.00")

    def test_recent_months_cross_year(self):
        assert _recent_months(date(2026, 2, 15), count=3) == [(2025, 12), (2026, 1), (2026, 2)]


class TestDashboardEndpoint:
    async def test_get_dashboard(self, client: AsyncClient, admin_headers, busy_center):
        response = await client.get(f"/api/v1/dashboard/center/{busy_center.id}", headers=admin_headers)

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["total_overdue_fees"] == 1
        assert Decimal(data["overdue_amount"]) == Decimal("5000")
        assert len(data["student_growth"]) == 5
