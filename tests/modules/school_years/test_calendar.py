from datetime import date, datetime

import pytest

from letrus_care.core.exceptions import ValidationError
from letrus_care.modules.school_years.calendar import (
    MONTH_NAMES,
    BillingMonth,
    canonical_month_name,
    compute_due_dates,
    enumerate_billing_months,
    month_index,
)


class TestEnumerateBillingMonths:
    def test_mid_month_start(self):
        months = enumerate_billing_months(date(2026, 3, 15), date(2026, 12, 31))

        assert len(months) == 10
        assert months[0] == BillingMonth("Março", 2026, 2)
        assert months[-1] == BillingMonth("Dezembro", 2026, 11)

    def test_crosses_year_boundary(self):
        months = enumerate_billing_months(date(2025, 9, 1), date(2026, 7, 31))

        assert [m.month for m in months[:5]] == ["Setembro", "Outubro", "Novembro", "Dezembro", "Janeiro"]
        assert months[4].year == 2026
        assert len(months) == 11

    def test_time_of_day_is_ignored(self):
        months = enumerate_billing_months(datetime(2026, 5, 31, 23, 59), datetime(2026, 6, 1, 0, 1))

        assert [m.month for m in months] == ["Maio", "Junho"]

    def test_end_before_start(self):
        assert enumerate_billing_months(date(2026, 5, 1), date(2026, 4, 30)) == []

    def test_single_month(self):
        months = enumerate_billing_months(date(2026, 7, 20), date(2026, 7, 21))

        assert months == [BillingMonth("Julho", 2026, 6)]


class TestComputeDueDates:
    def test_due_on_the_tenth_of_the_following_month(self):
        months = enumerate_billing_months(date(2026, 3, 15), date(2026, 12, 31))

        due_dates = compute_due_dates(months)

        assert due_dates[0] == date(2026, 4, 10)
        assert due_dates[1] == date(2026, 5, 10)
        assert due_dates[8] == date(2026, 12, 10)

    def test_december_rolls_over_to_january(self):
        months = enumerate_billing_months(date(2026, 3, 15), date(2026, 12, 31))

        assert compute_due_dates(months)[-1] == date(2027, 1, 10)

    def test_last_month_not_december(self):
        months = enumerate_billing_months(date(2025, 9, 1), date(2026, 7, 31))

        due_dates = compute_due_dates(months)

        assert due_dates[3] == date(2026, 1, 10)
        assert due_dates[-1] == date(2026, 8, 10)

    def test_empty(self):
        assert compute_due_dates([]) == []


class TestMonthNames:
    def test_fixed_table(self):
        assert len(MONTH_NAMES) == 12
        assert MONTH_NAMES[2] == "Março"

    def test_lookup_is_case_insensitive(self):
        assert month_index("março") == 2
        assert month_index(" DEZEMBRO ") == 11
        assert canonical_month_name("abril") == "Abril"

    def test_unknown_month(self):
        with pytest.raises(ValidationError) as exc_info:
            month_index("March")

        assert exc_info.value.details == {"field": "month"}
