from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

from letrus_care.shared.utils.dates import as_utc_instant, end_of_day, overdue_cutoff

LUANDA = ZoneInfo("Africa/Luanda")


class TestBusinessDates:
    def test_end_of_day_is_business_time(self):
        cutoff = end_of_day(date(2026, 4, 10))

        assert cutoff.tzinfo == LUANDA
        assert (cutoff.hour, cutoff.minute, cutoff.second) == (23, 59, 59)

    def test_overdue_cutoff_is_end_of_yesterday(self):
        now = datetime(2026, 4, 11, 8, 0, tzinfo=LUANDA)

        assert overdue_cutoff(now).date() == date(2026, 4, 10)

    def test_overdue_cutoff_uses_business_day_not_utc(self):
        # 23:30 UTC on the 10th is already 00:30 on the 11th in Luanda
        now = datetime(2026, 4, 10, 23, 30, tzinfo=timezone.utc)

        assert overdue_cutoff(now).date() == date(2026, 4, 10)

    def test_as_utc_instant_naive_is_utc(self):
        instant = as_utc_instant(datetime(2026, 1, 1, 12, 0))

        assert instant == datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

    def test_as_utc_instant_date_is_end_of_business_day(self):
        instant = as_utc_instant(date(2026, 2, 10))

        # Luanda is UTC+1
        assert instant.date() == date(2026, 2, 10)
        assert instant.hour == 22
