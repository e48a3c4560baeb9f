"""
Billing calendar: which months a school year bills and when each is due.

Pure functions, no database access. Month names come from a fixed table so
that stored plan entries never depend on the server locale.
"""

from datetime import date, datetime
from typing import NamedTuple

from letrus_care.core.exceptions import ValidationError

# Bump when the table changes; stored entries reference months by these names.
MONTH_TABLE_VERSION = 1

MONTH_NAMES: tuple[str, ...] = (
    "Janeiro",
    "Fevereiro",
    "Março",
    "Abril",
    "Maio",
    "Junho",
    "Julho",
    "Agosto",
    "Setembro",
    "Outubro",
    "Novembro",
    "Dezembro",
)

DUE_DAY = 10

_INDEX_BY_NAME = {name.casefold(): i for i, name in enumerate(MONTH_NAMES)}


class BillingMonth(NamedTuple):
    month: str
    year: int
    month_index: int  # 0-11


def month_index(name: str) -> int:
    """0-based index of a month name; case-insensitive."""
    try:
        return _INDEX_BY_NAME[name.strip().casefold()]
    except (KeyError, AttributeError):
        raise ValidationError(f"Unknown month name: {name!r}", field="month") from None


def month_name(index: int) -> str:
    return MONTH_NAMES[index]


def canonical_month_name(name: str) -> str:
    """Normalise user input such as " março" or "MARÇO" to the stored spelling."""
    return MONTH_NAMES[month_index(name)]


def _as_date(value: date | datetime) -> date:
    return value.date() if isinstance(value, datetime) else value


def enumerate_billing_months(start: date | datetime, end: date | datetime) -> list[BillingMonth]:
    """
    Every calendar month from start's month through end's month, inclusive.

    Time of day is ignored. Returns an empty list when end precedes start's month.
    """
    start, end = _as_date(start), _as_date(end)
    year, index = start.year, start.month - 1
    months = []
    while (year, index) <= (end.year, end.month - 1):
        months.append(BillingMonth(MONTH_NAMES[index], year, index))
        index += 1
        if index == 12:
            index = 0
            year += 1
    return months


def _next_month(month: BillingMonth) -> tuple[int, int]:
    if month.month_index == 11:
        return month.year + 1, 1
    return month.year, month.month_index + 2


def compute_due_dates(months: list[BillingMonth]) -> list[date]:
    """
    Due date per billing month: the 10th of the next month in the sequence.

    The last month is due on the 10th of the calendar month that follows it
    (December rolls over to January of the next year).
    """
    due_dates = []
    for i, month in enumerate(months):
        if i + 1 < len(months):
            following = months[i + 1]
            due_dates.append(date(following.year, following.month_index + 1, DUE_DAY))
        else:
            year, calendar_month = _next_month(month)
            due_dates.append(date(year, calendar_month, DUE_DAY))
    return due_dates
