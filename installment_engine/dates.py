"""Calendar helpers for monthly due dates.

Due dates keep the anchor day of the first installment. When the anchor day
does not exist in a target month (31 in April, 30 in February) the date is
clamped to that month's last day instead of spilling into the next month::

    >>> shift_months(date(2024, 1, 31), 1)
    datetime.date(2024, 2, 29)
    >>> shift_months(date(2024, 1, 31), 2)
    datetime.date(2024, 3, 31)
"""

import calendar
from datetime import date, datetime

from dateutil.relativedelta import relativedelta


def as_date(value: date | datetime | str) -> date:
    """Strip the time of day from a date-like value.

    Parameters
    ----------
    value : date | datetime | str
        A ``date``, a ``datetime`` or an ISO-8601 string.

    Returns
    -------
    date
        Calendar date without time component.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value[:10])
    raise TypeError(f"Cannot convert {type(value).__name__} to date")


def last_day_of_month(year: int, month: int) -> int:
    """Return the last calendar day of a month."""
    return calendar.monthrange(year, month)[1]


def shift_months(start: date, months: int, anchor_day: int | None = None) -> date:
    """Move ``start`` by whole months, keeping the anchor day when it exists.

    Parameters
    ----------
    start : date
        Reference date.
    months : int
        Number of months to add (may be zero).
    anchor_day : int | None
        Day of month to land on. Defaults to ``start.day``.

    Returns
    -------
    date
        Shifted date with day ``min(anchor_day, last day of target month)``.
    """
    if anchor_day is None:
        anchor_day = start.day
    target = start.replace(day=1) + relativedelta(months=months)
    day = min(anchor_day, last_day_of_month(target.year, target.month))
    return target.replace(day=day)


def days_late(due_date: date, reference: date) -> int:
    """Whole days ``reference`` falls after ``due_date``, never negative."""
    delta = (as_date(reference) - as_date(due_date)).days
    return delta if delta > 0 else 0
