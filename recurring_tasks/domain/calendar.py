"""Calendar arithmetic for recurrence steps.

Every recurrence unit has its own operation so an alternative calendar can be
plugged into the calculator without touching the due-date logic.

Clamping rules:

* ``add_days`` / ``add_weeks`` are plain day offsets, no clamping needed.
* ``add_months`` keeps the day of month when the target month has it and
  otherwise clamps to the target month's last day (Jan 31 + 1 month is
  Feb 28, or Feb 29 in a leap year). The result carries no memory of the
  original day: Feb 28 + 1 month is Mar 28.
* ``add_years`` is ``add_months`` with ``12 * n`` months, so Feb 29 + 1 year
  is Feb 28.
"""
from __future__ import annotations

from datetime import date, timedelta
from typing import Protocol

from .enums import RecurrenceType


class CalendarStep(Protocol):
    def add_days(self, base: date, days: int) -> date: ...

    def add_weeks(self, base: date, weeks: int) -> date: ...

    def add_months(self, base: date, months: int) -> date: ...

    def add_years(self, base: date, years: int) -> date: ...


class GregorianCalendar:
    def add_days(self, base: date, days: int) -> date:
        return base + timedelta(days=days)

    def add_weeks(self, base: date, weeks: int) -> date:
        return base + timedelta(weeks=weeks)

    def add_months(self, base: date, months: int) -> date:
        return _add_months(base, months)

    def add_years(self, base: date, years: int) -> date:
        return _add_months(base, 12 * years)


def step(calendar: CalendarStep, base: date, recurrence_type: RecurrenceType, interval: int) -> date:
    """Advance ``base`` by ``interval`` units of ``recurrence_type``."""
    if recurrence_type == RecurrenceType.DAILY:
        return calendar.add_days(base, interval)
    if recurrence_type == RecurrenceType.WEEKLY:
        return calendar.add_weeks(base, interval)
    if recurrence_type == RecurrenceType.MONTHLY:
        return calendar.add_months(base, interval)
    if recurrence_type == RecurrenceType.YEARLY:
        return calendar.add_years(base, interval)
    raise ValueError(f"Unsupported recurrence type: {recurrence_type}")


def _add_months(base: date, months: int) -> date:
    year = base.year + (base.month - 1 + months) // 12
    month = (base.month - 1 + months) % 12 + 1
    day = min(base.day, _days_in_month(year, month))
    return date(year, month, day)


def _days_in_month(year: int, month: int) -> int:
    if month == 12:
        next_month = date(year + 1, 1, 1)
    else:
        next_month = date(year, month + 1, 1)
    return (next_month - timedelta(days=1)).day
