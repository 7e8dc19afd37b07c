from __future__ import annotations

from datetime import date

import pytest

from recurring_tasks.domain.calendar import GregorianCalendar, step
from recurring_tasks.domain.enums import RecurrenceType

calendar = GregorianCalendar()


def test_days_and_weeks_are_plain_offsets() -> None:
    assert calendar.add_days(date(2024, 2, 28), 1) == date(2024, 2, 29)
    assert calendar.add_days(date(2023, 12, 31), 1) == date(2024, 1, 1)
    assert calendar.add_weeks(date(2024, 1, 1), 2) == date(2024, 1, 15)


@pytest.mark.parametrize(
    ("base", "months", "expected"),
    [
        (date(2023, 1, 31), 1, date(2023, 2, 28)),
        (date(2024, 1, 31), 1, date(2024, 2, 29)),
        (date(2024, 3, 31), 1, date(2024, 4, 30)),
        (date(2024, 11, 15), 3, date(2025, 2, 15)),
        (date(2024, 12, 31), 2, date(2025, 2, 28)),
    ],
)
def test_add_months_clamps_to_month_end(base: date, months: int, expected: date) -> None:
    assert calendar.add_months(base, months) == expected


def test_clamped_month_does_not_remember_original_day() -> None:
    feb = calendar.add_months(date(2023, 1, 31), 1)
    assert calendar.add_months(feb, 1) == date(2023, 3, 28)


def test_add_years_from_leap_day() -> None:
    assert calendar.add_years(date(2024, 2, 29), 1) == date(2025, 2, 28)
    assert calendar.add_years(date(2024, 2, 29), 4) == date(2028, 2, 29)


def test_step_dispatches_on_recurrence_type() -> None:
    base = date(2024, 1, 31)
    assert step(calendar, base, RecurrenceType.DAILY, 3) == date(2024, 2, 3)
    assert step(calendar, base, RecurrenceType.WEEKLY, 1) == date(2024, 2, 7)
    assert step(calendar, base, RecurrenceType.MONTHLY, 1) == date(2024, 2, 29)
    assert step(calendar, base, RecurrenceType.YEARLY, 1) == date(2025, 1, 31)
