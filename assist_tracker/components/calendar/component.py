"""
Calendar component - Month grid and refill/re-enrollment day marking.

Pure functions, no I/O. Highlighted dates match by exact (day, month, year)
against the viewed month, so a date is only visible while its month is shown.
"""

from __future__ import annotations

import calendar
from datetime import date

from .models import CalendarDay, DayMarker, MonthGrid, MonthView


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def first_weekday(year: int, month: int) -> int:
    """Weekday index of day 1, with Sunday = 0."""
    monday_based = calendar.monthrange(year, month)[0]
    return (monday_based + 1) % 7


def _matches(view: MonthView, day: int, candidate: date | None) -> bool:
    return (
        candidate is not None
        and candidate.day == day
        and candidate.month == view.month
        and candidate.year == view.year
    )


def classify_day(
    view: MonthView,
    day: int,
    today: date,
    refill_date: date | None = None,
    re_enrollment_date: date | None = None,
) -> DayMarker:
    if _matches(view, day, re_enrollment_date):
        return "re_enrollment"
    if _matches(view, day, refill_date):
        return "refill"
    if _matches(view, day, today):
        return "today"
    return "none"


def jump_to_today(today: date) -> MonthView:
    return MonthView.containing(today)


def build_month(
    view: MonthView,
    today: date,
    refill_date: date | None = None,
    re_enrollment_date: date | None = None,
) -> MonthGrid:
    count = days_in_month(view.year, view.month)
    days = tuple(
        CalendarDay(day, classify_day(view, day, today, refill_date, re_enrollment_date))
        for day in range(1, count + 1)
    )
    return MonthGrid(
        view=view,
        days_in_month=count,
        first_weekday=first_weekday(view.year, view.month),
        days=days,
    )
