"""
Calendar component - Refill and re-enrollment schedule month grid.
"""

from .component import (
    build_month,
    classify_day,
    days_in_month,
    first_weekday,
    jump_to_today,
)
from .models import DAY_NAMES, MONTH_NAMES, CalendarDay, DayMarker, MonthGrid, MonthView

__all__ = [
    "build_month",
    "classify_day",
    "days_in_month",
    "first_weekday",
    "jump_to_today",
    "CalendarDay",
    "DayMarker",
    "MonthGrid",
    "MonthView",
    "DAY_NAMES",
    "MONTH_NAMES",
]
