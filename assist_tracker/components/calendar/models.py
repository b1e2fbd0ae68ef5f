"""
Calendar component models.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Literal

# Precedence, highest first: re_enrollment > refill > today > none
DayMarker = Literal["re_enrollment", "refill", "today", "none"]

MONTH_NAMES: tuple[str, ...] = (
    "JANUARY", "FEBRUARY", "MARCH", "APRIL", "MAY", "JUNE",
    "JULY", "AUGUST", "SEPTEMBER", "OCTOBER", "NOVEMBER", "DECEMBER",
)

DAY_NAMES: tuple[str, ...] = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")


@dataclass(frozen=True)
class MonthView:
    """The month being displayed, navigable independently of today."""

    year: int
    month: int

    def __post_init__(self) -> None:
        if not 1 <= self.month <= 12:
            raise ValueError(f"month must be in 1..12, got {self.month}")

    @classmethod
    def containing(cls, day: date) -> MonthView:
        return cls(day.year, day.month)

    def shift(self, months: int) -> MonthView:
        index = self.year * 12 + (self.month - 1) + months
        return MonthView(index // 12, index % 12 + 1)

    def next(self) -> MonthView:
        return self.shift(1)

    def previous(self) -> MonthView:
        return self.shift(-1)

    @property
    def label(self) -> str:
        return f"{MONTH_NAMES[self.month - 1]} {self.year}"


@dataclass(frozen=True)
class CalendarDay:
    day: int
    marker: DayMarker


@dataclass(frozen=True)
class MonthGrid:
    """Everything needed to draw one month."""

    view: MonthView
    days_in_month: int
    first_weekday: int  # Sunday = 0
    days: tuple[CalendarDay, ...]
    day_names: tuple[str, ...] = DAY_NAMES

    @property
    def label(self) -> str:
        return self.view.label

    @property
    def leading_blanks(self) -> int:
        return self.first_weekday

    def marked(self, marker: DayMarker) -> list[int]:
        return [d.day for d in self.days if d.marker == marker]
