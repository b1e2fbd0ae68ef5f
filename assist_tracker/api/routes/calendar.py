"""Calendar route: month grid with refill and re-enrollment markers."""

from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, Query

from assist_tracker.api.deps import get_clock
from assist_tracker.api.schemas import MonthResponse
from assist_tracker.components.calendar import MonthView, build_month, jump_to_today
from assist_tracker.ports.clock import ClockPort

router = APIRouter()


@router.get("", response_model=MonthResponse)
def get_month(
    year: Annotated[int | None, Query(ge=1, le=9999)] = None,
    month: Annotated[int | None, Query(ge=1, le=12)] = None,
    offset: Annotated[int, Query(description="Months to move from year/month")] = 0,
    refill_date: date | None = None,
    re_enrollment_date: date | None = None,
    clock: ClockPort = Depends(get_clock),
) -> MonthResponse:
    today = clock.today()
    view = jump_to_today(today)
    if year is not None and month is not None:
        view = MonthView(year, month)

    grid = build_month(view.shift(offset), today, refill_date, re_enrollment_date)
    return MonthResponse.from_grid(grid)
