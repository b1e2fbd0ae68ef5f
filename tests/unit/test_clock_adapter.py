from datetime import UTC, date, datetime

from assist_tracker.adapters.clock import SystemClock


def test_system_clock():
    clock = SystemClock()
    now = clock.now()
    assert isinstance(now, datetime)
    assert now.tzinfo is not None
    diff = abs((datetime.now(UTC) - now).total_seconds())
    assert diff < 1.0


def test_system_clock_today():
    assert isinstance(SystemClock().today(), date)
