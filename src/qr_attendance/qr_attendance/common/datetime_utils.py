from __future__ import annotations

from datetime import date, datetime, time
from typing import Callable

Clock = Callable[[], datetime]


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def now_local() -> datetime:
    """Current local time.

    Note: Services take a clock callable defaulting to this so tests can pin time.
    """
    return datetime.now()


def format_hhmm(value: time) -> str:
    return value.strftime("%H:%M")


def format_time_range(start: time, end: time) -> str:
    return f"{format_hhmm(start)} - {format_hhmm(end)}"
