"""
Calendar-date string helpers.

Dates are ISO "YYYY-MM-DD" strings everywhere in the engine. They are turned
into `date` objects only to add days; ordering and equality always compare
the strings. Hour slots are "YYYY-MM-DDTHH:MM".
"""
from __future__ import annotations

from datetime import date, timedelta
from typing import Iterator, Optional

WEEKDAYS = (
    "monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday",
)


def to_date_str(d: date) -> str:
    return d.isoformat()


def add_days(date_str: str, days: int) -> str:
    return (date.fromisoformat(date_str) + timedelta(days=days)).isoformat()


def iter_dates(start: str, end: str) -> Iterator[str]:
    """Every date in [start, end], ascending. Empty when end < start."""
    cur = start
    while cur <= end:
        yield cur
        cur = add_days(cur, 1)


def date_range(a: str, b: str) -> list[str]:
    """Inclusive range between two dates given in either order."""
    start, end = (a, b) if a <= b else (b, a)
    return list(iter_dates(start, end))


def weekday_name(date_str: str) -> str:
    return WEEKDAYS[date.fromisoformat(date_str).weekday()]


def parse_hour(value: Optional[str]) -> Optional[int]:
    """Integer hour of "HH:MM" / "HH:MM:SS", or None when unparseable."""
    if not value:
        return None
    head = value.split(":", 1)[0].strip()
    if not head.isdigit():
        return None
    hour = int(head)
    return hour if 0 <= hour <= 24 else None


def db_time(hour: int) -> str:
    return f"{hour:02d}:00:00"


def split_slot(slot: str) -> tuple[str, int]:
    """"2025-01-10T14:00" -> ("2025-01-10", 14)."""
    date_str, _, time_str = slot.partition("T")
    hour = parse_hour(time_str)
    if not date_str or hour is None:
        raise ValueError(f"invalid hour slot {slot!r}")
    return date_str, hour


def slot_id(date_str: str, hour: int) -> str:
    return f"{date_str}T{hour:02d}:00"


def clock_label(hour: int) -> str:
    """12-hour clock label: 0 -> "12:00 AM", 13 -> "1:00 PM"."""
    suffix = "AM" if hour % 24 < 12 else "PM"
    h = hour % 12 or 12
    return f"{h}:00 {suffix}"


def next_weekday(from_date: str, weekday: int, *, strictly_after: bool = False) -> str:
    """The first date on/after from_date falling on `weekday` (Mon=0)."""
    d = date.fromisoformat(from_date)
    delta = (weekday - d.weekday()) % 7
    if delta == 0 and strictly_after:
        delta = 7
    return (d + timedelta(days=delta)).isoformat()
