"""
Weekly schedule: per-weekday open/close hours for a venue.

The structured shape lives in `venues.weekly_availability`. Older venues only
have `venues.availability`, a list of weekday names; those are converted with
default opening hours from settings.
"""
from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from pydantic import ValidationError

from venue_availability.core.config import settings
from venue_availability.core.errors import ConfigurationMissing
from venue_availability.schemas.availability import DaySchedule
from venue_availability.services.dates import WEEKDAYS, parse_hour, weekday_name

logger = logging.getLogger(__name__)

WeeklySchedule = dict[str, DaySchedule]


def from_legacy(days: list[str], open_time: Optional[str] = None, close_time: Optional[str] = None) -> WeeklySchedule:
    open_time  = open_time or settings.LEGACY_OPEN_TIME
    close_time = close_time or settings.LEGACY_CLOSE_TIME
    listed = {str(d).strip().lower() for d in days}
    return {
        day: DaySchedule(available=True, start=open_time, end=close_time)
        if day in listed
        else DaySchedule(available=False, start="", end="")
        for day in WEEKDAYS
    }


def normalize_weekly_schedule(
    weekly: Optional[Mapping[str, Any]],
    legacy: Optional[list[str]] = None,
) -> WeeklySchedule:
    """
    Build a WeeklySchedule from the venue row.

    Unknown weekday keys are dropped and malformed entries become closed days,
    so a bad row can only ever close a day, never fail the whole load.
    """
    if not weekly and isinstance(legacy, list) and legacy:
        logger.info("Converting legacy availability list %s to weekly schedule", legacy)
        return from_legacy(legacy)

    schedule: WeeklySchedule = {}
    for key, raw in (weekly or {}).items():
        day = str(key).strip().lower()
        if day not in WEEKDAYS:
            continue
        if isinstance(raw, DaySchedule):
            schedule[day] = raw
            continue
        try:
            schedule[day] = DaySchedule.model_validate(raw)
        except ValidationError as exc:
            logger.warning("Malformed schedule for %s treated as closed: %s", day, exc)
            schedule[day] = DaySchedule()
    return schedule


def opening_hours(day: Optional[DaySchedule]) -> tuple[int, int]:
    """
    (start_hour, end_hour) for an open day.

    Raises ConfigurationMissing when the day is closed, absent or malformed;
    the calculator turns that into a closed day.
    """
    if day is None or not day.available or not day.start or not day.end:
        raise ConfigurationMissing("day is not open")
    start_hour = parse_hour(day.start)
    end_hour = parse_hour(day.end)
    if start_hour is None or end_hour is None or end_hour <= start_hour:
        raise ConfigurationMissing(f"malformed hours {day.start!r}-{day.end!r}")
    return start_hour, end_hour


def day_schedule_for(schedule: Mapping[str, DaySchedule], date_str: str) -> Optional[DaySchedule]:
    return schedule.get(weekday_name(date_str))
