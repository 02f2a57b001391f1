"""
Availability calculator.

Pure functions turning {weekly schedule, blockouts, bookings, date range}
into a day-by-day, hour-by-hour availability grid. No I/O, and no exceptions
for bad per-date input: a day that can't be computed is reported as closed.

Date containment compares "YYYY-MM-DD" strings and hour matching compares
integers parsed from "HH:MM[:SS]". Nothing here builds a datetime, so a
boundary date can't drift with the local timezone.
"""
from __future__ import annotations

import logging
from typing import Iterable, Mapping, Optional, Protocol, Sequence

from venue_availability.core.errors import ConfigurationMissing
from venue_availability.models.booking import BookingStatus
from venue_availability.models.venue import BookingType
from venue_availability.schemas.availability import (
    AvailabilityDay,
    AvailabilityStats,
    AvailabilityStatus,
    BookingRead,
    DaySchedule,
    HourSlot,
)
from venue_availability.schemas.blockout import BlockoutRead
from venue_availability.services.dates import clock_label, iter_dates, parse_hour, slot_id
from venue_availability.services.schedule import day_schedule_for, opening_hours

logger = logging.getLogger(__name__)


class BlockoutLike(Protocol):
    start_date: str
    end_date: str
    start_time: Optional[str]


# ── Blockout selection ────────────────────────────────────────────────────────

def blockouts_for_date(blockouts: Iterable[BlockoutRead], date_str: str) -> list[BlockoutRead]:
    return [b for b in blockouts if b.start_date <= date_str <= b.end_date]


def blockouts_for_range(blockouts: Iterable[BlockoutRead], start: str, end: str) -> list[BlockoutRead]:
    return [b for b in blockouts if b.start_date <= end and b.end_date >= start]


def _partition(day_blockouts: Sequence[BlockoutLike]) -> tuple[list[BlockoutLike], list[BlockoutLike]]:
    full_day = [b for b in day_blockouts if not b.start_time]
    hourly   = [b for b in day_blockouts if b.start_time]
    return full_day, hourly


def _blocked_hours(hour_blockouts: Iterable[BlockoutLike]) -> set[int]:
    hours: set[int] = set()
    for b in hour_blockouts:
        hour = parse_hour(b.start_time)
        if hour is None:
            logger.debug("Ignoring blockout with unparseable start_time %r", b.start_time)
            continue
        hours.add(hour)
    return hours


def _confirmed_bookings_on(bookings: Iterable[BookingRead], date_str: str) -> int:
    return sum(
        1 for bk in bookings
        if bk.booked_date == date_str and bk.status == BookingStatus.confirmed
    )


# ── Per-day computation ───────────────────────────────────────────────────────

def compute_day(
    date_str: str,
    weekly_schedule: Mapping[str, DaySchedule],
    blockouts: Iterable[BlockoutRead],
    bookings: Iterable[BookingRead] = (),
    booking_mode: BookingType = BookingType.hourly,
) -> AvailabilityDay:
    day_blockouts = blockouts_for_date(blockouts, date_str)
    bookings_count = _confirmed_bookings_on(bookings, date_str)

    try:
        start_hour, end_hour = opening_hours(day_schedule_for(weekly_schedule, date_str))
    except ConfigurationMissing:
        return AvailabilityDay(
            date=date_str,
            status=AvailabilityStatus.closed,
            slots_available=0,
            total_slots=0,
            blockouts=day_blockouts,
            bookings_count=bookings_count,
        )

    total_hours = end_hour - start_hour
    full_day, hourly = _partition(day_blockouts)
    blocked_hours = _blocked_hours(hourly)

    if full_day:
        status = AvailabilityStatus.blocked
    elif not day_blockouts:
        status = AvailabilityStatus.available
    elif len(blocked_hours) >= total_hours:
        status = AvailabilityStatus.blocked
    else:
        status = AvailabilityStatus.partial

    if booking_mode == BookingType.daily:
        total_slots = 1
        slots_available = 0 if status == AvailabilityStatus.blocked else 1
    else:
        total_slots = total_hours
        if status == AvailabilityStatus.available:
            slots_available = total_hours
        elif status == AvailabilityStatus.blocked:
            slots_available = 0
        else:
            slots_available = max(0, total_hours - len(blocked_hours))

    return AvailabilityDay(
        date=date_str,
        status=status,
        slots_available=slots_available,
        total_slots=total_slots,
        blockouts=day_blockouts,
        bookings_count=bookings_count,
    )


def compute_range(
    weekly_schedule: Mapping[str, DaySchedule],
    blockouts: Sequence[BlockoutRead],
    bookings: Sequence[BookingRead],
    start_date: str,
    end_date: str,
    booking_mode: BookingType = BookingType.hourly,
) -> list[AvailabilityDay]:
    """One AvailabilityDay per date in [start_date, end_date], ascending."""
    in_window = blockouts_for_range(blockouts, start_date, end_date)
    return [
        compute_day(d, weekly_schedule, in_window, bookings, booking_mode)
        for d in iter_dates(start_date, end_date)
    ]


# ── Hour slots ────────────────────────────────────────────────────────────────

def generate_hour_slots(
    date_str: str,
    weekly_schedule: Mapping[str, DaySchedule],
    blockouts: Iterable[BlockoutRead],
    selected_hour_slots: Iterable[str] = (),
) -> list[HourSlot]:
    """
    One slot per opening hour of the date. `full_day_blocked` tells a slot
    blocked by a whole-day blockout apart from one blocked on its own hour;
    the two are unblocked by different operations.
    """
    try:
        start_hour, end_hour = opening_hours(day_schedule_for(weekly_schedule, date_str))
    except ConfigurationMissing:
        return []

    full_day, hourly = _partition(blockouts_for_date(blockouts, date_str))
    blocked_hours = _blocked_hours(hourly)
    selected = set(selected_hour_slots)
    whole_day = bool(full_day)

    slots: list[HourSlot] = []
    for hour in range(start_hour, end_hour):
        dt = slot_id(date_str, hour)
        slots.append(HourSlot(
            datetime=dt,
            hour=hour,
            start_time=f"{hour:02d}:00",
            end_time=f"{(hour + 1) % 24:02d}:00",
            label=f"{clock_label(hour).rsplit(' ', 1)[0]} - {clock_label(hour + 1)}",
            is_blocked=whole_day or hour in blocked_hours,
            full_day_blocked=whole_day,
            is_selected=dt in selected,
        ))
    return slots


# ── Stats ─────────────────────────────────────────────────────────────────────

def compute_stats(
    days: Sequence[AvailabilityDay],
    blockouts: Sequence[BlockoutRead],
    today: str,
) -> AvailabilityStats:
    this_month = today[:7]
    available_days = sum(1 for d in days if d.status == AvailabilityStatus.available)
    percentage = int(available_days * 100 / len(days) + 0.5) if days else 0
    return AvailabilityStats(
        total_blockouts=len(blockouts),
        upcoming_blockouts=sum(1 for b in blockouts if b.start_date > today),
        days_blocked_this_month=sum(1 for b in blockouts if b.start_date.startswith(this_month)),
        availability_percentage=percentage,
    )
