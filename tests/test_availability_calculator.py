from venue_availability.models.booking import BookingStatus
from venue_availability.models.venue import BookingType
from venue_availability.schemas.availability import AvailabilityStatus, BookingRead
from venue_availability.services.availability_calculator import (
    blockouts_for_date,
    compute_day,
    compute_range,
    compute_stats,
    generate_hour_slots,
)

from tests.conftest import blockout, schedule

MONDAY = "2025-01-06"
SATURDAY = "2025-01-11"
SUNDAY = "2025-01-12"

MONDAY_ONLY = schedule({"monday": {"available": True, "start": "09:00", "end": "18:00"}})


# ── Scenarios ─────────────────────────────────────────────────────────────────

def test_open_day_without_blockouts_is_fully_available():
    day = compute_day(MONDAY, MONDAY_ONLY, [])
    assert day.status == AvailabilityStatus.available
    assert (day.slots_available, day.total_slots) == (9, 9)


def test_full_day_blockout_blocks_the_day():
    day = compute_day(MONDAY, MONDAY_ONLY, [blockout(MONDAY)])
    assert day.status == AvailabilityStatus.blocked
    assert (day.slots_available, day.total_slots) == (0, 9)


def test_single_hour_blockout_makes_day_partial():
    day = compute_day(MONDAY, MONDAY_ONLY, [blockout(MONDAY, hour=14)])
    assert day.status == AvailabilityStatus.partial
    assert (day.slots_available, day.total_slots) == (8, 9)

    slots = generate_hour_slots(MONDAY, MONDAY_ONLY, [blockout(MONDAY, hour=14)])
    assert len(slots) == 9
    blocked = [s for s in slots if s.is_blocked]
    assert [s.hour for s in blocked] == [14]
    assert blocked[0].full_day_blocked is False
    assert blocked[0].datetime == "2025-01-06T14:00"


# ── Status rules ──────────────────────────────────────────────────────────────

def test_full_day_wins_over_hour_blockouts():
    rows = [blockout(MONDAY), blockout(MONDAY, hour=10)]
    day = compute_day(MONDAY, MONDAY_ONLY, rows)
    assert day.status == AvailabilityStatus.blocked

    slots = generate_hour_slots(MONDAY, MONDAY_ONLY, rows)
    assert all(s.is_blocked and s.full_day_blocked for s in slots)


def test_blocking_every_hour_blocks_the_day():
    rows = [blockout(MONDAY, hour=h) for h in range(9, 18)]
    day = compute_day(MONDAY, MONDAY_ONLY, rows)
    assert day.status == AvailabilityStatus.blocked
    assert day.slots_available == 0


def test_duplicate_hour_rows_count_once():
    rows = [blockout(MONDAY, hour=9), blockout(MONDAY, hour=9)]
    day = compute_day(MONDAY, MONDAY_ONLY, rows)
    assert day.status == AvailabilityStatus.partial
    assert day.slots_available == 8


def test_closed_day_ignores_blockouts():
    week = schedule()
    day = compute_day(SUNDAY, week, [blockout(SUNDAY)])
    assert day.status == AvailabilityStatus.closed
    assert (day.slots_available, day.total_slots) == (0, 0)
    assert len(day.blockouts) == 1


def test_missing_weekday_is_closed():
    day = compute_day("2025-01-07", MONDAY_ONLY, [])
    assert day.status == AvailabilityStatus.closed


def test_malformed_hours_degrade_to_closed():
    broken = schedule({"monday": {"available": True, "start": "18:00", "end": "09:00"}})
    assert compute_day(MONDAY, broken, []).status == AvailabilityStatus.closed
    assert generate_hour_slots(MONDAY, broken, []) == []


def test_unparseable_start_time_is_ignored():
    bad = blockout(MONDAY, hour=10).model_copy(update={"start_time": "xx:00"})
    day = compute_day(MONDAY, MONDAY_ONLY, [bad])
    # still an hour-level row, so the day is partial with every hour free
    assert day.status == AvailabilityStatus.partial
    assert day.slots_available == 9


def test_daily_mode_has_one_slot():
    available = compute_day(MONDAY, MONDAY_ONLY, [], booking_mode=BookingType.daily)
    partial = compute_day(MONDAY, MONDAY_ONLY, [blockout(MONDAY, hour=9)], booking_mode=BookingType.daily)
    blocked = compute_day(MONDAY, MONDAY_ONLY, [blockout(MONDAY)], booking_mode=BookingType.daily)
    assert (available.slots_available, available.total_slots) == (1, 1)
    assert (partial.slots_available, partial.total_slots) == (1, 1)
    assert (blocked.slots_available, blocked.total_slots) == (0, 1)


def test_range_blockout_covers_inclusive_dates():
    row = blockout("2025-01-06", "2025-01-08")
    assert blockouts_for_date([row], "2025-01-06") == [row]
    assert blockouts_for_date([row], "2025-01-08") == [row]
    assert blockouts_for_date([row], "2025-01-09") == []


# ── Range ─────────────────────────────────────────────────────────────────────

def test_compute_range_is_inclusive_and_ascending():
    days = compute_range(schedule(), [blockout("2025-01-08")], [], "2025-01-06", "2025-01-12")
    assert [d.date for d in days] == [
        "2025-01-06", "2025-01-07", "2025-01-08", "2025-01-09",
        "2025-01-10", "2025-01-11", "2025-01-12",
    ]
    assert days[2].status == AvailabilityStatus.blocked
    assert days[5].total_slots == 4       # saturday 10-14
    assert days[6].status == AvailabilityStatus.closed


def test_bookings_are_counted_but_never_change_status():
    bookings = [
        BookingRead(booked_date=MONDAY, start_time="10:00", end_time="11:00", status=BookingStatus.confirmed),
        BookingRead(booked_date=MONDAY, start_time="12:00", end_time="13:00", status=BookingStatus.cancelled),
    ]
    day = compute_day(MONDAY, MONDAY_ONLY, [], bookings)
    assert day.bookings_count == 1
    assert day.status == AvailabilityStatus.available
    assert day.slots_available == 9


# ── Hour slots ────────────────────────────────────────────────────────────────

def test_hour_slot_labels_and_selection():
    slots = generate_hour_slots(MONDAY, MONDAY_ONLY, [], selected_hour_slots={"2025-01-06T12:00"})
    first, noon = slots[0], slots[3]
    assert (first.start_time, first.end_time) == ("09:00", "10:00")
    assert first.label == "9:00 - 10:00 AM"
    assert noon.label == "12:00 - 1:00 PM"
    assert noon.is_selected and not first.is_selected


def test_hour_blockout_on_other_date_does_not_leak():
    slots = generate_hour_slots(MONDAY, MONDAY_ONLY, [blockout("2025-01-13", hour=10)])
    assert not any(s.is_blocked for s in slots)


# ── Stats ─────────────────────────────────────────────────────────────────────

def test_stats_rounds_availability_percentage():
    days = compute_range(MONDAY_ONLY, [], [], "2025-01-06", "2025-01-08")  # 1 open, 2 closed
    rows = [blockout("2025-01-20"), blockout("2025-01-03"), blockout("2025-02-01")]
    stats = compute_stats(days, rows, "2025-01-06")
    assert stats.total_blockouts == 3
    assert stats.upcoming_blockouts == 2
    assert stats.days_blocked_this_month == 2
    assert stats.availability_percentage == 33
