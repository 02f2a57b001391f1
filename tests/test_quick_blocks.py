import pytest

from venue_availability.core.errors import InvalidBlockout
from venue_availability.models.venue_blockout import BlockType
from venue_availability.services.quick_blocks import QuickAction, plan_quick_block

MONDAY = "2025-01-06"
SATURDAY = "2025-01-11"
SUNDAY = "2025-01-12"


@pytest.mark.parametrize("today, action, expected", [
    (MONDAY,   QuickAction.today,     (MONDAY, MONDAY)),
    (MONDAY,   QuickAction.tomorrow,  ("2025-01-07", "2025-01-07")),
    ("2025-01-31", QuickAction.tomorrow, ("2025-02-01", "2025-02-01")),
    (MONDAY,   QuickAction.weekend,   (SATURDAY, SUNDAY)),
    (SATURDAY, QuickAction.weekend,   (SATURDAY, SUNDAY)),
    (SUNDAY,   QuickAction.weekend,   ("2025-01-18", "2025-01-19")),
    (MONDAY,   QuickAction.next_week, ("2025-01-13", "2025-01-17")),
    (SUNDAY,   QuickAction.next_week, ("2025-01-13", "2025-01-17")),
    (MONDAY,   QuickAction.evening,   (MONDAY, "2025-01-13")),
    (MONDAY,   QuickAction.morning,   (MONDAY, "2025-01-13")),
])
def test_preset_ranges(today, action, expected):
    plan = plan_quick_block(action, today)
    assert (plan.start_date, plan.end_date) == expected


def test_block_types():
    assert plan_quick_block(QuickAction.weekend, MONDAY).block_type == BlockType.personal
    assert plan_quick_block(QuickAction.next_week, MONDAY).block_type == BlockType.maintenance
    assert plan_quick_block(QuickAction.selected, MONDAY, "2025-03-04").block_type == BlockType.other


def test_selected_date_reason_and_requirement():
    plan = plan_quick_block(QuickAction.selected, MONDAY, "2025-03-04")
    assert plan.reason == "Manual blockout - Mar 4, 2025"
    with pytest.raises(InvalidBlockout):
        plan_quick_block(QuickAction.selected, MONDAY)


def test_full_day_preset_has_single_row():
    [row] = plan_quick_block(QuickAction.today, MONDAY).rows("owner-1")
    assert row["start_time"] is None and row["end_time"] is None
    assert row["created_by"] == "owner-1"


def test_morning_rows_cover_each_hour_before_nine():
    rows = plan_quick_block(QuickAction.morning, MONDAY).rows("owner-1")
    assert [r["start_time"] for r in rows] == [f"{h:02d}:00:00" for h in range(9)]
    assert rows[-1]["end_time"] == "09:00:00"
