"""
One-click blockout presets for the owner dashboard.

`plan_quick_block` is pure date arithmetic: it turns a preset name and
"today" into the rows to insert. BulkBlockoutService.quick_block writes them.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import date
from typing import Optional

from venue_availability.core.errors import InvalidBlockout
from venue_availability.models.venue_blockout import BlockType
from venue_availability.services.dates import add_days, db_time, next_weekday


class QuickAction(str, enum.Enum):
    today     = "today"
    tomorrow  = "tomorrow"
    weekend   = "weekend"
    next_week = "next_week"
    selected  = "selected"
    evening   = "evening"
    morning   = "morning"


@dataclass(frozen=True)
class QuickBlockPlan:
    action: QuickAction
    start_date: str
    end_date: str
    reason: str
    block_type: BlockType
    hours: tuple[int, ...] = ()     # empty = full day

    def rows(self, created_by: str) -> list[dict]:
        base = {
            "start_date": self.start_date,
            "end_date":   self.end_date,
            "reason":     self.reason,
            "block_type": self.block_type,
            "created_by": created_by,
        }
        if not self.hours:
            return [{**base, "start_time": None, "end_time": None}]
        # one ranged row per hour: an hour-level row blocks only its starting hour
        return [
            {**base, "start_time": db_time(h), "end_time": db_time(h + 1)}
            for h in self.hours
        ]


def plan_quick_block(
    action: QuickAction,
    today: str,
    selected_date: Optional[str] = None,
) -> QuickBlockPlan:
    if action == QuickAction.today:
        return QuickBlockPlan(action, today, today, "Emergency maintenance - Today", BlockType.maintenance)

    if action == QuickAction.tomorrow:
        tomorrow = add_days(today, 1)
        return QuickBlockPlan(
            action, tomorrow, tomorrow, "Scheduled maintenance - Tomorrow", BlockType.maintenance
        )

    if action == QuickAction.weekend:
        saturday = next_weekday(today, 5)
        return QuickBlockPlan(
            action, saturday, add_days(saturday, 1), "Weekend closure - Personal event", BlockType.personal
        )

    if action == QuickAction.next_week:
        monday = next_weekday(today, 0, strictly_after=True)
        return QuickBlockPlan(
            action, monday, add_days(monday, 4), "Weekly maintenance - Next week", BlockType.maintenance
        )

    if action == QuickAction.selected:
        if not selected_date:
            raise InvalidBlockout("Please select a date first")
        d = date.fromisoformat(selected_date)
        label = f"{d:%b} {d.day}, {d.year}"
        return QuickBlockPlan(
            action, selected_date, selected_date, f"Manual blockout - {label}", BlockType.other
        )

    if action == QuickAction.evening:
        return QuickBlockPlan(
            action, today, add_days(today, 7), "Evening hours blocked - After 6 PM",
            BlockType.maintenance, hours=tuple(range(18, 24)),
        )

    if action == QuickAction.morning:
        return QuickBlockPlan(
            action, today, add_days(today, 7), "Morning hours blocked - Before 9 AM",
            BlockType.maintenance, hours=tuple(range(0, 9)),
        )

    raise InvalidBlockout(f"Unknown quick action {action!r}")
