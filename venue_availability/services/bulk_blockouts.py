"""
Bulk blockout operations for a venue.

Handles block / unblock / toggle over a set of selected dates, and block /
unblock over selected hour slots ("YYYY-MM-DDTHH:MM").

Every operation:
- needs an actor id (it is written as created_by), else Unauthenticated
- reads current rows first and only writes the difference, so running it
  twice with the same input is a no-op the second time
- aborts before writing anything when the existence check fails
- ends with exactly one notification: success, info (nothing to do) or error

The read and the write are separate round-trips with no transaction around
them: two owners blocking the same date at the same moment can both insert.
The store is not assumed to enforce uniqueness.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Iterable, Mapping, Optional, Sequence, TypeVar

from venue_availability.core.config import settings
from venue_availability.core.errors import (
    AvailabilityError,
    InvalidBlockout,
    StoreUnavailable,
    TransientStoreError,
    Unauthenticated,
)
from venue_availability.models.venue_blockout import BlockType
from venue_availability.schemas.availability import AvailabilityDay, AvailabilityStatus
from venue_availability.schemas.blockout import BlockoutRead, BulkResult
from venue_availability.services.blockout_store import BlockoutStore
from venue_availability.services.dates import db_time, iter_dates, parse_hour, split_slot
from venue_availability.services.notifier import Notifier
from venue_availability.services.quick_blocks import QuickAction, plan_quick_block

logger = logging.getLogger(__name__)

T = TypeVar("T")

_NOT_LOGGED_IN = "You must be logged in as the venue owner to block or unblock slots."


def _unique(items: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(items))


def _covers(b: BlockoutRead, date_str: str) -> bool:
    return b.start_date <= date_str <= b.end_date


@dataclass
class _DatePlan:
    """Outcome of an existence check: the dates to change and the rows to delete."""
    dates: list[str] = field(default_factory=list)
    skipped: int = 0
    row_ids: list[str] = field(default_factory=list)

    def result(self, action: str) -> BulkResult:
        return BulkResult(action=action, applied=len(self.dates), skipped=self.skipped, dates=list(self.dates))


class BulkBlockoutService:

    def __init__(
        self,
        store: BlockoutStore,
        venue_id: str,
        actor_id: Optional[str],
        notifier: Notifier,
    ):
        self.store    = store
        self.venue_id = venue_id
        self.actor_id = actor_id
        self.notify   = notifier

    # ── Plumbing ──────────────────────────────────────────────────────────────

    async def _run(self, action: str, targets: Sequence[str], op: Callable[[], Awaitable[T]]) -> T:
        if not self.actor_id:
            self.notify.error(_NOT_LOGGED_IN)
            raise Unauthenticated(_NOT_LOGGED_IN, venue_id=self.venue_id)
        try:
            return await op()
        except StoreUnavailable as exc:
            logger.warning("%s on venue=%s: blockout table missing", action, self.venue_id)
            self.notify.error(
                "Blockout system requires database setup. "
                "This feature will be available after migration."
            )
            raise
        except AvailabilityError as exc:
            logger.error(
                "%s failed venue=%s targets=%s — %s",
                action, self.venue_id, list(targets)[:10], exc.message,
            )
            self.notify.error(exc.message)
            raise

    async def _existing(self, start: str, end: str, *, full_day: Optional[bool]) -> list[BlockoutRead]:
        """Existence check. A failure here aborts before any write."""
        try:
            return await self.store.blockouts_between(self.venue_id, start, end, full_day=full_day)
        except TransientStoreError as exc:
            raise TransientStoreError(
                "Failed to check existing blockouts, please retry", venue_id=self.venue_id
            ) from exc

    def _row(self, date_str: str, reason: str, hour: Optional[int] = None) -> dict:
        return {
            "start_date": date_str,
            "end_date":   date_str,
            "start_time": db_time(hour) if hour is not None else None,
            "end_time":   db_time(hour + 1) if hour is not None else None,
            "reason":     reason,
            "block_type": BlockType.maintenance,
            "created_by": self.actor_id,
        }

    @staticmethod
    def _parse_slots(datetimes: Iterable[str]) -> list[tuple[str, int]]:
        parsed = []
        for dt in _unique(datetimes):
            try:
                parsed.append(split_slot(dt))
            except ValueError as exc:
                raise InvalidBlockout(str(exc)) from exc
        return parsed

    # ── Dates ─────────────────────────────────────────────────────────────────
    #
    # Each date operation is a read/plan step followed by a write step, so a
    # toggle can finish both existence checks before it writes anything.

    async def _plan_block(self, dates: list[str]) -> _DatePlan:
        if not dates:
            return _DatePlan()
        rows = await self._existing(min(dates), max(dates), full_day=True)
        new_dates = [d for d in dates if not any(_covers(r, d) for r in rows)]
        return _DatePlan(dates=new_dates, skipped=len(dates) - len(new_dates))

    async def _write_block(self, plan: _DatePlan, reason: str) -> None:
        if plan.dates:
            await self.store.insert_many(self.venue_id, [self._row(d, reason) for d in plan.dates])
        logger.info(
            "block_dates venue=%s applied=%d skipped=%d", self.venue_id, len(plan.dates), plan.skipped
        )

    async def _plan_unblock(self, dates: list[str]) -> _DatePlan:
        if not dates:
            return _DatePlan()
        selected = set(dates)
        rows = await self._existing(min(dates), max(dates), full_day=True)
        covering = {d: [r for r in rows if _covers(r, d)] for d in dates}
        # A row spanning dates outside the selection is left alone: deleting
        # it would unblock days the owner never picked.
        removable = {
            r.id for r in rows
            if all(d in selected for d in iter_dates(r.start_date, r.end_date))
        }
        # A row is only deleted when every date it covers ends up clear.
        while True:
            unblocked = [
                d for d in dates
                if covering[d] and all(r.id in removable for r in covering[d])
            ]
            cleared = set(unblocked)
            kept = {
                r.id for r in rows
                if r.id in removable and all(d in cleared for d in iter_dates(r.start_date, r.end_date))
            }
            if kept == removable:
                break
            removable = kept
        return _DatePlan(
            dates=unblocked,
            skipped=len(dates) - len(unblocked),
            row_ids=[r.id for r in rows if r.id in removable],
        )

    async def _write_unblock(self, plan: _DatePlan) -> None:
        if plan.row_ids:
            await self.store.delete_ids(self.venue_id, plan.row_ids, plan.dates)
        logger.info(
            "unblock_dates venue=%s applied=%d skipped=%d", self.venue_id, len(plan.dates), plan.skipped
        )

    async def block_dates(self, dates: Sequence[str], reason: Optional[str] = None) -> BulkResult:
        dates = _unique(dates)

        async def op() -> BulkResult:
            plan = await self._plan_block(dates)
            await self._write_block(plan, reason or settings.DEFAULT_BLOCK_REASON)
            result = plan.result("block_dates")
            if result.applied == 0:
                result.message = "All selected dates are already blocked"
                self.notify.info(result.message)
            else:
                result.message = f"{result.applied} date(s) blocked successfully"
                if result.skipped:
                    result.message += f", skipped {result.skipped} already blocked"
                self.notify.success(result.message)
            return result

        return await self._run("block_dates", dates, op)

    async def unblock_dates(self, dates: Sequence[str]) -> BulkResult:
        dates = _unique(dates)

        async def op() -> BulkResult:
            plan = await self._plan_unblock(dates)
            await self._write_unblock(plan)
            result = plan.result("unblock_dates")
            if result.applied == 0:
                result.message = "No blocked dates found in selection"
                self.notify.info(result.message)
            else:
                result.message = f"{result.applied} date(s) unblocked successfully"
                if result.skipped:
                    result.message += f", skipped {result.skipped} not blocked"
                self.notify.success(result.message)
            return result

        return await self._run("unblock_dates", dates, op)

    async def toggle_dates(
        self,
        dates: Sequence[str],
        days: Mapping[str, AvailabilityDay],
        reason: Optional[str] = None,
    ) -> BulkResult:
        """Blocked dates are unblocked, everything else is blocked."""
        dates = _unique(dates)
        to_unblock = [d for d in dates if d in days and days[d].status == AvailabilityStatus.blocked]
        to_block   = [d for d in dates if d not in to_unblock]

        async def op() -> BulkResult:
            blocked   = await self._plan_block(to_block)
            unblocked = await self._plan_unblock(to_unblock)
            await self._write_block(blocked, reason or settings.DEFAULT_BLOCK_REASON)
            await self._write_unblock(unblocked)
            result = BulkResult(
                action="toggle_dates",
                applied=len(blocked.dates) + len(unblocked.dates),
                skipped=blocked.skipped + unblocked.skipped,
                dates=blocked.dates + unblocked.dates,
            )
            if result.applied == 0:
                result.message = "Selected dates are already in the requested state"
                self.notify.info(result.message)
            else:
                result.message = (
                    f"Slots toggled successfully: {len(blocked.dates)} blocked, "
                    f"{len(unblocked.dates)} unblocked"
                )
                self.notify.success(result.message)
            return result

        return await self._run("toggle_dates", dates, op)

    async def block_date(self, date_str: str, reason: Optional[str] = None) -> BulkResult:
        return await self.block_dates([date_str], reason)

    # ── Hour slots ────────────────────────────────────────────────────────────

    async def block_hour_slots(self, datetimes: Sequence[str], reason: Optional[str] = None) -> BulkResult:
        datetimes = _unique(datetimes)
        reason = reason or settings.DEFAULT_HOUR_BLOCK_REASON

        async def op() -> BulkResult:
            slots = self._parse_slots(datetimes)
            if not slots:
                return BulkResult(action="block_hours", scope="hours")
            dates = [d for d, _ in slots]
            rows = await self._existing(min(dates), max(dates), full_day=None)

            def is_blocked(date_str: str, hour: int) -> bool:
                for r in rows:
                    if not _covers(r, date_str):
                        continue
                    if not r.start_time or parse_hour(r.start_time) == hour:
                        return True
                return False

            to_insert = [(d, h) for d, h in slots if not is_blocked(d, h)]
            result = BulkResult(
                action="block_hours",
                scope="hours",
                applied=len(to_insert),
                skipped=len(slots) - len(to_insert),
                dates=_unique(d for d, _ in to_insert),
            )
            if not to_insert:
                result.message = "All selected hour slots are already blocked."
                self.notify.info(result.message)
                return result
            await self.store.insert_many(
                self.venue_id, [self._row(d, reason, hour=h) for d, h in to_insert]
            )
            result.message = f"{len(to_insert)} hour slot(s) blocked successfully"
            if result.skipped:
                result.message += f", skipped {result.skipped} already blocked"
            self.notify.success(result.message)
            return result

        return await self._run("block_hours", datetimes, op)

    async def unblock_hour_slots(self, date_str: str, datetimes: Sequence[str] = ()) -> BulkResult:
        """
        Remove hour-level blockouts for the given slots.

        An empty `datetimes` is NOT a no-op: it removes every single-day
        blockout, full day and hourly, on `date_str`. See unblock_entire_day.
        """
        if not datetimes:
            return await self.unblock_entire_day(date_str)
        datetimes = _unique(datetimes)

        async def op() -> BulkResult:
            slots = self._parse_slots(datetimes)
            dates = [d for d, _ in slots]
            rows = await self._existing(min(dates), max(dates), full_day=False)
            removable: dict[str, BlockoutRead] = {}
            unblocked: list[tuple[str, int]] = []
            for d, h in slots:
                matches = [r for r in rows if _covers(r, d) and parse_hour(r.start_time) == h]
                # ranged hour blockouts (e.g. "evenings this week") are edited, not split
                single_day = [r for r in matches if r.start_date == r.end_date]
                if matches and len(single_day) == len(matches):
                    unblocked.append((d, h))
                    removable.update({r.id: r for r in single_day})
            result = BulkResult(
                action="unblock_hours",
                scope="hours",
                applied=len(unblocked),
                skipped=len(slots) - len(unblocked),
                dates=_unique(d for d, _ in unblocked),
            )
            if not removable:
                result.message = "No blocked hour slots found in selection"
                self.notify.info(result.message)
                return result
            await self.store.delete_ids(self.venue_id, list(removable), result.dates)
            result.message = f"{len(unblocked)} hour slot(s) unblocked successfully"
            if result.skipped:
                result.message += f", skipped {result.skipped} not blocked"
            self.notify.success(result.message)
            return result

        return await self._run("unblock_hours", datetimes, op)

    async def unblock_entire_day(self, date_str: str) -> BulkResult:
        """
        Destructive: deletes every single-day blockout on the date, full day
        and hourly alike.

        Blockouts that also cover other dates are kept and reported; they are
        edited or deleted through the blockout list instead.
        """

        async def op() -> BulkResult:
            rows = await self._existing(date_str, date_str, full_day=None)
            own      = [r for r in rows if r.start_date == r.end_date]
            spanning = len(rows) - len(own)
            result = BulkResult(action="unblock_entire_day", scope="entire_day")
            if not own:
                if spanning:
                    result.message = (
                        f"Blockouts on {date_str} also cover other dates; "
                        "edit them from the blockout list"
                    )
                else:
                    result.message = f"No blockouts found for {date_str}"
                self.notify.info(result.message)
                return result
            removed = await self.store.delete_ids(self.venue_id, [r.id for r in own], [date_str])
            result.applied = removed
            result.dates   = [date_str]
            if spanning:
                result.message = (
                    f"Day partially unblocked ({removed} blockout(s) removed, "
                    f"{spanning} spanning other dates kept)"
                )
            else:
                result.message = f"Entire day unblocked successfully ({removed} blockout(s) removed)"
            logger.info(
                "unblock_entire_day venue=%s date=%s removed=%d kept=%d",
                self.venue_id, date_str, removed, spanning,
            )
            self.notify.success(result.message)
            return result

        return await self._run("unblock_entire_day", [date_str], op)

    # ── Presets ───────────────────────────────────────────────────────────────

    async def quick_block(
        self,
        action: QuickAction,
        today: str,
        selected_date: Optional[str] = None,
    ) -> BulkResult:
        """Insert a preset range blockout. No dedup: presets are explicit one-off requests."""

        async def op() -> BulkResult:
            plan = plan_quick_block(action, today, selected_date)
            created = await self.store.insert_many(self.venue_id, plan.rows(self.actor_id))
            message = f"Quick blockout created: {plan.reason}"
            logger.info(
                "quick_block venue=%s action=%s range=%s..%s rows=%d",
                self.venue_id, action.value, plan.start_date, plan.end_date, len(created),
            )
            self.notify.success(message)
            return BulkResult(
                action=f"quick_block:{action.value}",
                applied=len(created),
                dates=list(iter_dates(plan.start_date, plan.end_date)),
                scope="hours" if plan.hours else "dates",
                message=message,
            )

        return await self._run("quick_block", [action.value], op)

    async def block_hour_slot(self, datetime_str: str, reason: Optional[str] = None) -> BulkResult:
        return await self.block_hour_slots([datetime_str], reason or "Hour block")

    async def unblock_hour_slot(self, datetime_str: str) -> BulkResult:
        # the slot itself is validated inside unblock_hour_slots
        return await self.unblock_hour_slots(datetime_str.partition("T")[0], [datetime_str])
