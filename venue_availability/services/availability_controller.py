"""
Availability controller: owns one venue's loaded grid and selection.

load()     venue row -> weekly schedule (legacy list fallback) -> blockouts
           (missing table = none) -> confirmed bookings -> compute_range
refresh()  the same pipeline over the current window; the only recovery
           path after a mutation

Loads are tagged with a generation number. When loads overlap (rapid venue
switching) only the newest one is applied; older results are dropped.

Mutations go through BulkBlockoutService under a busy flag, so a second
submission while one is in flight is rejected with OperationInProgress.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Awaitable, Callable, Optional, Sequence

from venue_availability.core.config import settings
from venue_availability.core.errors import (
    AvailabilityError,
    OperationInProgress,
    StoreUnavailable,
    VenueNotFound,
)
from venue_availability.models.venue import BookingType
from venue_availability.schemas.availability import (
    AvailabilityDay,
    AvailabilityResponse,
    AvailabilityStats,
    BookingRead,
    HourSlot,
)
from venue_availability.schemas.blockout import BlockoutRead, BulkResult
from venue_availability.services.availability_calculator import (
    compute_range,
    compute_stats,
    generate_hour_slots,
)
from venue_availability.services.blockout_store import BlockoutStore
from venue_availability.services.bulk_blockouts import BulkBlockoutService
from venue_availability.services.cache import RedisCache
from venue_availability.services.dates import add_days
from venue_availability.services.notifier import Notifier
from venue_availability.services.quick_blocks import QuickAction
from venue_availability.services.schedule import WeeklySchedule, normalize_weekly_schedule
from venue_availability.services.selection import (
    SelectionContext,
    SelectionEvent,
    SelectionOutcome,
    SelectionState,
    transition,
)
from venue_availability.services.venue_store import VenueStore

logger = logging.getLogger(__name__)


def _today() -> str:
    return date.today().isoformat()


@dataclass
class _Snapshot:
    venue_id: str
    start: str
    end: str
    booking_mode: BookingType
    weekly_schedule: WeeklySchedule
    blockouts: list[BlockoutRead] = field(default_factory=list)
    bookings: list[BookingRead] = field(default_factory=list)
    days: list[AvailabilityDay] = field(default_factory=list)


class AvailabilityController:

    def __init__(
        self,
        venue_store: VenueStore,
        blockout_store: BlockoutStore,
        notifier: Notifier,
        *,
        actor_id: Optional[str] = None,
        cache: Optional[RedisCache] = None,
        window_days: Optional[int] = None,
        today: Callable[[], str] = _today,
    ):
        self.venue_store    = venue_store
        self.blockout_store = blockout_store
        self.notify         = notifier
        self.actor_id       = actor_id
        self.cache          = cache
        self.window_days    = window_days if window_days is not None else settings.AVAILABILITY_WINDOW_DAYS
        self.today          = today

        self.selection = SelectionState()
        self._snapshot: Optional[_Snapshot] = None
        self._generation = 0
        self._busy = False

    # ── Loaded state ──────────────────────────────────────────────────────────

    @property
    def venue_id(self) -> Optional[str]:
        return self._snapshot.venue_id if self._snapshot else None

    @property
    def days(self) -> list[AvailabilityDay]:
        return self._snapshot.days if self._snapshot else []

    @property
    def blockouts(self) -> list[BlockoutRead]:
        return self._snapshot.blockouts if self._snapshot else []

    @property
    def booking_mode(self) -> BookingType:
        return self._snapshot.booking_mode if self._snapshot else BookingType.hourly

    @property
    def weekly_schedule(self) -> WeeklySchedule:
        return self._snapshot.weekly_schedule if self._snapshot else {}

    @property
    def busy(self) -> bool:
        return self._busy

    @property
    def stats(self) -> AvailabilityStats:
        return compute_stats(self.days, self.blockouts, self.today())

    def day(self, date_str: str) -> Optional[AvailabilityDay]:
        return next((d for d in self.days if d.date == date_str), None)

    def hour_slots(self, date_str: str) -> list[HourSlot]:
        return generate_hour_slots(
            date_str, self.weekly_schedule, self.blockouts, self.selection.selected_hour_slots
        )

    def response(self) -> AvailabilityResponse:
        if self._snapshot is None:
            raise VenueNotFound("No venue loaded")
        return AvailabilityResponse(
            venue_id=self._snapshot.venue_id,
            booking_type=self._snapshot.booking_mode,
            weekly_schedule=self._snapshot.weekly_schedule,
            days=self._snapshot.days,
            stats=self.stats,
        )

    # ── Loading ───────────────────────────────────────────────────────────────

    def default_window(self) -> tuple[str, str]:
        today = self.today()
        return today, add_days(today, self.window_days)

    async def _fetch(self, venue_id: str, start: str, end: str) -> _Snapshot:
        profile = await self.venue_store.get_profile(venue_id)
        weekly = normalize_weekly_schedule(profile.weekly_availability, profile.availability)
        try:
            blockouts = await self.blockout_store.list_blockouts(venue_id, active_from=start, until=end)
        except StoreUnavailable:
            logger.info("No blockouts table yet; venue=%s loads with zero blockouts", venue_id)
            blockouts = []
        bookings = await self.venue_store.confirmed_bookings(venue_id, start, end)
        mode = profile.booking_type or BookingType.hourly
        return _Snapshot(
            venue_id=venue_id,
            start=start,
            end=end,
            booking_mode=mode,
            weekly_schedule=weekly,
            blockouts=blockouts,
            bookings=bookings,
            days=compute_range(weekly, blockouts, bookings, start, end, mode),
        )

    async def load(
        self,
        venue_id: str,
        start: Optional[str] = None,
        end: Optional[str] = None,
    ) -> list[AvailabilityDay]:
        if not start or not end:
            start, end = self.default_window()
        self._generation += 1
        generation = self._generation
        try:
            snapshot = await self._fetch(venue_id, start, end)
        except AvailabilityError as exc:
            if generation != self._generation:
                logger.debug("Ignoring failed stale load venue=%s gen=%d", venue_id, generation)
                return self.days
            logger.error("Failed to load availability venue=%s — %s", venue_id, exc.message)
            self.notify.error("Failed to load availability data")
            raise
        if generation != self._generation:
            logger.debug(
                "Discarding stale load venue=%s gen=%d (current %d)",
                venue_id, generation, self._generation,
            )
            return self.days
        if self._snapshot is not None and self._snapshot.venue_id != venue_id:
            self.selection = SelectionState()
        self._snapshot = snapshot
        logger.info(
            "Loaded availability venue=%s %s..%s days=%d blockouts=%d",
            venue_id, start, end, len(snapshot.days), len(snapshot.blockouts),
        )
        return snapshot.days

    async def refresh(self) -> list[AvailabilityDay]:
        if self._snapshot is None:
            raise VenueNotFound("No venue loaded")
        return await self.load(self._snapshot.venue_id, self._snapshot.start, self._snapshot.end)

    # ── Selection ─────────────────────────────────────────────────────────────

    def apply(
        self,
        event: SelectionEvent,
        view_start: Optional[str] = None,
        view_end: Optional[str] = None,
    ) -> SelectionOutcome:
        context = SelectionContext(
            today=self.today(),
            view_start=view_start,
            view_end=view_end,
            booking_mode=self.booking_mode,
        )
        outcome = transition(self.selection, event, context)
        self.selection = outcome.state
        return outcome

    # ── Mutations ─────────────────────────────────────────────────────────────

    async def _mutate(
        self,
        run: Callable[[BulkBlockoutService], Awaitable[BulkResult]],
        *,
        clears: str,
    ) -> BulkResult:
        if self._snapshot is None:
            raise VenueNotFound("No venue loaded")
        if self._busy:
            raise OperationInProgress(
                "Another blockout operation is still running", venue_id=self.venue_id
            )
        self._busy = True
        try:
            service = BulkBlockoutService(
                self.blockout_store, self._snapshot.venue_id, self.actor_id, self.notify
            )
            result = await run(service)

            if clears == "dates":
                self.selection = self.selection.model_copy(
                    update={"selected_dates": frozenset(), "last_selected_date": None}
                )
            elif clears == "hours":
                self.selection = self.selection.model_copy(update={"selected_hour_slots": frozenset()})

            if self.cache is not None:
                await self.cache.delete_prefix(f"{self._snapshot.venue_id}:")
            try:
                await self.refresh()
            except AvailabilityError as exc:
                # the write went through; the grid stays stale until the next load
                logger.warning(
                    "Refresh after %s failed venue=%s — %s", result.action, self.venue_id, exc.message
                )
            return result
        finally:
            self._busy = False

    def _selected_dates(self, dates: Optional[Sequence[str]]) -> list[str]:
        return list(dates) if dates else sorted(self.selection.selected_dates)

    def _selected_hours(self, datetimes: Optional[Sequence[str]]) -> list[str]:
        return list(datetimes) if datetimes else sorted(self.selection.selected_hour_slots)

    def _nothing_selected(self, action: str, what: str) -> BulkResult:
        message = f"Please select {what} first"
        self.notify.info(message)
        return BulkResult(action=action, message=message)

    async def block_dates(self, dates: Optional[Sequence[str]] = None, reason: Optional[str] = None) -> BulkResult:
        targets = self._selected_dates(dates)
        if not targets:
            return self._nothing_selected("block_dates", "dates")
        return await self._mutate(lambda s: s.block_dates(targets, reason), clears="dates")

    async def unblock_dates(self, dates: Optional[Sequence[str]] = None) -> BulkResult:
        targets = self._selected_dates(dates)
        if not targets:
            return self._nothing_selected("unblock_dates", "dates")
        return await self._mutate(lambda s: s.unblock_dates(targets), clears="dates")

    async def toggle_dates(self, dates: Optional[Sequence[str]] = None, reason: Optional[str] = None) -> BulkResult:
        targets = self._selected_dates(dates)
        if not targets:
            return self._nothing_selected("toggle_dates", "dates")
        by_date = {d.date: d for d in self.days}
        return await self._mutate(lambda s: s.toggle_dates(targets, by_date, reason), clears="dates")

    async def block_hours(self, datetimes: Optional[Sequence[str]] = None, reason: Optional[str] = None) -> BulkResult:
        targets = self._selected_hours(datetimes)
        if not targets:
            return self._nothing_selected("block_hours", "hour slots")
        return await self._mutate(lambda s: s.block_hour_slots(targets, reason), clears="hours")

    async def unblock_hours(self, date_str: str, datetimes: Optional[Sequence[str]] = None) -> BulkResult:
        """Explicit slots only. Clearing a whole day goes through unblock_entire_day."""
        targets = self._selected_hours(datetimes)
        if not targets:
            return self._nothing_selected("unblock_hours", "hour slots")
        return await self._mutate(lambda s: s.unblock_hour_slots(date_str, targets), clears="hours")

    async def unblock_entire_day(self, date_str: str) -> BulkResult:
        return await self._mutate(lambda s: s.unblock_entire_day(date_str), clears="hours")

    async def quick_block(self, action: QuickAction, selected_date: Optional[str] = None) -> BulkResult:
        today = self.today()
        return await self._mutate(lambda s: s.quick_block(action, today, selected_date), clears="none")
