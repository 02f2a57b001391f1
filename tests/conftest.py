from __future__ import annotations

import uuid
from typing import Any, Optional, Sequence

import pytest

from venue_availability.core.errors import BlockoutNotFound, StoreUnavailable, TransientStoreError, VenueNotFound
from venue_availability.models.venue import BookingType
from venue_availability.models.venue_blockout import BlockType
from venue_availability.schemas.availability import BookingRead, DaySchedule
from venue_availability.schemas.blockout import BlockoutRead
from venue_availability.services.notifier import CollectingNotifier
from venue_availability.services.venue_store import VenueProfile

VENUE_ID = "venue-1"
ACTOR_ID = "owner-1"
TODAY = "2025-01-06"  # a Monday

WEEKDAY_HOURS = {"available": True, "start": "09:00", "end": "18:00"}

WEEKLY = {
    "monday":    WEEKDAY_HOURS,
    "tuesday":   WEEKDAY_HOURS,
    "wednesday": WEEKDAY_HOURS,
    "thursday":  WEEKDAY_HOURS,
    "friday":    WEEKDAY_HOURS,
    "saturday":  {"available": True, "start": "10:00", "end": "14:00"},
    "sunday":    {"available": False, "start": "", "end": ""},
}


def schedule(weekly: Optional[dict] = None) -> dict[str, DaySchedule]:
    return {k: DaySchedule(**v) for k, v in (weekly or WEEKLY).items()}


def blockout(
    start: str,
    end: Optional[str] = None,
    *,
    hour: Optional[int] = None,
    block_type: BlockType = BlockType.maintenance,
    venue_id: str = VENUE_ID,
) -> BlockoutRead:
    return BlockoutRead(
        id=str(uuid.uuid4()),
        venue_id=venue_id,
        start_date=start,
        end_date=end or start,
        start_time=f"{hour:02d}:00:00" if hour is not None else None,
        end_time=f"{hour + 1:02d}:00:00" if hour is not None else None,
        reason="test",
        block_type=block_type,
    )


# ── Fakes ─────────────────────────────────────────────────────────────────────

class FakeBlockoutStore:
    """In-memory stand-in for BlockoutStore with switchable failures."""

    def __init__(self, rows: Sequence[BlockoutRead] = ()):
        self.rows: list[BlockoutRead] = list(rows)
        self.missing_table = False
        self.fail_reads = False
        self.fail_writes = False
        self.insert_calls = 0
        self.delete_calls = 0

    def _check_read(self, venue_id: str) -> None:
        if self.missing_table:
            raise StoreUnavailable("Blockouts table not available", venue_id=venue_id)
        if self.fail_reads:
            raise TransientStoreError("Blockout select failed, please retry", venue_id=venue_id)

    def _check_write(self, venue_id: str, operation: str) -> None:
        if self.missing_table:
            raise StoreUnavailable("Blockouts table not available", venue_id=venue_id)
        if self.fail_writes:
            raise TransientStoreError(f"Blockout {operation} failed, please retry", venue_id=venue_id)

    def for_venue(self, venue_id: str = VENUE_ID) -> list[BlockoutRead]:
        return [r for r in self.rows if r.venue_id == venue_id]

    async def list_blockouts(self, venue_id, *, active_from=None, until=None):
        self._check_read(venue_id)
        rows = self.for_venue(venue_id)
        if active_from:
            rows = [r for r in rows if r.end_date >= active_from]
        if until:
            rows = [r for r in rows if r.start_date <= until]
        return sorted(rows, key=lambda r: (r.start_date, r.start_time or ""))

    async def blockouts_between(self, venue_id, start, end, *, full_day=None):
        self._check_read(venue_id)
        rows = [r for r in self.for_venue(venue_id) if r.start_date <= end and r.end_date >= start]
        if full_day is True:
            rows = [r for r in rows if r.start_time is None]
        elif full_day is False:
            rows = [r for r in rows if r.start_time is not None]
        return rows

    async def get(self, venue_id, blockout_id):
        self._check_read(venue_id)
        for r in self.for_venue(venue_id):
            if r.id == blockout_id:
                return r
        raise BlockoutNotFound("Blockout not found", venue_id=venue_id)

    async def insert_many(self, venue_id, rows: Sequence[dict[str, Any]]):
        self._check_write(venue_id, "insert")
        self.insert_calls += 1
        created = [BlockoutRead(id=str(uuid.uuid4()), venue_id=venue_id, **row) for row in rows]
        self.rows.extend(created)
        return created

    async def delete_ids(self, venue_id, ids, dates=()):
        self._check_write(venue_id, "delete")
        self.delete_calls += 1
        wanted = set(ids)
        before = len(self.rows)
        self.rows = [r for r in self.rows if not (r.venue_id == venue_id and r.id in wanted)]
        return before - len(self.rows)

    async def update(self, venue_id, blockout_id, changes):
        self._check_write(venue_id, "update")
        current = await self.get(venue_id, blockout_id)
        updated = current.model_copy(update=changes)
        self.rows = [updated if r.id == blockout_id else r for r in self.rows]
        return updated


class FakeVenueStore:

    def __init__(
        self,
        weekly: Optional[dict] = None,
        *,
        legacy: Optional[list[str]] = None,
        booking_type: BookingType = BookingType.hourly,
        bookings: Sequence[BookingRead] = (),
    ):
        self.profiles = {
            VENUE_ID: VenueProfile(
                id=VENUE_ID,
                venue_name="The Loft",
                booking_type=booking_type,
                weekly_availability=WEEKLY if weekly is None and legacy is None else weekly,
                availability=legacy,
            )
        }
        self.bookings = list(bookings)
        self.profile_calls = 0

    async def get_profile(self, venue_id):
        self.profile_calls += 1
        if venue_id not in self.profiles:
            raise VenueNotFound("Venue not found", venue_id=venue_id)
        return self.profiles[venue_id]

    async def confirmed_bookings(self, venue_id, start, end):
        return [b for b in self.bookings if start <= b.booked_date <= end]


class FakeCache:

    def __init__(self):
        self.data: dict[str, Any] = {}
        self.invalidated: list[str] = []

    async def get(self, key):
        return self.data.get(key)

    async def set(self, key, value, ttl_seconds=None):
        self.data[key] = value

    async def delete_prefix(self, prefix):
        self.invalidated.append(prefix)
        doomed = [k for k in self.data if k.startswith(prefix)]
        for k in doomed:
            del self.data[k]
        return len(doomed)

    async def stats(self):
        return {"cache": "fake", "live_entries": len(self.data)}


# ── Fixtures ──────────────────────────────────────────────────────────────────

@pytest.fixture
def store() -> FakeBlockoutStore:
    return FakeBlockoutStore()


@pytest.fixture
def venue_store() -> FakeVenueStore:
    return FakeVenueStore()


@pytest.fixture
def notifier() -> CollectingNotifier:
    return CollectingNotifier()


@pytest.fixture
def cache() -> FakeCache:
    return FakeCache()
