"""
Single-blockout management: the owner's list / create / edit / delete view.

Unlike the bulk operations this edits rows in place and does no dedup; the
owner is editing one record they can see.
"""
from __future__ import annotations

import logging
from collections import Counter
from typing import Iterable, Optional

from venue_availability.core.errors import (
    AvailabilityError,
    InvalidBlockout,
    StoreUnavailable,
    Unauthenticated,
)
from venue_availability.models.venue_blockout import BlockType
from venue_availability.schemas.blockout import BlockoutCreate, BlockoutRead, BlockoutStats, BlockoutUpdate
from venue_availability.services.blockout_store import BlockoutStore
from venue_availability.services.notifier import Notifier

logger = logging.getLogger(__name__)


# ── Filters ───────────────────────────────────────────────────────────────────

def active_on(blockouts: Iterable[BlockoutRead], today: str) -> list[BlockoutRead]:
    return [b for b in blockouts if b.start_date <= today <= b.end_date]


def upcoming(blockouts: Iterable[BlockoutRead], today: str) -> list[BlockoutRead]:
    return [b for b in blockouts if b.start_date > today]


def past(blockouts: Iterable[BlockoutRead], today: str) -> list[BlockoutRead]:
    return [b for b in blockouts if b.end_date < today]


def of_type(blockouts: Iterable[BlockoutRead], block_type: BlockType) -> list[BlockoutRead]:
    return [b for b in blockouts if b.block_type == block_type]


def blockout_stats(blockouts: list[BlockoutRead], today: str) -> BlockoutStats:
    return BlockoutStats(
        total=len(blockouts),
        active=len(active_on(blockouts, today)),
        upcoming=len(upcoming(blockouts, today)),
        past=len(past(blockouts, today)),
        by_type=dict(Counter(b.block_type.value for b in blockouts)),
    )


# ── Service ───────────────────────────────────────────────────────────────────

class BlockoutManager:

    def __init__(self, store: BlockoutStore, venue_id: str, actor_id: Optional[str], notifier: Notifier):
        self.store    = store
        self.venue_id = venue_id
        self.actor_id = actor_id
        self.notify   = notifier

    def _require_actor(self) -> str:
        if not self.actor_id:
            raise Unauthenticated(
                "You must be logged in as the venue owner to manage blockouts.",
                venue_id=self.venue_id,
            )
        return self.actor_id

    async def list_blockouts(
        self,
        today: str,
        *,
        include_past: bool = False,
        include_future: bool = True,
        block_type: Optional[BlockType] = None,
        on_date: Optional[str] = None,
        start: Optional[str] = None,
        end: Optional[str] = None,
    ) -> list[BlockoutRead]:
        try:
            rows = await self.store.list_blockouts(
                self.venue_id,
                active_from=None if include_past else today,
                until=None if include_future else today,
            )
        except StoreUnavailable:
            # not provisioned yet: an empty list, not an error
            return []
        if block_type is not None:
            rows = of_type(rows, block_type)
        if on_date:
            rows = [b for b in rows if b.start_date <= on_date <= b.end_date]
        if start or end:
            lo, hi = start or "0000-00-00", end or "9999-12-31"
            rows = [b for b in rows if b.start_date <= hi and b.end_date >= lo]
        return rows

    async def get(self, blockout_id: str) -> BlockoutRead:
        return await self.store.get(self.venue_id, blockout_id)

    async def stats(self, today: str) -> BlockoutStats:
        rows = await self.list_blockouts(today, include_past=True, include_future=True)
        return blockout_stats(rows, today)

    async def create(self, data: BlockoutCreate) -> BlockoutRead:
        actor = self._require_actor()
        row = data.model_dump()
        row["created_by"] = actor
        try:
            created = await self.store.insert_many(self.venue_id, [row])
        except AvailabilityError:
            self.notify.error("Failed to create blockout")
            raise
        logger.info(
            "Blockout created venue=%s %s..%s type=%s",
            self.venue_id, data.start_date, data.end_date, data.block_type.value,
        )
        self.notify.success("Blockout created successfully")
        return created[0]

    async def update(self, blockout_id: str, data: BlockoutUpdate) -> BlockoutRead:
        self._require_actor()
        changes = data.model_dump(exclude_unset=True)
        current = await self.store.get(self.venue_id, blockout_id)
        merged = current.model_copy(update=changes)
        if merged.end_date < merged.start_date:
            raise InvalidBlockout("end_date must be on or after start_date", venue_id=self.venue_id)
        if merged.start_time and merged.end_time and merged.end_time <= merged.start_time:
            raise InvalidBlockout("end_time must be after start_time", venue_id=self.venue_id)
        try:
            updated = await self.store.update(self.venue_id, blockout_id, changes)
        except AvailabilityError:
            self.notify.error("Failed to update blockout")
            raise
        self.notify.success("Blockout updated successfully")
        return updated

    async def delete(self, blockout_id: str) -> None:
        self._require_actor()
        current = await self.store.get(self.venue_id, blockout_id)
        try:
            await self.store.delete_ids(self.venue_id, [current.id], [current.start_date])
        except AvailabilityError:
            self.notify.error("Failed to delete blockout")
            raise
        logger.info("Blockout deleted venue=%s id=%s", self.venue_id, blockout_id)
        self.notify.success("Blockout deleted successfully")
