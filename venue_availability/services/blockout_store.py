"""
Blockout store: create/read/delete of `venue_blockouts` rows for a venue.

Every SQLAlchemy failure is translated here, at the store boundary:
a missing table becomes StoreUnavailable (not-yet-provisioned deployment),
anything else becomes a retryable TransientStoreError. Both carry the venue
id, and the failure is logged with the operation and the dates involved.
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Iterable, Iterator, Optional, Sequence

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from venue_availability.core.errors import BlockoutNotFound, StoreUnavailable, TransientStoreError
from venue_availability.models.venue_blockout import VenueBlockout
from venue_availability.schemas.blockout import BlockoutRead

logger = logging.getLogger(__name__)

_MISSING_TABLE_MARKERS = (
    'relation "venue_blockouts" does not exist',
    "undefinedtable",
    "no such table: venue_blockouts",
)


def is_missing_table(exc: BaseException) -> bool:
    text = f"{type(exc).__name__} {exc}".lower()
    return any(marker.lower() in text for marker in _MISSING_TABLE_MARKERS)


class BlockoutStore:
    """Async repository over an AsyncSession. One instance per request."""

    def __init__(self, db: AsyncSession):
        self.db = db

    @contextmanager
    def _errors(self, operation: str, venue_id: str, dates: Optional[Iterable[str]] = None) -> Iterator[None]:
        try:
            yield
        except SQLAlchemyError as exc:
            shown = sorted(set(dates or []))[:10]
            if is_missing_table(exc):
                logger.info(
                    "venue_blockouts table not available (venue=%s op=%s)", venue_id, operation
                )
                raise StoreUnavailable("Blockouts table not available", venue_id=venue_id) from exc
            logger.error(
                "Blockout store %s failed venue=%s dates=%s — %s", operation, venue_id, shown, exc
            )
            raise TransientStoreError(
                f"Blockout {operation} failed, please retry", venue_id=venue_id
            ) from exc

    async def _rollback_quietly(self) -> None:
        try:
            await self.db.rollback()
        except SQLAlchemyError as exc:
            logger.warning("rollback failed — %s", exc)

    # ── Reads ─────────────────────────────────────────────────────────────────

    async def list_blockouts(
        self,
        venue_id: str,
        *,
        active_from: Optional[str] = None,
        until: Optional[str] = None,
    ) -> list[BlockoutRead]:
        """Blockouts ordered by start_date, optionally only those touching [active_from, until]."""
        stmt = select(VenueBlockout).where(VenueBlockout.venue_id == venue_id)
        if active_from:
            stmt = stmt.where(VenueBlockout.end_date >= active_from)
        if until:
            stmt = stmt.where(VenueBlockout.start_date <= until)
        stmt = stmt.order_by(VenueBlockout.start_date, VenueBlockout.start_time)
        with self._errors("select", venue_id):
            result = await self.db.execute(stmt)
            rows = result.scalars().all()
        return [BlockoutRead.model_validate(r) for r in rows]

    async def blockouts_between(
        self,
        venue_id: str,
        start: str,
        end: str,
        *,
        full_day: Optional[bool] = None,
    ) -> list[BlockoutRead]:
        """Rows whose inclusive range overlaps [start, end]; full_day narrows by kind."""
        stmt = select(VenueBlockout).where(
            VenueBlockout.venue_id == venue_id,
            VenueBlockout.start_date <= end,
            VenueBlockout.end_date >= start,
        )
        if full_day is True:
            stmt = stmt.where(VenueBlockout.start_time.is_(None))
        elif full_day is False:
            stmt = stmt.where(VenueBlockout.start_time.is_not(None))
        with self._errors("select", venue_id, [start, end]):
            result = await self.db.execute(stmt)
            rows = result.scalars().all()
        return [BlockoutRead.model_validate(r) for r in rows]

    async def get(self, venue_id: str, blockout_id: str) -> BlockoutRead:
        stmt = select(VenueBlockout).where(
            VenueBlockout.id == blockout_id,
            VenueBlockout.venue_id == venue_id,
        )
        with self._errors("get", venue_id):
            result = await self.db.execute(stmt)
            row = result.scalar_one_or_none()
        if row is None:
            raise BlockoutNotFound("Blockout not found", venue_id=venue_id)
        return BlockoutRead.model_validate(row)

    # ── Writes ────────────────────────────────────────────────────────────────

    async def insert_many(self, venue_id: str, rows: Sequence[dict[str, Any]]) -> list[BlockoutRead]:
        """One batched insert. Partial failure is left to the database transaction."""
        if not rows:
            return []
        objs = [VenueBlockout(venue_id=venue_id, **row) for row in rows]
        dates = [row["start_date"] for row in rows]
        try:
            with self._errors("insert", venue_id, dates):
                self.db.add_all(objs)
                await self.db.commit()
        except (StoreUnavailable, TransientStoreError):
            await self._rollback_quietly()
            raise
        return [BlockoutRead.model_validate(o) for o in objs]

    async def delete_ids(self, venue_id: str, ids: Sequence[str], dates: Sequence[str] = ()) -> int:
        if not ids:
            return 0
        stmt = delete(VenueBlockout).where(
            VenueBlockout.venue_id == venue_id,
            VenueBlockout.id.in_(list(ids)),
        )
        try:
            with self._errors("delete", venue_id, dates):
                result = await self.db.execute(stmt)
                await self.db.commit()
        except (StoreUnavailable, TransientStoreError):
            await self._rollback_quietly()
            raise
        return result.rowcount or 0

    async def update(self, venue_id: str, blockout_id: str, changes: dict[str, Any]) -> BlockoutRead:
        stmt = select(VenueBlockout).where(
            VenueBlockout.id == blockout_id,
            VenueBlockout.venue_id == venue_id,
        )
        try:
            with self._errors("update", venue_id):
                result = await self.db.execute(stmt)
                row = result.scalar_one_or_none()
                if row is None:
                    raise BlockoutNotFound("Blockout not found", venue_id=venue_id)
                for field, value in changes.items():
                    setattr(row, field, value)
                await self.db.commit()
                await self.db.refresh(row)
        except (StoreUnavailable, TransientStoreError):
            await self._rollback_quietly()
            raise
        return BlockoutRead.model_validate(row)
