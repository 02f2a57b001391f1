from __future__ import annotations

import logging
from typing import Any, Optional

from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from venue_availability.core.errors import TransientStoreError, VenueNotFound
from venue_availability.models.booking import Booking, BookingStatus
from venue_availability.models.venue import BookingType, Venue
from venue_availability.schemas.availability import BookingRead

logger = logging.getLogger(__name__)


class VenueProfile(BaseModel):
    """The slice of a venue row the availability engine reads."""
    id: str
    venue_name: str = ""
    booking_type: Optional[BookingType] = None
    weekly_availability: Optional[dict[str, Any]] = None
    availability: Optional[list[str]] = None

    model_config = {"from_attributes": True}


class VenueStore:
    """Reads the venue row and confirmed bookings. Never writes."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_profile(self, venue_id: str) -> VenueProfile:
        try:
            result = await self.db.execute(select(Venue).where(Venue.id == venue_id))
            venue = result.scalar_one_or_none()
        except SQLAlchemyError as exc:
            logger.error("Failed to load venue=%s — %s", venue_id, exc)
            raise TransientStoreError(f"Failed to load venue: {exc}", venue_id=venue_id) from exc
        if venue is None:
            raise VenueNotFound("Venue not found", venue_id=venue_id)
        return VenueProfile.model_validate(venue)

    async def confirmed_bookings(self, venue_id: str, start: str, end: str) -> list[BookingRead]:
        stmt = select(Booking).where(
            Booking.venue_id    == venue_id,
            Booking.status      == BookingStatus.confirmed,
            Booking.booked_date >= start,
            Booking.booked_date <= end,
        )
        try:
            result = await self.db.execute(stmt)
            rows = result.scalars().all()
        except SQLAlchemyError as exc:
            logger.error(
                "Failed to load bookings venue=%s range=%s..%s — %s", venue_id, start, end, exc
            )
            raise TransientStoreError("Failed to load bookings", venue_id=venue_id) from exc
        return [BookingRead.model_validate(r) for r in rows]
