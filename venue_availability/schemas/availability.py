from __future__ import annotations

import enum
from typing import Optional

from pydantic import BaseModel

from venue_availability.models.booking import BookingStatus
from venue_availability.models.venue import BookingType
from venue_availability.schemas.blockout import BlockoutRead, BulkResult, Notice


class AvailabilityStatus(str, enum.Enum):
    available = "available"
    partial   = "partial"
    blocked   = "blocked"
    closed    = "closed"


class DaySchedule(BaseModel):
    available: bool = False
    start: str = ""
    end: str = ""


class BookingRead(BaseModel):
    booked_date: str
    start_time: str
    end_time: str
    status: BookingStatus

    model_config = {"from_attributes": True}


class AvailabilityDay(BaseModel):
    date: str
    status: AvailabilityStatus
    slots_available: int
    total_slots: int
    blockouts: list[BlockoutRead] = []
    bookings_count: int = 0


class HourSlot(BaseModel):
    datetime: str          # YYYY-MM-DDTHH:MM
    hour: int
    start_time: str        # HH:MM
    end_time: str          # HH:MM
    label: str             # "9:00 - 10:00 AM"
    is_blocked: bool
    full_day_blocked: bool
    is_selected: bool = False


class AvailabilityStats(BaseModel):
    total_blockouts: int
    upcoming_blockouts: int
    days_blocked_this_month: int
    availability_percentage: int


class AvailabilityResponse(BaseModel):
    venue_id: str
    booking_type: BookingType
    weekly_schedule: dict[str, DaySchedule]
    days: list[AvailabilityDay]
    stats: AvailabilityStats


class HourSlotsResponse(BaseModel):
    venue_id: str
    date: str
    status: Optional[AvailabilityStatus] = None
    slots: list[HourSlot]


class BulkOperationResponse(BaseModel):
    result: BulkResult
    notices: list[Notice]
    days: list[AvailabilityDay]
