from __future__ import annotations

import enum
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, Enum, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from venue_availability.db.session import Base


class BookingStatus(str, enum.Enum):
    pending   = "pending"
    confirmed = "confirmed"
    cancelled = "cancelled"
    refunded  = "refunded"


class Booking(Base):
    """Read-only here: the booking engine owns writes."""
    __tablename__ = "bookings"
    __table_args__ = (
        Index("ix_bookings_venue_date", "venue_id", "booked_date"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    venue_id: Mapped[Optional[str]] = mapped_column(String(36), ForeignKey("venues.id", ondelete="SET NULL"), nullable=True)

    status: Mapped[BookingStatus] = mapped_column(
        Enum(BookingStatus, name="bookingstatus"),
        default=BookingStatus.pending,
        nullable=False,
    )

    booked_date: Mapped[str] = mapped_column(String(10), nullable=False)  # ISO date
    start_time:  Mapped[str] = mapped_column(String(8),  nullable=False)  # HH:MM
    end_time:    Mapped[str] = mapped_column(String(8),  nullable=False)  # HH:MM

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False
    )
