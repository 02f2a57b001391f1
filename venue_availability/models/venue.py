from __future__ import annotations

import enum
import uuid
from datetime import datetime, timezone
from typing import Any, Optional, TYPE_CHECKING

from sqlalchemy import JSON, Boolean, DateTime, Enum as SAEnum, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from venue_availability.db.session import Base

if TYPE_CHECKING:
    from venue_availability.models.venue_blockout import VenueBlockout


class BookingType(str, enum.Enum):
    hourly = "hourly"
    daily  = "daily"
    both   = "both"


class Venue(Base):
    """
    Venue row as far as availability is concerned. Profile fields live with
    the venue forms and are not mapped here.
    """
    __tablename__ = "venues"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    venue_name: Mapped[str] = mapped_column(String(255), nullable=False)
    owner_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True, index=True)
    status: Mapped[str] = mapped_column(String(30), default="active", nullable=False)

    booking_type: Mapped[BookingType] = mapped_column(
        SAEnum(BookingType, name="booking_type"),
        default=BookingType.hourly,
        nullable=False,
    )
    # {"monday": {"available": true, "start": "09:00", "end": "18:00"}, ...}
    weekly_availability: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON, nullable=True)
    # Legacy format: ["monday", "tuesday", ...]
    availability: Mapped[Optional[list[str]]] = mapped_column(JSON, nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    blockouts: Mapped[list[VenueBlockout]] = relationship(
        "VenueBlockout", back_populates="venue", cascade="all, delete-orphan"
    )
