from __future__ import annotations

import enum
import uuid
from datetime import datetime, timezone
from typing import Optional, TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, Enum as SAEnum, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from venue_availability.db.session import Base

if TYPE_CHECKING:
    from venue_availability.models.venue import Venue


class BlockType(str, enum.Enum):
    maintenance = "maintenance"
    personal    = "personal"
    event       = "event"
    other       = "other"


class VenueBlockout(Base):
    __tablename__ = "venue_blockouts"
    __table_args__ = (
        Index("ix_venue_blockouts_venue_start", "venue_id", "start_date"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    venue_id: Mapped[str] = mapped_column(
        ForeignKey("venues.id", ondelete="CASCADE"), nullable=False, index=True
    )
    # Inclusive range, ISO "YYYY-MM-DD" strings. Compared as strings, never as
    # datetimes, so a local-timezone shift can't move a boundary date.
    start_date: Mapped[str] = mapped_column(String(10), nullable=False)
    end_date: Mapped[str] = mapped_column(String(10), nullable=False, index=True)
    # NULL times = whole day. Otherwise the single hour starting at start_time.
    start_time: Mapped[Optional[str]] = mapped_column(String(8), nullable=True)
    end_time: Mapped[Optional[str]] = mapped_column(String(8), nullable=True)

    reason: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    block_type: Mapped[BlockType] = mapped_column(
        SAEnum(BlockType, name="block_type"),
        default=BlockType.maintenance,
        nullable=False,
    )
    # Stored for the blockout form; recurrence is never expanded.
    is_recurring: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    created_by: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
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

    venue: Mapped[Venue] = relationship("Venue", back_populates="blockouts")
