from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from venue_availability.models.venue_blockout import BlockType

_DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"
_TIME_PATTERN = r"^\d{2}:\d{2}(:\d{2})?$"
_SLOT_PATTERN = r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}$"


class BlockoutRead(BaseModel):
    id: str
    venue_id: str
    start_date: str
    end_date: str
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    reason: str = ""
    block_type: BlockType = BlockType.maintenance
    is_recurring: bool = False
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}

    @property
    def is_full_day(self) -> bool:
        return not self.start_time


class BlockoutCreate(BaseModel):
    start_date: str = Field(pattern=_DATE_PATTERN)
    end_date: str = Field(pattern=_DATE_PATTERN)
    start_time: Optional[str] = Field(default=None, pattern=_TIME_PATTERN)
    end_time: Optional[str] = Field(default=None, pattern=_TIME_PATTERN)
    reason: str = Field(default="", max_length=255)
    block_type: BlockType = BlockType.maintenance
    is_recurring: bool = False

    @model_validator(mode="after")
    def _check_ranges(self) -> "BlockoutCreate":
        if self.end_date < self.start_date:
            raise ValueError("end_date must be on or after start_date")
        if self.start_time and self.end_time and self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class BlockoutUpdate(BaseModel):
    start_date: Optional[str] = Field(default=None, pattern=_DATE_PATTERN)
    end_date: Optional[str] = Field(default=None, pattern=_DATE_PATTERN)
    start_time: Optional[str] = Field(default=None, pattern=_TIME_PATTERN)
    end_time: Optional[str] = Field(default=None, pattern=_TIME_PATTERN)
    reason: Optional[str] = Field(default=None, max_length=255)
    block_type: Optional[BlockType] = None
    is_recurring: Optional[bool] = None


class BlockoutStats(BaseModel):
    total: int
    active: int
    upcoming: int
    past: int
    by_type: dict[str, int]


# ── Bulk requests / results ───────────────────────────────────────────────────

class BulkDatesRequest(BaseModel):
    dates: list[str] = Field(min_length=1)
    reason: Optional[str] = Field(default=None, max_length=255)

    @field_validator("dates")
    @classmethod
    def _dates_are_iso(cls, v: list[str]) -> list[str]:
        for d in v:
            if len(d) != 10 or d[4] != "-" or d[7] != "-":
                raise ValueError(f"invalid date {d!r}, expected YYYY-MM-DD")
        return v


class BulkHoursRequest(BaseModel):
    datetimes: list[str] = Field(min_length=1)
    reason: Optional[str] = Field(default=None, max_length=255)

    @field_validator("datetimes")
    @classmethod
    def _slots_are_iso(cls, v: list[str]) -> list[str]:
        for dt in v:
            if len(dt) != 16 or dt[10] != "T":
                raise ValueError(f"invalid hour slot {dt!r}, expected YYYY-MM-DDTHH:MM")
        return v


class UnblockHoursRequest(BaseModel):
    date: str = Field(pattern=_DATE_PATTERN)
    datetimes: list[str] = Field(default_factory=list)
    # An empty list clears the whole day; the caller has to say so explicitly.
    confirm_entire_day: bool = False

    @model_validator(mode="after")
    def _entire_day_needs_confirmation(self) -> "UnblockHoursRequest":
        if not self.datetimes and not self.confirm_entire_day:
            raise ValueError(
                "empty datetimes removes every blockout for the date; "
                "set confirm_entire_day to proceed"
            )
        return self


class Notice(BaseModel):
    level: Literal["success", "info", "error"]
    message: str


class BulkResult(BaseModel):
    action: str
    applied: int = 0
    skipped: int = 0
    dates: list[str] = []
    scope: Literal["dates", "hours", "entire_day"] = "dates"
    message: str = ""
