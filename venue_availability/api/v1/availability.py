from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query

from venue_availability.core.deps import (
    get_availability_cache,
    get_blockout_store,
    get_current_actor_id,
    get_today,
    get_venue_store,
)
from venue_availability.schemas.availability import (
    AvailabilityResponse,
    BulkOperationResponse,
    HourSlotsResponse,
)
from venue_availability.schemas.blockout import (
    BulkDatesRequest,
    BulkHoursRequest,
    BulkResult,
    UnblockHoursRequest,
)
from venue_availability.services.availability_controller import AvailabilityController
from venue_availability.services.blockout_store import BlockoutStore
from venue_availability.services.cache import RedisCache, availability_key
from venue_availability.services.notifier import CollectingNotifier
from venue_availability.services.quick_blocks import QuickAction
from venue_availability.services.venue_store import VenueStore

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/venues/{venue_id}/availability", tags=["availability"])

_DATE = r"^\d{4}-\d{2}-\d{2}$"


# ── Private helpers ───────────────────────────────────────────────────────────

class _Ctx:
    """Per-request controller plus the notifier whose notices go back in the response."""

    def __init__(
        self,
        venue_store: VenueStore = Depends(get_venue_store),
        blockout_store: BlockoutStore = Depends(get_blockout_store),
        actor_id: Optional[str] = Depends(get_current_actor_id),
        cache: RedisCache = Depends(get_availability_cache),
        today: str = Depends(get_today),
    ):
        self.notifier = CollectingNotifier()
        self.cache = cache
        self.controller = AvailabilityController(
            venue_store,
            blockout_store,
            self.notifier,
            actor_id=actor_id,
            cache=cache,
            today=lambda: today,
        )

    def respond(self, result: BulkResult) -> BulkOperationResponse:
        return BulkOperationResponse(
            result=result,
            notices=self.notifier.drain(),
            days=self.controller.days,
        )


# ── Reads ─────────────────────────────────────────────────────────────────────

@router.get("", response_model=AvailabilityResponse)
async def get_availability(
    venue_id: str,
    start: Optional[str] = Query(default=None, pattern=_DATE),
    end: Optional[str] = Query(default=None, pattern=_DATE),
    ctx: _Ctx = Depends(),
):
    if not start or not end:
        start, end = ctx.controller.default_window()
    key = availability_key(venue_id, start, end)
    cached = await ctx.cache.get(key)
    if cached is not None:
        return AvailabilityResponse.model_validate(cached)

    await ctx.controller.load(venue_id, start, end)
    response = ctx.controller.response()
    await ctx.cache.set(key, response.model_dump(mode="json"))
    return response


@router.get("/{date}/hours", response_model=HourSlotsResponse)
async def get_hour_slots(
    venue_id: str,
    date: str = Path(pattern=_DATE),
    ctx: _Ctx = Depends(),
):
    await ctx.controller.load(venue_id, date, date)
    day = ctx.controller.day(date)
    return HourSlotsResponse(
        venue_id=venue_id,
        date=date,
        status=day.status if day else None,
        slots=ctx.controller.hour_slots(date),
    )


# ── Bulk date operations ──────────────────────────────────────────────────────

@router.post("/block-dates", response_model=BulkOperationResponse)
async def block_dates(venue_id: str, body: BulkDatesRequest, ctx: _Ctx = Depends()):
    await ctx.controller.load(venue_id, min(body.dates), max(body.dates))
    result = await ctx.controller.block_dates(body.dates, body.reason)
    return ctx.respond(result)


@router.post("/unblock-dates", response_model=BulkOperationResponse)
async def unblock_dates(venue_id: str, body: BulkDatesRequest, ctx: _Ctx = Depends()):
    await ctx.controller.load(venue_id, min(body.dates), max(body.dates))
    result = await ctx.controller.unblock_dates(body.dates)
    return ctx.respond(result)


@router.post("/toggle-dates", response_model=BulkOperationResponse)
async def toggle_dates(venue_id: str, body: BulkDatesRequest, ctx: _Ctx = Depends()):
    # the loaded grid decides which dates count as blocked
    await ctx.controller.load(venue_id, min(body.dates), max(body.dates))
    result = await ctx.controller.toggle_dates(body.dates, body.reason)
    return ctx.respond(result)


# ── Bulk hour operations ──────────────────────────────────────────────────────

@router.post("/block-hours", response_model=BulkOperationResponse)
async def block_hours(venue_id: str, body: BulkHoursRequest, ctx: _Ctx = Depends()):
    dates = [dt[:10] for dt in body.datetimes]
    await ctx.controller.load(venue_id, min(dates), max(dates))
    result = await ctx.controller.block_hours(body.datetimes, body.reason)
    return ctx.respond(result)


@router.post("/unblock-hours", response_model=BulkOperationResponse)
async def unblock_hours(venue_id: str, body: UnblockHoursRequest, ctx: _Ctx = Depends()):
    dates = [body.date] + [dt[:10] for dt in body.datetimes]
    await ctx.controller.load(venue_id, min(dates), max(dates))
    if not body.datetimes:
        # only reachable with confirm_entire_day=true
        result = await ctx.controller.unblock_entire_day(body.date)
    else:
        result = await ctx.controller.unblock_hours(body.date, body.datetimes)
    return ctx.respond(result)


@router.delete("/days/{date}", response_model=BulkOperationResponse)
async def clear_entire_day(
    venue_id: str,
    date: str = Path(pattern=_DATE),
    ctx: _Ctx = Depends(),
):
    await ctx.controller.load(venue_id, date, date)
    result = await ctx.controller.unblock_entire_day(date)
    return ctx.respond(result)


# ── Presets ───────────────────────────────────────────────────────────────────

@router.post("/quick-block/{action}", response_model=BulkOperationResponse)
async def quick_block(
    venue_id: str,
    action: QuickAction,
    selected_date: Optional[str] = Query(default=None, pattern=_DATE),
    ctx: _Ctx = Depends(),
):
    await ctx.controller.load(venue_id)
    result = await ctx.controller.quick_block(action, selected_date)
    return ctx.respond(result)
