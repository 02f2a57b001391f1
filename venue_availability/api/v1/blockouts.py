from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from venue_availability.core.deps import (
    get_availability_cache,
    get_blockout_store,
    get_current_actor_id,
    get_today,
    get_venue_store,
)
from venue_availability.models.venue_blockout import BlockType
from venue_availability.schemas.blockout import BlockoutCreate, BlockoutRead, BlockoutStats, BlockoutUpdate
from venue_availability.services.blockout_manager import BlockoutManager
from venue_availability.services.blockout_store import BlockoutStore
from venue_availability.services.cache import RedisCache
from venue_availability.services.notifier import CollectingNotifier
from venue_availability.services.venue_store import VenueStore

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/venues/{venue_id}/blockouts", tags=["blockouts"])

_DATE = r"^\d{4}-\d{2}-\d{2}$"


def _manager(
    venue_id: str,
    store: BlockoutStore = Depends(get_blockout_store),
    actor_id: Optional[str] = Depends(get_current_actor_id),
) -> BlockoutManager:
    return BlockoutManager(store, venue_id, actor_id, CollectingNotifier())


# ── Reads ─────────────────────────────────────────────────────────────────────

@router.get("", response_model=List[BlockoutRead])
async def list_blockouts(
    include_past: bool = False,
    include_future: bool = True,
    block_type: Optional[BlockType] = None,
    on_date: Optional[str] = Query(default=None, alias="date", pattern=_DATE),
    start: Optional[str] = Query(default=None, pattern=_DATE),
    end: Optional[str] = Query(default=None, pattern=_DATE),
    today: str = Depends(get_today),
    manager: BlockoutManager = Depends(_manager),
):
    return await manager.list_blockouts(
        today,
        include_past=include_past,
        include_future=include_future,
        block_type=block_type,
        on_date=on_date,
        start=start,
        end=end,
    )


@router.get("/stats", response_model=BlockoutStats)
async def blockout_stats(
    today: str = Depends(get_today),
    manager: BlockoutManager = Depends(_manager),
):
    return await manager.stats(today)


@router.get("/{blockout_id}", response_model=BlockoutRead)
async def get_blockout(blockout_id: str, manager: BlockoutManager = Depends(_manager)):
    return await manager.get(blockout_id)


# ── Writes ────────────────────────────────────────────────────────────────────

@router.post("", response_model=BlockoutRead, status_code=status.HTTP_201_CREATED)
async def create_blockout(
    venue_id: str,
    body: BlockoutCreate,
    manager: BlockoutManager = Depends(_manager),
    venues: VenueStore = Depends(get_venue_store),
    cache: RedisCache = Depends(get_availability_cache),
):
    await venues.get_profile(venue_id)
    created = await manager.create(body)
    await cache.delete_prefix(f"{venue_id}:")
    return created


@router.patch("/{blockout_id}", response_model=BlockoutRead)
async def update_blockout(
    venue_id: str,
    blockout_id: str,
    body: BlockoutUpdate,
    manager: BlockoutManager = Depends(_manager),
    cache: RedisCache = Depends(get_availability_cache),
):
    updated = await manager.update(blockout_id, body)
    await cache.delete_prefix(f"{venue_id}:")
    return updated


@router.delete("/{blockout_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_blockout(
    venue_id: str,
    blockout_id: str,
    manager: BlockoutManager = Depends(_manager),
    cache: RedisCache = Depends(get_availability_cache),
):
    await manager.delete(blockout_id)
    await cache.delete_prefix(f"{venue_id}:")
