from datetime import date
from typing import Optional

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from venue_availability.core.security import decode_token
from venue_availability.db.session import get_db
from venue_availability.services.blockout_store import BlockoutStore
from venue_availability.services.cache import RedisCache, availability_cache
from venue_availability.services.venue_store import VenueStore

# auto_error=False: a missing token is the engine's Unauthenticated, not a 403
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login", auto_error=False)


async def get_current_actor_id(token: Optional[str] = Depends(oauth2_scheme)) -> Optional[str]:
    """Identity collaborator: the actor id carried in the bearer token, or None."""
    if not token:
        return None
    data = decode_token(token)
    if not data or data.get("type") != "access":
        return None
    subject = data.get("sub")
    return str(subject) if subject else None


async def get_blockout_store(db: AsyncSession = Depends(get_db)) -> BlockoutStore:
    return BlockoutStore(db)


async def get_venue_store(db: AsyncSession = Depends(get_db)) -> VenueStore:
    return VenueStore(db)


def get_availability_cache() -> RedisCache:
    return availability_cache


def get_today() -> str:
    return date.today().isoformat()
