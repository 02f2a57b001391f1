import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse

from venue_availability.core.config import settings
from venue_availability.core.errors import AvailabilityError
from venue_availability.db.session import dispose_engine
from venue_availability.core.deps import get_availability_cache
from venue_availability.services.cache import RedisCache, close_pool
from venue_availability.api.v1.availability import router as availability_router
from venue_availability.api.v1.blockouts import router as blockouts_router
from venue_availability.api.v1.selection import router as selection_router

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting venue availability API (%s)", settings.APP_ENV)
    yield
    await close_pool()
    await dispose_engine()


app = FastAPI(
    title="Venue Availability API",
    version="0.1.0",
    description="Availability grid and blockout management for venue owners.",
    lifespan=lifespan,
)


@app.exception_handler(AvailabilityError)
async def availability_error_handler(request: Request, exc: AvailabilityError):
    if exc.status_code >= 500:
        logger.error("%s %s -> %s: %s", request.method, request.url.path, type(exc).__name__, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "detail":    exc.message,
            "error":     type(exc).__name__,
            "retryable": exc.retryable,
            "venue_id":  exc.venue_id,
        },
    )


app.include_router(availability_router, prefix="/api/v1")
app.include_router(blockouts_router,    prefix="/api/v1")
app.include_router(selection_router,    prefix="/api/v1")


@app.get("/health", tags=["meta"])
async def health_check(cache: RedisCache = Depends(get_availability_cache)):
    return {"status": "ok", "version": app.version, "cache": await cache.stats()}
