import logging

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from mcaptracker.cache import get_snapshot, set_snapshot
from mcaptracker.config.settings import settings
from mcaptracker.schemas.valuation import ErrorResponse, McapSnapshot
from mcaptracker.state import TrackerState, now_ms
from mcaptracker.valuation.store import STORE_ERRORS, ValuationStore

logger = logging.getLogger(__name__)

router = APIRouter()


def get_tracker(request: Request) -> TrackerState:
    return request.app.state.tracker


def get_store(request: Request) -> ValuationStore:
    return request.app.state.store


@router.get("/health")
def health(tracker: TrackerState = Depends(get_tracker)) -> dict:
    return {"status": "ok", "stream": tracker.stream_state.value}


@router.get(
    "/api/mcap",
    response_model=McapSnapshot,
    responses={status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse}},
)
async def read_mcap(
    tracker: TrackerState = Depends(get_tracker),
    store: ValuationStore = Depends(get_store),
) -> McapSnapshot | JSONResponse:
    cached = get_snapshot(tracker, now_ms(), settings.intervals.cache_freshness_seconds)
    if cached is not None:
        logger.debug("Serving cached MCAP: %s", cached)
        return cached

    try:
        snapshot = await store.read(tracker.mint)
    except STORE_ERRORS:
        logger.exception("DB error while reading MCAP")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=ErrorResponse(error="Database error").model_dump(),
        )

    set_snapshot(tracker, snapshot)
    logger.debug("Serving DB MCAP: %s", snapshot)
    return snapshot
