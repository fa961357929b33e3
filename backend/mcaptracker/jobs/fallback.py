from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from mcaptracker.config.settings import settings
from mcaptracker.providers import pump_rest
from mcaptracker.state import TrackerState, now_ms
from mcaptracker.valuation.store import ValuationStore

logger = logging.getLogger(__name__)


async def check_stream_silence(
    state: TrackerState,
    store: ValuationStore,
    clock: Callable[[], int] = now_ms,
    silence_seconds: float | None = None,
) -> bool:
    """Fetch the market cap over REST when the trade stream has gone quiet.

    Returns ``True`` only when a positive value was fetched and stored.
    Failures leave the state untouched.
    """
    silence_seconds = (
        settings.intervals.stream_silence_seconds if silence_seconds is None else silence_seconds
    )
    if clock() - state.last_stream_update <= silence_seconds * 1000:
        return False

    logger.info(
        "No stream updates for %ss. Fetching MCAP from REST API.", silence_seconds
    )
    market_cap = await asyncio.to_thread(pump_rest.fetch_token_market_cap, state.mint)
    if market_cap <= 0:
        return False

    state.record_rest_mcap(market_cap)
    stored = await store.upsert(
        state.mint, market_cap, state.sol_price, clock(), error=""
    )
    if stored:
        logger.info("Stored MCAP from REST: %s", market_cap)
    return stored


async def run_fallback_supervisor(
    state: TrackerState, store: ValuationStore, interval: float | None = None
) -> None:
    interval = settings.intervals.fallback_check_seconds if interval is None else interval
    while True:
        await asyncio.sleep(interval)
        try:
            await check_stream_silence(state, store)
        except Exception:
            logger.exception("Unexpected REST fallback error")
