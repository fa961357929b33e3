from __future__ import annotations

import asyncio
import logging

from mcaptracker.config.settings import settings
from mcaptracker.providers import coingecko
from mcaptracker.state import TrackerState

logger = logging.getLogger(__name__)


async def refresh_sol_price(state: TrackerState) -> bool:
    price = await asyncio.to_thread(coingecko.fetch_sol_price)
    if price is None:
        # Keep serving the previous quote until the next tick.
        return False
    state.sol_price = price
    logger.info("SOL price: %s", price)
    return True


async def run_sol_price_poller(state: TrackerState, interval: float | None = None) -> None:
    interval = settings.intervals.sol_price_seconds if interval is None else interval
    while True:
        try:
            await refresh_sol_price(state)
        except Exception:
            logger.exception("Unexpected SOL price poller error")
        await asyncio.sleep(interval)
