from __future__ import annotations

import asyncio
import contextlib
import logging

from mcaptracker.config.settings import settings
from mcaptracker.jobs.fallback import run_fallback_supervisor
from mcaptracker.jobs.sol_price import run_sol_price_poller
from mcaptracker.state import TrackerState
from mcaptracker.stream.listener import TradeStreamListener
from mcaptracker.valuation.store import ValuationStore

logger = logging.getLogger(__name__)


class BackgroundJobs:
    """Owns the long-running tasks: price poller, trade stream, REST fallback."""

    def __init__(
        self,
        state: TrackerState,
        store: ValuationStore,
        listener: TradeStreamListener | None = None,
    ) -> None:
        self.state = state
        self.store = store
        self.listener = listener or TradeStreamListener(
            state, store, api_key=settings.pump_api_key
        )
        self._tasks: list[asyncio.Task] = []

    @property
    def tasks(self) -> list[asyncio.Task]:
        return list(self._tasks)

    def start(self) -> None:
        if self._tasks:
            return
        self._tasks = [
            asyncio.create_task(run_sol_price_poller(self.state), name="sol-price"),
            asyncio.create_task(self.listener.run(), name="trade-stream"),
            asyncio.create_task(
                run_fallback_supervisor(self.state, self.store), name="rest-fallback"
            ),
        ]
        logger.info("Started %d background jobs", len(self._tasks))

    async def stop(self) -> None:
        tasks, self._tasks = self._tasks, []
        for task in tasks:
            task.cancel()
        for task in tasks:
            with contextlib.suppress(asyncio.CancelledError):
                await task
        logger.info("Stopped background jobs")
