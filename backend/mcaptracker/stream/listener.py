from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Callable, Mapping
from typing import Any
from urllib.parse import urlencode

import websockets

from mcaptracker.config.settings import settings
from mcaptracker.state import StreamState, TrackerState, now_ms
from mcaptracker.valuation.extraction import estimate_trade_market_cap
from mcaptracker.valuation.store import ValuationStore

logger = logging.getLogger(__name__)


def _decode_event(raw: str | bytes) -> Mapping[str, Any]:
    try:
        event = json.loads(raw)
    except (json.JSONDecodeError, TypeError, ValueError):
        logger.warning("Ignoring undecodable trade message: %r", raw)
        return {}
    if not isinstance(event, dict):
        return {}
    return event


class TradeStreamListener:
    """Subscribes to token trades and turns each event into a stored market cap.

    ``run`` cycles DISCONNECTED -> CONNECTING -> SUBSCRIBED and back to
    DISCONNECTED on error or close, reconnecting after a fixed delay for as
    long as the task lives. Cancelling the task is the shutdown path.
    """

    def __init__(
        self,
        state: TrackerState,
        store: ValuationStore,
        api_key: str | None = None,
        stream_url: str | None = None,
        reconnect_delay: float | None = None,
        clock: Callable[[], int] = now_ms,
        connect: Callable[..., Any] = websockets.connect,
    ) -> None:
        self._state = state
        self._store = store
        self._api_key = api_key
        self._stream_url = stream_url or settings.endpoints.stream_url
        self._reconnect_delay = (
            settings.intervals.reconnect_delay_seconds
            if reconnect_delay is None
            else reconnect_delay
        )
        self._clock = clock
        self._connect = connect

    @property
    def state(self) -> StreamState:
        return self._state.stream_state

    def _set_state(self, new_state: StreamState) -> None:
        if self._state.stream_state is not new_state:
            logger.debug("Trade stream %s -> %s", self._state.stream_state.value, new_state.value)
        self._state.stream_state = new_state

    def build_url(self) -> str:
        return f"{self._stream_url}?{urlencode({'api-key': self._api_key or ''})}"

    def subscription_message(self) -> str:
        return json.dumps({"method": "subscribeTokenTrade", "keys": [self._state.mint]})

    async def handle_message(self, raw: str | bytes) -> float:
        """Store the event's market cap, or the last valid one when it has none."""
        event = _decode_event(raw)
        estimate = estimate_trade_market_cap(event, self._state.sol_price)
        now = self._clock()
        if estimate is not None:
            self._state.record_stream_mcap(estimate, now)
        value = estimate if estimate is not None else self._state.last_valid_mcap
        logger.debug(
            "Storing MCAP %s (%s)", value, "trade" if estimate is not None else "last valid"
        )
        await self._store.upsert(self._state.mint, value, self._state.sol_price, now)
        return value

    async def connect_once(self) -> None:
        self._set_state(StreamState.CONNECTING)
        async with self._connect(self.build_url()) as ws:
            await ws.send(self.subscription_message())
            self._set_state(StreamState.SUBSCRIBED)
            logger.info("Trade stream connected for %s", self._state.mint)
            async for raw in ws:
                await self.handle_message(raw)

    async def run(self) -> None:
        if not self._api_key:
            logger.error("PUMP_API_KEY is not set; trade stream disabled")
            self._set_state(StreamState.DISABLED)
            return

        while True:
            try:
                await self.connect_once()
                logger.info("Trade stream closed. Reconnecting in %ss", self._reconnect_delay)
            except asyncio.CancelledError:
                self._set_state(StreamState.DISCONNECTED)
                raise
            except (websockets.WebSocketException, OSError, asyncio.TimeoutError) as exc:
                logger.error(
                    "Trade stream error: %s. Reconnecting in %ss", exc, self._reconnect_delay
                )
            except Exception:
                logger.exception(
                    "Unexpected trade stream error. Reconnecting in %ss", self._reconnect_delay
                )
            self._set_state(StreamState.DISCONNECTED)
            await asyncio.sleep(self._reconnect_delay)
