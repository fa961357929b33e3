from __future__ import annotations

import logging
from collections.abc import Callable

from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from mcaptracker.cache import build_snapshot, set_snapshot
from mcaptracker.db.models import McapRecord
from mcaptracker.schemas.valuation import McapSnapshot
from mcaptracker.state import NO_DATA_ERROR, TrackerState, now_ms

logger = logging.getLogger(__name__)

# asyncpg connection failures surface as OSError without SQLAlchemy wrapping.
STORE_ERRORS = (SQLAlchemyError, OSError)


class ValuationStore:
    """Single-row market-cap record with the in-process snapshot kept in step.

    ``upsert`` is the only writer. A successful write refreshes
    ``state.snapshot``. A failed write is logged, and a write rejected as older
    than the stored row is skipped; both leave the previous snapshot in place.
    """

    def __init__(
        self,
        state: TrackerState,
        session_factory: Callable[[], AsyncSession],
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._state = state
        self._session_factory = session_factory
        self._clock = clock

    async def upsert(
        self,
        mint: str,
        market_cap: float,
        sol_price: float,
        timestamp: int,
        error: str | None = None,
    ) -> bool:
        value = max(float(market_cap), 0.0)
        stmt = insert(McapRecord).values(
            mint=mint,
            value=value,
            sol_price=sol_price,
            timestamp=timestamp,
        )
        # Last write wins by timestamp; an older write never replaces a newer one.
        stmt = stmt.on_conflict_do_update(
            index_elements=["mint"],
            set_={
                "value": stmt.excluded.value,
                "sol_price": stmt.excluded.sol_price,
                "timestamp": stmt.excluded.timestamp,
            },
            where=McapRecord.timestamp <= stmt.excluded.timestamp,
        ).returning(McapRecord.mint)
        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                written = result.scalar_one_or_none()
                await session.commit()
        except STORE_ERRORS:
            logger.exception("Failed to store MCAP %s for %s", value, mint)
            return False

        if written is None:
            logger.debug("Skipped MCAP %s for %s: a newer value is stored", value, mint)
            return False

        set_snapshot(self._state, build_snapshot(value, sol_price, timestamp, error))
        return True

    async def read(self, mint: str) -> McapSnapshot:
        """Return the stored valuation, or a "no data yet" snapshot.

        Raises one of ``STORE_ERRORS`` when the store is unavailable.
        """
        async with self._session_factory() as session:
            record = await session.get(McapRecord, mint)

        if record is None:
            return build_snapshot(
                self._state.last_valid_mcap,
                self._state.sol_price,
                self._clock(),
                error=NO_DATA_ERROR,
            )
        return build_snapshot(record.value, record.sol_price, record.timestamp)
