from __future__ import annotations

from mcaptracker.schemas.valuation import McapSnapshot
from mcaptracker.state import TrackerState

ZERO_MCAP_ERROR = "No valid trades or token migrated. Using last valid MCAP."


def annotate(mcap: float) -> str:
    return ZERO_MCAP_ERROR if mcap == 0 else ""


def build_snapshot(
    mcap: float, sol_price: float, timestamp: int, error: str | None = None
) -> McapSnapshot:
    return McapSnapshot(
        mcap=mcap,
        sol_price=sol_price,
        timestamp=timestamp,
        error=annotate(mcap) if error is None else error,
    )


def get_snapshot(
    state: TrackerState, now: int, freshness_seconds: float
) -> McapSnapshot | None:
    """Return the cached snapshot if it is younger than the freshness window."""
    snapshot = state.snapshot
    if snapshot is None:
        return None
    if now - snapshot.timestamp < freshness_seconds * 1000:
        return snapshot
    return None


def set_snapshot(state: TrackerState, snapshot: McapSnapshot) -> None:
    state.snapshot = snapshot
