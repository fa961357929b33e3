from __future__ import annotations

import enum
import time
from dataclasses import dataclass, field

from mcaptracker.schemas.valuation import McapSnapshot

NO_DATA_ERROR = "No data yet"


def now_ms() -> int:
    return int(time.time() * 1000)


class StreamState(str, enum.Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    SUBSCRIBED = "subscribed"
    DISABLED = "disabled"


@dataclass
class TrackerState:
    """Process-wide values shared by the pollers, the stream listener and the API.

    Every component receives the same instance. All mutation happens on the
    event loop and never spans an ``await``.
    """

    mint: str
    sol_price: float
    last_valid_mcap: float = 0.0
    last_stream_update: int = field(default_factory=now_ms)
    stream_state: StreamState = StreamState.DISCONNECTED
    snapshot: McapSnapshot | None = None

    def __post_init__(self) -> None:
        if self.snapshot is None:
            self.snapshot = McapSnapshot(
                mcap=0.0,
                sol_price=self.sol_price,
                timestamp=now_ms(),
                error=NO_DATA_ERROR,
            )

    def record_stream_mcap(self, value: float, timestamp: int) -> None:
        self.last_valid_mcap = value
        self.last_stream_update = timestamp

    def record_rest_mcap(self, value: float) -> None:
        # REST values never count as stream activity.
        self.last_valid_mcap = value
