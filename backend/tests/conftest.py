from __future__ import annotations

import pytest
from sqlalchemy.dialects import postgresql
from sqlalchemy.exc import OperationalError

from mcaptracker.state import TrackerState
from mcaptracker.valuation.store import ValuationStore

MINT = "6PNDuznRwYkr7m5r8jBhJ9cf53EYu9nx8g7yhsv8vcuu"


def db_unavailable(statement: str) -> OperationalError:
    return OperationalError(statement, None, Exception("database unavailable"))


class FakeResult:
    def __init__(self, value) -> None:
        self.value = value

    def scalar_one_or_none(self):
        return self.value


class FakeDatabase:
    def __init__(self) -> None:
        self.rows: dict[str, dict] = {}
        self.statements: list = []
        self.write_error: BaseException | None = None
        self.read_error: BaseException | None = None


class FakeSession:
    def __init__(self, db: FakeDatabase) -> None:
        self.db = db
        self.pending: dict | None = None

    async def __aenter__(self) -> "FakeSession":
        return self

    async def __aexit__(self, *exc) -> bool:
        return False

    async def execute(self, stmt) -> FakeResult:
        if self.db.write_error is not None:
            raise self.db.write_error
        self.db.statements.append(stmt)
        row = dict(stmt.compile(dialect=postgresql.dialect()).params)
        existing = self.db.rows.get(row["mint"])
        # Mirrors the ON CONFLICT ... WHERE guard: no row is returned when skipped.
        if existing is not None and existing["timestamp"] > row["timestamp"]:
            return FakeResult(None)
        self.pending = row
        return FakeResult(row["mint"])

    async def commit(self) -> None:
        if self.pending is None:
            return
        row, self.pending = self.pending, None
        self.db.rows[row["mint"]] = row

    async def get(self, model, key):
        if self.db.read_error is not None:
            raise self.db.read_error
        row = self.db.rows.get(key)
        if row is None:
            return None
        return model(**row)


@pytest.fixture
def fake_db() -> FakeDatabase:
    return FakeDatabase()


@pytest.fixture
def tracker() -> TrackerState:
    return TrackerState(mint=MINT, sol_price=150.0, last_stream_update=1_000)


@pytest.fixture
def store(tracker: TrackerState, fake_db: FakeDatabase) -> ValuationStore:
    return ValuationStore(tracker, lambda: FakeSession(fake_db), clock=lambda: 50_000)
