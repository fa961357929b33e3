from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class McapSnapshot(BaseModel):
    """Payload served by ``GET /api/mcap`` and held in the in-process cache."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    mcap: float = 0.0
    sol_price: float = Field(default=0.0, alias="solPrice")
    timestamp: int
    error: str = ""


class ErrorResponse(BaseModel):
    error: str
