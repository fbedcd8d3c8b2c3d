"""Market, OracleType - the engine's read-only view of the market store."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class OracleType(str, Enum):
    """Result-feed category a market depends on. Only these two are processed."""

    SPORTS = "sports"
    ESPORTS = "esports"


class Market(BaseModel):
    """Binary prediction market tied to one named participant of one event."""

    market_id: str  # {oracle_type}_{event_id}_{participant_slug}
    oracle_type: OracleType
    resolution_time: int  # unix seconds
    resolved: bool = False
    yes_pool: float = Field(0.0, ge=0)
    no_pool: float = Field(0.0, ge=0)
    title: str = ""
    description: str = ""
    oracle_condition: str | None = None

    @property
    def has_stake(self) -> bool:
        return self.yes_pool > 0 or self.no_pool > 0

    def is_overdue(self, now: int) -> bool:
        return not self.resolved and self.resolution_time < now
