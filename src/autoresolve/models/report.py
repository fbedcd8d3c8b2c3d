"""Outcome, RunReport - the decision vocabulary and the per-run summary."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class Outcome(str, Enum):
    """Binary outcome plus the inconclusive state. Only YES/NO are dispatched."""

    YES = "YES"
    NO = "NO"
    UNKNOWN = "UNKNOWN"

    @property
    def is_decisive(self) -> bool:
        return self is not Outcome.UNKNOWN


class Resolution(BaseModel):
    market_id: str
    outcome: Outcome


class DispatchFailure(BaseModel):
    market_id: str
    outcome: Outcome
    reason: str


class MarketNote(BaseModel):
    """A market that ended the run unparseable or undecided, with why."""

    market_id: str
    reason: str


class RunReport(BaseModel):
    """Structured summary of one invocation. The only output artifact of a run."""

    run_id: str = ""
    started_at: int | None = None  # unix seconds
    finished_at: int | None = None
    overdue_total: int = 0
    skipped_zero_pool: int = 0
    unparseable: int = 0
    no_result_found: int = 0
    resolved: int = 0
    failed: int = 0
    resolutions: list[Resolution] = Field(default_factory=list)
    failures: list[DispatchFailure] = Field(default_factory=list)
    unparseable_markets: list[MarketNote] = Field(default_factory=list)
    undecided: list[MarketNote] = Field(default_factory=list)
    # feed name -> event count, None when the feed failed
    feeds: dict[str, int | None] = Field(default_factory=dict)

    @property
    def eligible(self) -> int:
        return self.overdue_total - self.skipped_zero_pool

    @property
    def is_balanced(self) -> bool:
        """Every eligible market landed in exactly one terminal bucket."""
        return self.eligible == self.unparseable + self.no_result_found + self.resolved + self.failed

    def record_unparseable(self, market_id: str, reason: str) -> None:
        self.unparseable += 1
        self.unparseable_markets.append(MarketNote(market_id=market_id, reason=reason))

    def record_undecided(self, market_id: str, reason: str) -> None:
        self.no_result_found += 1
        self.undecided.append(MarketNote(market_id=market_id, reason=reason))

    def record_resolved(self, market_id: str, outcome: Outcome) -> None:
        self.resolved += 1
        self.resolutions.append(Resolution(market_id=market_id, outcome=outcome))

    def record_failed(self, market_id: str, outcome: Outcome, reason: str) -> None:
        self.failed += 1
        self.failures.append(DispatchFailure(market_id=market_id, outcome=outcome, reason=reason))

    def summary(self) -> dict[str, int]:
        return {
            "overdue_total": self.overdue_total,
            "skipped_zero_pool": self.skipped_zero_pool,
            "unparseable": self.unparseable,
            "no_result_found": self.no_result_found,
            "resolved": self.resolved,
            "failed": self.failed,
        }
