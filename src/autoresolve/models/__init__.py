"""Canonical schema (Pydantic) - Market, EventResult, Outcome, RunReport."""

from autoresolve.models.market import Market, OracleType
from autoresolve.models.report import DispatchFailure, MarketNote, Outcome, Resolution, RunReport
from autoresolve.models.result import EventResult, EventStatus

__all__ = [
    "Market",
    "OracleType",
    "EventResult",
    "EventStatus",
    "Outcome",
    "Resolution",
    "DispatchFailure",
    "MarketNote",
    "RunReport",
]
