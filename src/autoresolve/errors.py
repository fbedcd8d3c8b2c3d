"""Exception hierarchy. Only MarketSourceError aborts a run."""

from __future__ import annotations


class AutoResolveError(Exception):
    """Base for all engine errors."""


class MarketSourceError(AutoResolveError):
    """Market list could not be fetched or parsed. Fatal for the run."""


class FeedError(AutoResolveError):
    """A result feed returned something unusable. Contained by the feed client."""


class MarketIdParseError(AutoResolveError, ValueError):
    """Market id does not have the {oracle_type}_{event_id}_{participant} shape."""

    def __init__(self, market_id: str, reason: str) -> None:
        super().__init__(f"{reason}: {market_id!r}")
        self.market_id = market_id
        self.reason = reason
