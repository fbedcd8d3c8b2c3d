"""Market identity codec and participant canonicalization."""

from autoresolve.identity.codec import (
    MarketIdentity,
    MatchKind,
    match_kind,
    normalize,
    parse_market_id,
)

__all__ = [
    "MarketIdentity",
    "MatchKind",
    "match_kind",
    "normalize",
    "parse_market_id",
]
