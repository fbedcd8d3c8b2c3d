"""Composite market id parsing and participant name canonicalization.

Market ids look like ``{oracle_type}_{event_id}_{participant_slug}``. The
participant slug was produced by slugifying a display name with the same
delimiter, so everything after the event id belongs to the slug.

Participant names from different feeds disagree on casing, punctuation and
suffixes; ``normalize`` maps them onto a comparison key and ``match_kind``
compares two keys exactly first, then by containment in either direction.
"""

from __future__ import annotations

import re
from enum import Enum
from functools import lru_cache
from typing import NamedTuple

from autoresolve.errors import MarketIdParseError
from autoresolve.models.market import OracleType

DELIMITER = "_"

_WHITESPACE = re.compile(r"\s+")
_DISALLOWED = re.compile(r"[^a-z0-9_]")


class MarketIdentity(NamedTuple):
    oracle_type: OracleType
    event_id: str
    participant_slug: str


class MatchKind(str, Enum):
    EXACT = "exact"
    CONTAINS = "contains"
    NONE = "none"


def parse_market_id(market_id: str) -> MarketIdentity:
    """Split a market id into oracle type, event id and participant slug.

    Raises MarketIdParseError when fewer than three non-empty parts are present
    or the prefix is not a known oracle type.
    """
    parts = str(market_id or "").split(DELIMITER)
    if len(parts) < 3:
        raise MarketIdParseError(market_id, "expected at least 3 segments")
    prefix, event_id, slug = parts[0], parts[1], DELIMITER.join(parts[2:])
    try:
        oracle_type = OracleType(prefix.lower())
    except ValueError:
        raise MarketIdParseError(market_id, f"unknown oracle type {prefix!r}") from None
    if not event_id:
        raise MarketIdParseError(market_id, "empty event id")
    if not slug.strip(DELIMITER):
        raise MarketIdParseError(market_id, "empty participant")
    return MarketIdentity(oracle_type, event_id, slug)


@lru_cache(maxsize=2048)
def _normalize(value: str) -> str:
    key = _WHITESPACE.sub(DELIMITER, value.lower().strip())
    return _DISALLOWED.sub("", key)


def normalize(name: object) -> str:
    """Canonical participant key: lowercase, whitespace -> '_', only [a-z0-9_] kept.

    Total over any input; ``normalize(normalize(x)) == normalize(x)``.
    """
    if name is None:
        return ""
    return _normalize(name if isinstance(name, str) else str(name))


def match_kind(a: object, b: object) -> MatchKind:
    """Compare two display names by canonical key. Empty keys never match."""
    ka, kb = normalize(a), normalize(b)
    if not ka or not kb:
        return MatchKind.NONE
    if ka == kb:
        return MatchKind.EXACT
    if ka in kb or kb in ka:
        return MatchKind.CONTAINS
    return MatchKind.NONE
