"""Outcome decision - reconcile a market's participant against an event result.

Pure functions only: no I/O and no logging. Callers inspect ``Decision.match``
to audit decisions that relied on containment rather than an exact key match.
"""

from __future__ import annotations

from typing import NamedTuple

from autoresolve.identity import MarketIdentity, MatchKind, match_kind, normalize, parse_market_id
from autoresolve.models import EventResult, Market, OracleType, Outcome


class Decision(NamedTuple):
    outcome: Outcome
    reason: str
    match: MatchKind = MatchKind.NONE

    @property
    def is_ambiguous(self) -> bool:
        return self.outcome.is_decisive and self.match is MatchKind.CONTAINS


def _single_hit(kinds: list[MatchKind]) -> tuple[int, MatchKind] | None:
    """Index of the one side matched, exact hits first. None when no side or both sides match."""
    for wanted in (MatchKind.EXACT, MatchKind.CONTAINS):
        hits = [i for i, kind in enumerate(kinds) if kind is wanted]
        if len(hits) == 1:
            return hits[0], wanted
        if hits:
            return None
    return None


class OutcomeStrategy:
    """Decision table for one oracle type."""

    def __init__(self, oracle_type: OracleType, *, draw_outcome: Outcome = Outcome.NO) -> None:
        self.oracle_type = oracle_type
        self.draw_outcome = draw_outcome

    @staticmethod
    def is_draw(result: EventResult) -> bool:
        return (
            not result.winner
            and result.is_finished
            and result.scores is not None
            and result.scores[0] == result.scores[1]
        )

    @staticmethod
    def winner_of(result: EventResult) -> str | None:
        """Reported winner, or the higher-scoring participant of a finished event."""
        if result.winner:
            return result.winner
        if not result.is_finished or result.scores is None:
            return None
        a, b = result.scores
        if a == b:
            return None
        return (result.participant_a if a > b else result.participant_b) or None

    def decide(self, identity: MarketIdentity, result: EventResult | None) -> Decision:
        if result is None:
            return Decision(Outcome.UNKNOWN, "no_result")
        if not result.winner and not result.is_finished:
            return Decision(Outcome.UNKNOWN, "not_finished")
        if self.is_draw(result):
            return Decision(self.draw_outcome, "draw")
        winner = self.winner_of(result)
        if winner is None:
            return Decision(Outcome.UNKNOWN, "no_winner")

        participant = identity.participant_slug
        to_winner = match_kind(participant, winner)
        if to_winner is MatchKind.EXACT:
            return Decision(Outcome.YES, "won", MatchKind.EXACT)

        sides = (result.participant_a, result.participant_b)
        kinds = [match_kind(participant, side) for side in sides]
        if all(kind is MatchKind.NONE for kind in kinds):
            if to_winner is MatchKind.CONTAINS:
                return Decision(Outcome.YES, "won", MatchKind.CONTAINS)
            return Decision(Outcome.UNKNOWN, "participant_not_in_event")
        placed = _single_hit(kinds)
        if placed is None:
            return Decision(Outcome.UNKNOWN, "ambiguous_participant")
        won = _single_hit([match_kind(side, winner) for side in sides])
        if won is None:
            return Decision(Outcome.UNKNOWN, "winner_not_in_event")

        side, side_kind = placed
        winning_side, winner_kind = won
        exact = side_kind is MatchKind.EXACT and winner_kind is MatchKind.EXACT
        kind = MatchKind.EXACT if exact else MatchKind.CONTAINS
        if side == winning_side:
            return Decision(Outcome.YES, "won", kind)
        return Decision(Outcome.NO, "lost", kind)


STRATEGIES: dict[OracleType, OutcomeStrategy] = {
    OracleType.SPORTS: OutcomeStrategy(OracleType.SPORTS),
    OracleType.ESPORTS: OutcomeStrategy(OracleType.ESPORTS),
}

_unregistered = set(OracleType) - set(STRATEGIES)
if _unregistered:
    raise KeyError(f"no outcome strategy for {sorted(t.value for t in _unregistered)}")


def _identity(market: Market | MarketIdentity | str) -> MarketIdentity:
    if isinstance(market, MarketIdentity):
        return market
    if isinstance(market, Market):
        return parse_market_id(market.market_id)
    return parse_market_id(market)


def evaluate(
    market: Market | MarketIdentity | str,
    result: EventResult | None,
    *,
    alias: str | None = None,
) -> Decision:
    """Full decision with reason and match kind. Raises MarketIdParseError on a malformed id.

    ``alias`` (a Market's ``oracle_condition`` by default) is tried as the
    participant name when the id slug cannot be placed in the event. A
    decision reached through it is always reported as a containment match.
    """
    identity = _identity(market)
    if alias is None and isinstance(market, Market):
        alias = market.oracle_condition
    strategy = STRATEGIES[identity.oracle_type]
    decision = strategy.decide(identity, result)
    alias_key = normalize(alias)
    retry = alias_key and alias_key != normalize(identity.participant_slug)
    if retry and decision.reason == "participant_not_in_event":
        fallback = strategy.decide(identity._replace(participant_slug=alias_key), result)
        if fallback.outcome.is_decisive:
            return fallback._replace(match=MatchKind.CONTAINS)
    return decision


def decide(market: Market | MarketIdentity | str, result: EventResult | None) -> Outcome:
    """YES / NO / UNKNOWN for one market given its event's result (or None)."""
    return evaluate(market, result).outcome
