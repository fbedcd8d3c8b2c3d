"""Esports result feeds - live matches and finished results (global and per game)."""

from __future__ import annotations

from typing import Any

import structlog

from autoresolve.ingestion.base import ResultFeedClient, ResultMap, extract_rows, to_score
from autoresolve.models import EventResult, EventStatus, OracleType

log = structlog.get_logger(__name__)

LIVE_PATH = "/api/esports/live"
RESULTS_PATH = "/api/esports/results"

DEFAULT_GAME = "csgo"

# (substring in market description, game key), first hit wins
_GAME_HINTS = [
    ("dota", "dota2"),
    ("league", "lol"),
    ("lol", "lol"),
    ("valorant", "valorant"),
    ("cs2", "csgo"),
    ("counter-strike", "csgo"),
    ("csgo", "csgo"),
    ("starcraft", "starcraft-2"),
]


def guess_game(description: str | None) -> str:
    """Game key for per-event lookups, inferred from free-text market description."""
    desc = (description or "").lower()
    for needle, game in _GAME_HINTS:
        if needle in desc:
            return game
    return DEFAULT_GAME


def _name(value: Any) -> str:
    if isinstance(value, dict):
        value = value.get("name") or value.get("title") or value.get("acronym")
    return str(value).strip() if value is not None else ""


def parse_esports_event(
    row: dict[str, Any],
    *,
    default_status: EventStatus,
    source: str = "",
) -> EventResult | None:
    """Convert one esports feed row to EventResult. Returns None when the row has no id."""
    event_id = row.get("id") or row.get("event_id") or row.get("match_id")
    if event_id is None or str(event_id) == "":
        return None
    team_a, team_b = _name(row.get("team_a")), _name(row.get("team_b"))
    participants = row.get("participants") or row.get("teams")
    if (not team_a or not team_b) and isinstance(participants, list) and len(participants) >= 2:
        team_a, team_b = _name(participants[0]), _name(participants[1])
    status = EventStatus.parse(row["status"]) if row.get("status") else default_status
    score_a, score_b = to_score(row.get("score_a")), to_score(row.get("score_b"))
    return EventResult(
        event_id=str(event_id),
        participant_a=team_a,
        participant_b=team_b,
        winner=_name(row.get("winner")) or None,
        status=status,
        scores=(score_a, score_b) if score_a is not None and score_b is not None else None,
        source=source,
    )


def parse_esports_payload(data: Any, *, default_status: EventStatus, source: str = "") -> ResultMap:
    results: ResultMap = {}
    for row in extract_rows(data, "events", "results", "matches", "data"):
        try:
            event = parse_esports_event(row, default_status=default_status, source=source)
        except (TypeError, ValueError) as e:
            log.debug("skip_event", feed=source, event_id=row.get("id"), error=str(e))
            continue
        if event is not None:
            results[event.event_id] = event
    return results


class EsportsLiveFeed(ResultFeedClient):
    """In-progress matches. Coarse: anything it reports is overridden by results feeds."""

    oracle_type = OracleType.ESPORTS
    priority = 0

    def __init__(self, client, base_url: str, *, timeout: float = 10.0) -> None:
        super().__init__(client, timeout=timeout)
        self.url = base_url.rstrip("/") + LIVE_PATH
        self.name = "esports_live"

    async def fetch_results(self) -> ResultMap:
        data = await self.get_json(self.url)
        return parse_esports_payload(data, default_status=EventStatus.LIVE, source=self.name)


class EsportsResultsFeed(ResultFeedClient):
    """Concluded matches, globally or for one game key. Per-game instances outrank the global one."""

    oracle_type = OracleType.ESPORTS

    def __init__(self, client, base_url: str, *, game: str | None = None, timeout: float = 10.0) -> None:
        super().__init__(client, timeout=timeout)
        self.url = base_url.rstrip("/") + RESULTS_PATH
        self.game = game
        self.name = f"esports_results:{game}" if game else "esports_results"
        self.priority = 20 if game else 10

    async def fetch_results(self) -> ResultMap:
        params = {"game": self.game} if self.game else None
        data = await self.get_json(self.url, params=params)
        return parse_esports_payload(data, default_status=EventStatus.FINISHED, source=self.name)
