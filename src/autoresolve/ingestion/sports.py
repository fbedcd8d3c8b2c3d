"""Sports result feeds - platform scoreboard (trailing window) and ESPN league scoreboards."""

from __future__ import annotations

from typing import Any

import structlog

from autoresolve.ingestion.base import ResultFeedClient, ResultMap, extract_rows, to_score
from autoresolve.models import EventResult, EventStatus, OracleType

log = structlog.get_logger(__name__)

SCORES_PATH = "/api/sports/scores"


def _scores_from_list(entries: list[Any], home: str, away: str) -> tuple[float | None, float | None]:
    """Odds-API style [{'name': team, 'score': '3'}, ...] -> (home, away)."""
    by_name = {
        str(e.get("name") or ""): to_score(e.get("score")) for e in entries if isinstance(e, dict)
    }
    return by_name.get(home), by_name.get(away)


def parse_scores_event(row: dict[str, Any], source: str = "") -> EventResult | None:
    """Convert one platform scoreboard row to EventResult. Returns None when the row has no id."""
    event_id = row.get("event_id") or row.get("id")
    if event_id is None or str(event_id) == "":
        return None
    home = str(row.get("home_team") or "").strip()
    away = str(row.get("away_team") or "").strip()
    home_score, away_score = to_score(row.get("home_score")), to_score(row.get("away_score"))
    nested = row.get("scores")
    if home_score is None and away_score is None:
        if isinstance(nested, dict):
            home_score, away_score = to_score(nested.get("home")), to_score(nested.get("away"))
        elif isinstance(nested, list):
            home_score, away_score = _scores_from_list(nested, home, away)
    if row.get("status"):
        status = EventStatus.parse(row["status"])
    elif "completed" in row:
        status = EventStatus.FINISHED if row.get("completed") else EventStatus.LIVE
    else:
        status = EventStatus.UNKNOWN
    return EventResult(
        event_id=str(event_id),
        participant_a=home,
        participant_b=away,
        winner=str(row.get("winner") or "").strip() or None,
        status=status,
        scores=(home_score, away_score) if home_score is not None and away_score is not None else None,
        source=source,
    )


def _espn_team_name(competitor: dict[str, Any]) -> str:
    team = competitor.get("team") if isinstance(competitor.get("team"), dict) else {}
    return str(team.get("displayName") or team.get("name") or team.get("shortDisplayName") or "").strip()


def _espn_status(status: dict[str, Any]) -> EventStatus:
    kind = status.get("type") if isinstance(status.get("type"), dict) else {}
    if kind.get("completed") is True:
        return EventStatus.FINISHED
    parsed = EventStatus.parse(kind.get("name"))
    if parsed is not EventStatus.UNKNOWN:
        return parsed
    return EventStatus.parse(kind.get("state"))


def parse_espn_event(event: dict[str, Any], source: str = "") -> EventResult | None:
    """Convert one ESPN scoreboard event (first competition, home/away competitors)."""
    event_id = event.get("id")
    competitions = event.get("competitions") or []
    if not event_id or not competitions or not isinstance(competitions[0], dict):
        return None
    comp = competitions[0]
    competitors = [c for c in comp.get("competitors") or [] if isinstance(c, dict)]
    home = next((c for c in competitors if (c.get("homeAway") or "").lower() == "home"), None)
    away = next((c for c in competitors if (c.get("homeAway") or "").lower() == "away"), None)
    if home is None or away is None:
        return None
    status_raw = comp.get("status") or event.get("status") or {}
    status = _espn_status(status_raw if isinstance(status_raw, dict) else {})
    home_score, away_score = to_score(home.get("score")), to_score(away.get("score"))
    winner = None
    if status is EventStatus.FINISHED:
        flagged = next((c for c in (home, away) if c.get("winner") is True), None)
        winner = _espn_team_name(flagged) if flagged else None
    return EventResult(
        event_id=str(event_id),
        participant_a=_espn_team_name(home),
        participant_b=_espn_team_name(away),
        winner=winner or None,
        status=status,
        scores=(home_score, away_score) if home_score is not None and away_score is not None else None,
        source=source,
    )


class SportsScoresFeed(ResultFeedClient):
    """Platform scoreboard: events of the last ``days_from`` days with home/away scores."""

    name = "sports_scores"
    oracle_type = OracleType.SPORTS
    priority = 10

    def __init__(self, client, base_url: str, *, days_from: int = 3, timeout: float = 10.0) -> None:
        super().__init__(client, timeout=timeout)
        self.url = base_url.rstrip("/") + SCORES_PATH
        self.days_from = days_from

    async def fetch_results(self) -> ResultMap:
        data = await self.get_json(self.url, params={"days_from": self.days_from})
        results: ResultMap = {}
        for row in extract_rows(data, "events", "scores", "data"):
            try:
                event = parse_scores_event(row, source=self.name)
            except (TypeError, ValueError) as e:
                log.debug("skip_event", feed=self.name, event_id=row.get("event_id"), error=str(e))
                continue
            if event is not None:
                results[event.event_id] = event
        return results


class EspnScoreboardFeed(ResultFeedClient):
    """ESPN public scoreboard for one league path, e.g. ``basketball/nba``."""

    oracle_type = OracleType.SPORTS
    priority = 20

    def __init__(self, client, base_url: str, league: str, *, timeout: float = 10.0) -> None:
        super().__init__(client, timeout=timeout)
        self.league = league.strip("/")
        self.url = f"{base_url.rstrip('/')}/{self.league}/scoreboard"
        self.name = f"espn:{self.league}"

    async def fetch_results(self) -> ResultMap:
        data = await self.get_json(self.url)
        results: ResultMap = {}
        for event in extract_rows(data, "events"):
            try:
                parsed = parse_espn_event(event, source=self.name)
            except (KeyError, AttributeError, TypeError, ValueError) as e:
                log.debug("skip_event", feed=self.name, event_id=event.get("id"), error=str(e))
                continue
            if parsed is not None:
                results[parsed.event_id] = parsed
        return results
