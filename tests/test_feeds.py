"""Result feed parsing, failure isolation and merge priority."""

import asyncio

import httpx
import pytest

from autoresolve.ingestion.base import ResultFeedClient, merge_results
from autoresolve.ingestion.esports import EsportsLiveFeed, EsportsResultsFeed, guess_game
from autoresolve.ingestion.sports import EspnScoreboardFeed, SportsScoresFeed, parse_espn_event, parse_scores_event
from autoresolve.models import EventResult, EventStatus, OracleType

BASE = "https://api.test"


def _fetch(feed_factory, handler, safe=False):
    async def go():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            feed = feed_factory(client)
            return await (feed.safe_fetch() if safe else feed.fetch_results())

    return asyncio.run(go())


def test_esports_results_per_game_feed():
    seen = {}

    def handler(request):
        seen["path"] = request.url.path
        seen["game"] = request.url.params.get("game")
        return httpx.Response(
            200,
            json={
                "results": [
                    {"id": "m1", "game": "lol", "team_a": "T1", "team_b": "Gen.G", "winner": "T1", "score_a": 3, "score_b": 1},
                    {"game": "lol", "team_a": "no", "team_b": "id"},
                ]
            },
        )

    results = _fetch(lambda c: EsportsResultsFeed(c, BASE, game="lol"), handler)
    assert seen == {"path": "/api/esports/results", "game": "lol"}
    assert list(results) == ["m1"]
    m1 = results["m1"]
    assert m1.winner == "T1"
    assert m1.status is EventStatus.FINISHED
    assert m1.scores == (3, 1)
    assert m1.source == "esports_results:lol"


def test_per_game_feed_outranks_global_and_live():
    live = EsportsLiveFeed(None, BASE)
    global_results = EsportsResultsFeed(None, BASE)
    per_game = EsportsResultsFeed(None, BASE, game="dota2")
    assert live.priority < global_results.priority < per_game.priority


def test_esports_live_defaults_to_live_and_reads_participants_list():
    def handler(request):
        assert request.url.path == "/api/esports/live"
        return httpx.Response(200, json={"events": [{"event_id": "m2", "participants": ["Fnatic", {"name": "Vitality"}]}]})

    results = _fetch(lambda c: EsportsLiveFeed(c, BASE), handler)
    assert results["m2"].status is EventStatus.LIVE
    assert (results["m2"].participant_a, results["m2"].participant_b) == ("Fnatic", "Vitality")
    assert results["m2"].winner is None


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(500, text="upstream down"),
        httpx.Response(200, content=b"<html>not json</html>"),
        httpx.Response(200, json={"unexpected": True}),
    ],
)
def test_failing_feed_yields_none_instead_of_raising(response):
    results = _fetch(lambda c: EsportsLiveFeed(c, BASE), lambda request: response, safe=True)
    assert results is None


def test_transport_error_and_timeout_are_contained():
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    def slow(request):
        raise httpx.ReadTimeout("timed out", request=request)

    assert _fetch(lambda c: SportsScoresFeed(c, BASE), refuse, safe=True) is None
    assert _fetch(lambda c: SportsScoresFeed(c, BASE), slow, safe=True) is None


def test_sports_scores_feed_trailing_window():
    def handler(request):
        assert request.url.path == "/api/sports/scores"
        assert request.url.params.get("days_from") == "5"
        return httpx.Response(
            200,
            json={
                "events": [
                    {
                        "event_id": "e1",
                        "home_team": "Los Angeles Lakers",
                        "away_team": "Boston Celtics",
                        "home_score": 110,
                        "away_score": 101,
                        "status": "final",
                    }
                ]
            },
        )

    results = _fetch(lambda c: SportsScoresFeed(c, BASE, days_from=5), handler)
    e1 = results["e1"]
    assert e1.participant_a == "Los Angeles Lakers"
    assert e1.scores == (110, 101)
    assert e1.status is EventStatus.FINISHED
    assert e1.winner is None


def test_scores_row_variants():
    nested = parse_scores_event(
        {"id": "e7", "home_team": "Arsenal", "away_team": "Chelsea", "scores": {"home": 2, "away": 2}, "completed": True}
    )
    assert nested.scores == (2, 2)
    assert nested.status is EventStatus.FINISHED

    listed = parse_scores_event(
        {
            "id": "e8",
            "home_team": "Arsenal",
            "away_team": "Chelsea",
            "scores": [{"name": "Chelsea", "score": "1"}, {"name": "Arsenal", "score": "3"}],
            "completed": False,
        }
    )
    assert listed.scores == (3, 1)
    assert listed.status is EventStatus.LIVE
    assert parse_scores_event({"home_team": "x"}) is None


def _espn_event(completed=True, home_winner=True):
    return {
        "id": "401585",
        "competitions": [
            {
                "status": {"type": {"name": "STATUS_FINAL" if completed else "STATUS_IN_PROGRESS", "state": "post" if completed else "in", "completed": completed}},
                "competitors": [
                    {"homeAway": "home", "score": "110", "winner": home_winner, "team": {"displayName": "Los Angeles Lakers"}},
                    {"homeAway": "away", "score": "101", "winner": not home_winner, "team": {"displayName": "Boston Celtics"}},
                ],
            }
        ],
    }


def test_espn_event_final_with_flagged_winner():
    e = parse_espn_event(_espn_event())
    assert e.event_id == "401585"
    assert e.status is EventStatus.FINISHED
    assert e.winner == "Los Angeles Lakers"
    assert e.scores == (110, 101)


def test_espn_event_in_progress_has_no_winner():
    e = parse_espn_event(_espn_event(completed=False))
    assert e.status is EventStatus.LIVE
    assert e.winner is None


def test_espn_feed_url():
    def handler(request):
        assert request.url.host == "site.api.espn.com"
        assert request.url.path == "/apis/site/v2/sports/basketball/nba/scoreboard"
        return httpx.Response(200, json={"events": [_espn_event()]})

    feed_results = _fetch(
        lambda c: EspnScoreboardFeed(c, "https://site.api.espn.com/apis/site/v2/sports", "basketball/nba"), handler
    )
    assert "401585" in feed_results


def test_espn_malformed_event_is_skipped_not_fatal():
    broken = {"id": "401586", "competitions": {"status": "odd"}}

    def handler(request):
        return httpx.Response(200, json={"events": [broken, _espn_event()]})

    feed_results = _fetch(
        lambda c: EspnScoreboardFeed(c, "https://site.api.espn.com/apis/site/v2/sports", "soccer/eng.1"), handler
    )
    assert list(feed_results) == ["401585"]


class _StaticFeed(ResultFeedClient):
    def __init__(self, name, priority, results, oracle_type=OracleType.ESPORTS):
        super().__init__(None)
        self.name = name
        self.priority = priority
        self.oracle_type = oracle_type
        self._results = results

    async def fetch_results(self):
        return self._results


def test_merge_prefers_higher_priority_regardless_of_order():
    coarse = EventResult(event_id="m1", status=EventStatus.LIVE, source="live")
    fine = EventResult(event_id="m1", winner="T1", status=EventStatus.FINISHED, source="lol")
    fine_feed = _StaticFeed("lol", 20, {"m1": fine})
    coarse_feed = _StaticFeed("live", 0, {"m1": coarse})
    merged = merge_results([(fine_feed, {"m1": fine}), (coarse_feed, {"m1": coarse})])
    assert merged[OracleType.ESPORTS]["m1"].source == "lol"
    assert merged[OracleType.SPORTS] == {}


def test_merge_keeps_oracle_types_apart_and_skips_failed_feeds():
    sports = EventResult(event_id="1", source="scores")
    esports = EventResult(event_id="1", source="live")
    merged = merge_results(
        [
            (_StaticFeed("scores", 10, {}, OracleType.SPORTS), {"1": sports}),
            (_StaticFeed("live", 0, {}), {"1": esports}),
            (_StaticFeed("down", 99, {}), None),
        ]
    )
    assert merged[OracleType.SPORTS]["1"].source == "scores"
    assert merged[OracleType.ESPORTS]["1"].source == "live"


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("STATUS_FINAL", EventStatus.FINISHED),
        ("Full Time", EventStatus.FINISHED),
        ("completed", EventStatus.FINISHED),
        ("in_progress", EventStatus.LIVE),
        ("live", EventStatus.LIVE),
        ("upcoming", EventStatus.SCHEDULED),
        ("postponed", EventStatus.UNKNOWN),
        (None, EventStatus.UNKNOWN),
    ],
)
def test_status_mapping(raw, expected):
    assert EventStatus.parse(raw) is expected


def test_guess_game_from_description():
    assert guess_game("Dota 2 - The International") == "dota2"
    assert guess_game("League of Legends Worlds") == "lol"
    assert guess_game("VALORANT Champions") == "valorant"
    assert guess_game("Counter-Strike Major") == "csgo"
    assert guess_game("StarCraft II GSL") == "starcraft-2"
    assert guess_game("") == "csgo"
    assert guess_game(None) == "csgo"
