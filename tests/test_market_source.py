"""Market store listing and overdue selection."""

import asyncio

import httpx
import pytest

from autoresolve.errors import MarketSourceError
from autoresolve.ingestion.markets import MarketSource, parse_market
from autoresolve.models import OracleType

NOW = 1_700_000_000

ROWS = [
    {"market_id": "sports_e1_los_angeles_lakers", "oracle_type": "sports", "resolution_time": NOW - 60, "resolved": 0, "yes_pool_xmr": 1.5, "no_pool_xmr": 0.2},
    {"market_id": "esports_m1_team_liquid", "oracle_type": "esports", "resolution_time": NOW - 1, "resolved": False, "yes_pool": 3},
    {"market_id": "sports_e2_arsenal", "oracle_type": "sports", "resolution_time": NOW - 60, "resolved": 1, "yes_pool_xmr": 1},
    {"market_id": "sports_e3_chelsea", "oracle_type": "sports", "resolution_time": NOW + 60, "resolved": 0, "yes_pool_xmr": 1},
    {"market_id": "sports_e4_edge", "oracle_type": "sports", "resolution_time": NOW, "resolved": 0, "yes_pool_xmr": 1},
    {"market_id": "price_btc_100k", "oracle_type": "price", "resolution_time": NOW - 60, "resolved": 0},
    {"oracle_type": "sports", "resolution_time": NOW - 60},
    {"market_id": "sports_e5_bad_time", "oracle_type": "sports", "resolution_time": "soon"},
]


def _overdue(handler):
    async def go():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await MarketSource(client, "https://api.test").fetch_overdue_markets(NOW)

    return asyncio.run(go())


def test_overdue_selection_excludes_resolved_future_and_foreign_types():
    def handler(request):
        assert request.url.path == "/api/predictions/markets"
        assert request.url.params.get("include_resolved") == "false"
        return httpx.Response(200, json={"markets": ROWS})

    markets = _overdue(handler)
    assert [m.market_id for m in markets] == ["sports_e1_los_angeles_lakers", "esports_m1_team_liquid"]
    assert all(not m.resolved for m in markets)
    assert markets[0].yes_pool == 1.5
    assert markets[1].oracle_type is OracleType.ESPORTS


def test_bare_list_payload_is_accepted():
    markets = _overdue(lambda request: httpx.Response(200, json=ROWS[:1]))
    assert len(markets) == 1


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(503, text="maintenance"),
        httpx.Response(200, content=b"not json"),
        httpx.Response(200, json={"error": "nope"}),
    ],
)
def test_listing_failure_is_fatal(response):
    with pytest.raises(MarketSourceError):
        _overdue(lambda request: response)


def test_transport_failure_is_fatal():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(MarketSourceError):
        _overdue(handler)


def test_parse_market_flags_and_pools():
    m = parse_market({"market_id": "sports_e1_x", "oracle_type": "SPORTS", "resolution_time": "5", "resolved": "true"})
    assert m.resolved is True
    assert m.resolution_time == 5
    assert not m.has_stake
    assert parse_market({"market_id": "x", "oracle_type": "weather"}) is None
