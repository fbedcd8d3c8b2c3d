"""Single-event result lookups for markets the bulk feeds did not cover."""

from __future__ import annotations

import asyncio
from typing import Any

import httpx
import structlog

from autoresolve.ingestion.base import ResultMap
from autoresolve.ingestion.esports import guess_game, parse_esports_event
from autoresolve.ingestion.sports import parse_scores_event
from autoresolve.models import EventResult, EventStatus, Market, OracleType

log = structlog.get_logger(__name__)

ESPORTS_RESULT_PATH = "/api/esports/result/{event_id}"
SPORTS_RESULT_PATH = "/api/sports/result/{event_id}"


class ResultLookup:
    """Queries ``/result/{event_id}`` endpoints with bounded concurrency. Failures mean 'absent'."""

    name = "lookup"

    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: str,
        *,
        concurrency: int = 4,
        timeout: float = 10.0,
    ) -> None:
        self.client = client
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._semaphore = asyncio.Semaphore(max(1, concurrency))

    def _request(self, market: Market, event_id: str) -> tuple[str, dict[str, Any] | None]:
        if market.oracle_type is OracleType.ESPORTS:
            path = ESPORTS_RESULT_PATH.format(event_id=event_id)
            return self.base_url + path, {"game": guess_game(market.description)}
        return self.base_url + SPORTS_RESULT_PATH.format(event_id=event_id), None

    def _parse(self, oracle_type: OracleType, event_id: str, data: Any) -> EventResult | None:
        if not isinstance(data, dict):
            return None
        row = {"event_id": event_id, **data}
        if oracle_type is OracleType.ESPORTS:
            return parse_esports_event(row, default_status=EventStatus.UNKNOWN, source=self.name)
        return parse_scores_event(row, source=self.name)

    async def fetch_one(self, market: Market, event_id: str) -> EventResult | None:
        url, params = self._request(market, event_id)
        async with self._semaphore:
            try:
                resp = await self.client.get(url, params=params, timeout=self.timeout)
                if resp.status_code == 404:
                    log.debug("lookup_no_result", market_id=market.market_id, event_id=event_id)
                    return None
                resp.raise_for_status()
                return self._parse(market.oracle_type, event_id, resp.json())
            except Exception as e:
                log.warning("lookup_failed", market_id=market.market_id, event_id=event_id, error=str(e))
                return None

    async def fill_missing(
        self,
        pending: list[tuple[Market, str]],
        merged: dict[OracleType, ResultMap],
    ) -> dict[OracleType, ResultMap]:
        """Return a copy of merged with lookups added for (market, event_id) pairs not yet covered."""
        filled = {t: dict(results) for t, results in merged.items()}
        wanted: dict[tuple[OracleType, str], Market] = {}
        for market, event_id in pending:
            if event_id not in filled.setdefault(market.oracle_type, {}):
                wanted.setdefault((market.oracle_type, event_id), market)
        if not wanted:
            return filled
        found = await asyncio.gather(
            *(self.fetch_one(market, event_id) for (_, event_id), market in wanted.items())
        )
        for (oracle_type, event_id), result in zip(wanted, found):
            if result is not None:
                filled[oracle_type][event_id] = result
        log.info("lookup_complete", requested=len(wanted), found=sum(r is not None for r in found))
        return filled
