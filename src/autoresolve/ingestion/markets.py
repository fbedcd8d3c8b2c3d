"""Market store client - listing and overdue selection."""

from __future__ import annotations

import time
from typing import Any

import httpx
import structlog
from pydantic import ValidationError

from autoresolve.errors import MarketSourceError
from autoresolve.models import Market, OracleType

log = structlog.get_logger(__name__)

MARKETS_PATH = "/api/predictions/markets"

_ORACLE_TYPES = {t.value for t in OracleType}


def _flag(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes")
    return bool(value)


def _pool(raw: dict[str, Any], name: str) -> float:
    value = raw.get(f"{name}_pool_xmr", raw.get(f"{name}_pool"))
    try:
        return max(0.0, float(value or 0))
    except (TypeError, ValueError):
        return 0.0


def parse_market(raw: dict[str, Any]) -> Market | None:
    """Convert a market store row to Market. Returns None for oracle types this engine ignores."""
    oracle_type = str(raw.get("oracle_type") or "").strip().lower()
    if oracle_type not in _ORACLE_TYPES:
        return None
    return Market(
        market_id=str(raw["market_id"]),
        oracle_type=OracleType(oracle_type),
        resolution_time=int(raw.get("resolution_time") or 0),
        resolved=_flag(raw.get("resolved")),
        yes_pool=_pool(raw, "yes"),
        no_pool=_pool(raw, "no"),
        title=raw.get("title") or "",
        description=raw.get("description") or "",
        oracle_condition=raw.get("oracle_condition"),
    )


def select_overdue(markets: list[Market], now: int) -> list[Market]:
    """Unresolved Sports/Esports markets whose resolution time has passed."""
    return [m for m in markets if m.is_overdue(now)]


class MarketSource:
    """Read-only access to the market store."""

    def __init__(self, client: httpx.AsyncClient, base_url: str, *, timeout: float = 15.0) -> None:
        self.client = client
        self.url = base_url.rstrip("/") + MARKETS_PATH
        self.timeout = timeout

    async def fetch_markets(self) -> list[Market]:
        """All Sports/Esports markets the store returns. Raises MarketSourceError on any failure."""
        try:
            resp = await self.client.get(
                self.url, params={"include_resolved": "false"}, timeout=self.timeout
            )
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPError as e:
            raise MarketSourceError(f"market list request failed: {e}") from e
        except ValueError as e:
            raise MarketSourceError(f"market list is not JSON: {e}") from e
        rows = data.get("markets") if isinstance(data, dict) else data
        if not isinstance(rows, list):
            raise MarketSourceError("market list payload has no 'markets' list")
        markets = []
        for row in rows:
            if not isinstance(row, dict):
                continue
            try:
                market = parse_market(row)
            except (KeyError, TypeError, ValueError, ValidationError) as e:
                log.warning("skip_market", market_id=row.get("market_id"), error=str(e))
                continue
            if market is not None:
                markets.append(market)
        return markets

    async def fetch_overdue_markets(self, now: int | None = None) -> list[Market]:
        now = int(time.time()) if now is None else now
        markets = select_overdue(await self.fetch_markets(), now)
        log.info("overdue_markets", count=len(markets))
        return markets
