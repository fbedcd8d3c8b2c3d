"""Resolution dispatcher - submits YES/NO outcomes to the market store."""

from __future__ import annotations

import asyncio
from typing import NamedTuple

import httpx
import structlog

from autoresolve.ingestion.rate_limit import TokenBucket
from autoresolve.models import Outcome

log = structlog.get_logger(__name__)

RESOLVE_PATH = "/api/predictions/markets/{market_id}/resolve"


class DispatchResult(NamedTuple):
    success: bool
    reason: str = ""


def _error_reason(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and (body.get("detail") or body.get("error")):
        return f"{resp.status_code}: {body.get('detail') or body.get('error')}"
    text = resp.text.strip()
    return f"{resp.status_code}: {text[:200]}" if text else str(resp.status_code)


class ResolutionDispatcher:
    """Issues one resolve command per market. Create one per run.

    Any rejection, including "already resolved", is reported as a failed
    DispatchResult; the market stays overdue and is re-evaluated next run.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: str,
        *,
        concurrency: int = 4,
        rate_per_sec: float = 5.0,
        timeout: float = 15.0,
    ) -> None:
        self.client = client
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._semaphore = asyncio.Semaphore(max(1, concurrency))
        self._bucket = TokenBucket(rate=rate_per_sec)
        self._dispatched: set[str] = set()

    @property
    def dispatched(self) -> frozenset[str]:
        return frozenset(self._dispatched)

    async def resolve(self, market_id: str, outcome: Outcome) -> DispatchResult:
        if not outcome.is_decisive:
            raise ValueError(f"cannot dispatch {outcome.value} for {market_id}")
        if market_id in self._dispatched:
            log.warning("dispatch_duplicate", market_id=market_id)
            return DispatchResult(False, "already dispatched in this run")
        self._dispatched.add(market_id)

        url = self.base_url + RESOLVE_PATH.format(market_id=market_id)
        async with self._semaphore:
            await self._bucket.wait_for_token()
            try:
                resp = await self.client.post(url, json={"outcome": outcome.value}, timeout=self.timeout)
            except httpx.HTTPError as e:
                reason = str(e) or type(e).__name__
                log.error("dispatch_failed", market_id=market_id, outcome=outcome.value, error=reason)
                return DispatchResult(False, reason)
        if resp.is_success:
            log.info("market_resolved", market_id=market_id, outcome=outcome.value)
            return DispatchResult(True)
        reason = _error_reason(resp)
        log.error("dispatch_failed", market_id=market_id, outcome=outcome.value, error=reason)
        return DispatchResult(False, reason)
