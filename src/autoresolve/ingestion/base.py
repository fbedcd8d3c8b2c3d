"""Abstract result feed client and the per-run merge of feed maps."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import Any

import httpx
import structlog

from autoresolve.errors import FeedError
from autoresolve.models import EventResult, OracleType

log = structlog.get_logger(__name__)

ResultMap = dict[str, EventResult]


def extract_rows(data: Any, *keys: str) -> list[dict[str, Any]]:
    """Return the list of event dicts from a payload that is a list or wraps one under any of keys."""
    if isinstance(data, dict):
        for key in keys:
            if isinstance(data.get(key), list):
                data = data[key]
                break
        else:
            raise FeedError(f"payload has none of {keys}")
    if not isinstance(data, list):
        raise FeedError(f"unexpected payload type {type(data).__name__}")
    return [row for row in data if isinstance(row, dict)]


def to_score(value: Any) -> float | None:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


class ResultFeedClient(ABC):
    """One external result provider. Implement fetch_results for each provider.

    Higher ``priority`` feeds overwrite lower ones for the same event id when
    maps are merged, so finer-grained feeds should carry larger values.
    """

    name: str = ""
    oracle_type: OracleType = OracleType.ESPORTS
    priority: int = 0

    def __init__(self, client: httpx.AsyncClient, *, timeout: float = 10.0) -> None:
        self.client = client
        self.timeout = timeout

    @abstractmethod
    async def fetch_results(self) -> ResultMap:
        """Fetch and normalize this provider's events, keyed by event id."""
        ...

    async def get_json(self, url: str, params: dict[str, Any] | None = None) -> Any:
        resp = await self.client.get(url, params=params, timeout=self.timeout)
        resp.raise_for_status()
        return resp.json()

    async def safe_fetch(self) -> ResultMap | None:
        """fetch_results with failures contained. Returns None when the provider failed."""
        try:
            results = await self.fetch_results()
        except Exception as e:
            log.warning("feed_failed", feed=self.name, error=str(e) or type(e).__name__)
            return None
        log.debug("feed_fetched", feed=self.name, events=len(results))
        return results

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, priority={self.priority})"


def merge_results(
    fetched: Iterable[tuple[ResultFeedClient, ResultMap | None]],
) -> dict[OracleType, ResultMap]:
    """Merge feed maps per oracle type, lower priority first so specific feeds win."""
    merged: dict[OracleType, ResultMap] = {t: {} for t in OracleType}
    ordered = sorted(fetched, key=lambda pair: pair[0].priority)
    for feed, results in ordered:
        if results:
            merged[feed.oracle_type].update(results)
    return merged
