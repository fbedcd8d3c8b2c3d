"""Run orchestrator - one invocation of the auto-resolution job."""

from __future__ import annotations

import asyncio
import time
import uuid
from collections.abc import Callable, Sequence

import httpx
import structlog

from autoresolve.config import Settings
from autoresolve.errors import MarketIdParseError, MarketSourceError
from autoresolve.identity import MarketIdentity, parse_market_id
from autoresolve.ingestion.base import ResultFeedClient, ResultMap, merge_results
from autoresolve.ingestion.esports import EsportsLiveFeed, EsportsResultsFeed
from autoresolve.ingestion.lookup import ResultLookup
from autoresolve.ingestion.markets import MarketSource
from autoresolve.ingestion.sports import EspnScoreboardFeed, SportsScoresFeed
from autoresolve.models import Market, Outcome, RunReport
from autoresolve.resolution.dispatcher import ResolutionDispatcher
from autoresolve.resolution.matcher import evaluate

log = structlog.get_logger(__name__)

USER_AGENT = "autoresolve/0.1"


class Orchestrator:
    """Fetches overdue markets and all feeds concurrently, decides, dispatches, reports.

    Holds no state between runs: the merged result map and the dispatcher are
    created inside ``run``.
    """

    def __init__(
        self,
        market_source: MarketSource,
        feeds: Sequence[ResultFeedClient],
        dispatcher_factory: Callable[[], ResolutionDispatcher],
        lookup: ResultLookup | None = None,
    ):
        self.market_source = market_source
        self.feeds = list(feeds)
        self.dispatcher_factory = dispatcher_factory
        self.lookup = lookup

    async def _fetch_all(self, now: int) -> tuple[list[Market], list[ResultMap | None]]:
        """Market list and every feed in parallel. A market list failure cancels the feeds."""
        market_task = asyncio.create_task(self.market_source.fetch_overdue_markets(now))
        feed_tasks = [asyncio.create_task(feed.safe_fetch()) for feed in self.feeds]
        try:
            markets = await market_task
        except BaseException:
            for task in feed_tasks:
                task.cancel()
            await asyncio.gather(*feed_tasks, return_exceptions=True)
            raise
        results = await asyncio.gather(*feed_tasks)
        return markets, list(results)

    def _eligible(self, markets: list[Market], report: RunReport) -> list[tuple[Market, MarketIdentity]]:
        eligible = []
        for market in markets:
            if not market.has_stake:
                report.skipped_zero_pool += 1
                continue
            try:
                identity = parse_market_id(market.market_id)
            except MarketIdParseError as e:
                report.record_unparseable(market.market_id, e.reason)
                log.warning("market_unparseable", market_id=market.market_id, error=e.reason)
                continue
            if identity.oracle_type is not market.oracle_type:
                reason = f"id prefix {identity.oracle_type.value} != oracle_type {market.oracle_type.value}"
                report.record_unparseable(market.market_id, reason)
                log.warning("market_unparseable", market_id=market.market_id, error=reason)
                continue
            eligible.append((market, identity))
        return eligible

    async def run(self, now: int | None = None) -> RunReport:
        """One invocation. Raises MarketSourceError when the market list is unavailable."""
        now = int(time.time()) if now is None else now
        report = RunReport(run_id=uuid.uuid4().hex[:8], started_at=now)
        structlog.contextvars.bind_contextvars(run_id=report.run_id)
        try:
            await self._run(now, report)
        finally:
            structlog.contextvars.unbind_contextvars("run_id")
        return report

    async def _run(self, now: int, report: RunReport) -> None:
        markets, fetched = await self._fetch_all(now)
        report.feeds = {
            feed.name: (len(results) if results is not None else None)
            for feed, results in zip(self.feeds, fetched)
        }
        merged = merge_results(zip(self.feeds, fetched))

        unique: dict[str, Market] = {}
        for market in markets:
            if market.market_id in unique:
                log.warning("duplicate_market", market_id=market.market_id)
                continue
            unique[market.market_id] = market
        report.overdue_total = len(unique)

        eligible = self._eligible(list(unique.values()), report)
        if self.lookup is not None and eligible:
            merged = await self.lookup.fill_missing(
                [(market, identity.event_id) for market, identity in eligible], merged
            )

        pending: list[tuple[Market, Outcome]] = []
        for market, identity in eligible:
            result = merged.get(identity.oracle_type, {}).get(identity.event_id)
            decision = evaluate(identity, result, alias=market.oracle_condition)
            if decision.is_ambiguous:
                log.warning(
                    "ambiguous_match",
                    market_id=market.market_id,
                    participant=identity.participant_slug,
                    winner=result.winner if result else None,
                    outcome=decision.outcome.value,
                    source=result.source if result else None,
                )
            if not decision.outcome.is_decisive:
                report.record_undecided(market.market_id, decision.reason)
                log.info("market_undecided", market_id=market.market_id, reason=decision.reason)
                continue
            pending.append((market, decision.outcome))

        dispatcher = self.dispatcher_factory()
        outcomes = await asyncio.gather(
            *(dispatcher.resolve(market.market_id, outcome) for market, outcome in pending),
            return_exceptions=True,
        )
        for (market, outcome), result in zip(pending, outcomes):
            if isinstance(result, BaseException):
                report.record_failed(market.market_id, outcome, str(result) or type(result).__name__)
            elif result.success:
                report.record_resolved(market.market_id, outcome)
            else:
                report.record_failed(market.market_id, outcome, result.reason)

        report.finished_at = int(time.time())
        if not report.is_balanced:
            log.error("report_unbalanced", **report.summary())
        log.info("run_complete", **report.summary())


def build_feeds(settings: Settings, client: httpx.AsyncClient) -> list[ResultFeedClient]:
    """All configured result feeds, coarse to fine."""
    base, timeout = settings.api_base, settings.feeds_timeout_sec
    feeds: list[ResultFeedClient] = [
        EsportsLiveFeed(client, base, timeout=timeout),
        EsportsResultsFeed(client, base, timeout=timeout),
    ]
    feeds.extend(EsportsResultsFeed(client, base, game=g, timeout=timeout) for g in settings.esports_games)
    feeds.append(SportsScoresFeed(client, base, days_from=settings.sports_days_from, timeout=timeout))
    if settings.espn_enabled:
        feeds.extend(
            EspnScoreboardFeed(client, settings.espn_base, league, timeout=timeout)
            for league in settings.espn_leagues
        )
    return feeds


def build_orchestrator(settings: Settings, client: httpx.AsyncClient) -> Orchestrator:
    def dispatcher_factory() -> ResolutionDispatcher:
        return ResolutionDispatcher(
            client,
            settings.api_base,
            concurrency=settings.dispatch_concurrency,
            rate_per_sec=settings.dispatch_rate_per_sec,
            timeout=settings.api_timeout_sec,
        )

    lookup = None
    if settings.lookup_missing:
        lookup = ResultLookup(
            client,
            settings.api_base,
            concurrency=settings.lookup_concurrency,
            timeout=settings.feeds_timeout_sec,
        )
    return Orchestrator(
        MarketSource(client, settings.api_base, timeout=settings.api_timeout_sec),
        build_feeds(settings, client),
        dispatcher_factory,
        lookup=lookup,
    )


async def run_once(settings: Settings, now: int | None = None) -> RunReport:
    """Build every component over one HTTP client and execute a single run."""
    async with httpx.AsyncClient(headers={"User-Agent": USER_AGENT}, follow_redirects=True) as client:
        return await build_orchestrator(settings, client).run(now)


async def run_forever(
    settings: Settings,
    stop_event: asyncio.Event,
    *,
    interval_sec: float | None = None,
    max_runs: int = 0,
) -> int:
    """Run every interval until stop_event is set (or max_runs reached). Returns runs attempted.

    Each iteration starts from scratch; an aborted run is logged and retried next interval.
    """
    interval = settings.interval_sec if interval_sec is None else interval_sec
    runs = 0
    while not stop_event.is_set():
        try:
            await run_once(settings)
        except MarketSourceError as e:
            log.error("run_aborted", error=str(e))
        runs += 1
        if max_runs and runs >= max_runs:
            break
        try:
            await asyncio.wait_for(stop_event.wait(), timeout=interval)
        except asyncio.TimeoutError:
            pass
    log.info("watch_stopped", runs=runs)
    return runs
