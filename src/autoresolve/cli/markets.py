"""Markets subcommand: overdue."""

from __future__ import annotations

import asyncio

import httpx
import typer

from autoresolve.errors import MarketIdParseError, MarketSourceError
from autoresolve.identity import parse_market_id
from autoresolve.ingestion.markets import MarketSource
from autoresolve.models import Market

app = typer.Typer(help="Inspect markets in the market store")


async def _fetch_overdue(settings) -> list[Market]:
    async with httpx.AsyncClient() as client:
        source = MarketSource(client, settings.api_base, timeout=settings.api_timeout_sec)
        return await source.fetch_overdue_markets()


def _eligibility(market: Market) -> str:
    if not market.has_stake:
        return "zero-pool"
    try:
        parse_market_id(market.market_id)
    except MarketIdParseError as e:
        return f"unparseable ({e.reason})"
    return "eligible"


@app.command("overdue")
def overdue(ctx: typer.Context) -> None:
    """List unresolved Sports/Esports markets past their resolution time (read-only)."""
    settings = ctx.obj["settings"]
    try:
        markets = asyncio.run(_fetch_overdue(settings))
    except MarketSourceError as e:
        typer.echo(f"Could not fetch markets: {e}", err=True)
        raise typer.Exit(1)
    for m in sorted(markets, key=lambda m: m.resolution_time):
        pools = f"{m.yes_pool:.4f}/{m.no_pool:.4f}"
        typer.echo(f"  {m.market_id[:48]:<48}  {m.oracle_type.value:<7}  {pools:>19}  {_eligibility(m)}")
    typer.echo(f"Total: {len(markets)} overdue markets")
