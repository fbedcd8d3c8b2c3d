"""Feeds subcommand: check."""

from __future__ import annotations

import asyncio

import httpx
import typer

from autoresolve.ingestion.base import ResultMap
from autoresolve.resolution.orchestrator import build_feeds

app = typer.Typer(help="Result feed diagnostics")


async def _check(settings) -> list[tuple[str, int, ResultMap | None]]:
    async with httpx.AsyncClient(follow_redirects=True) as client:
        feeds = build_feeds(settings, client)
        results = await asyncio.gather(*(feed.safe_fetch() for feed in feeds))
    return [(feed.name, feed.priority, r) for feed, r in zip(feeds, results)]


@app.command("check")
def check(ctx: typer.Context) -> None:
    """Fetch every configured feed once and show event counts (finished events in brackets)."""
    settings = ctx.obj["settings"]
    rows = asyncio.run(_check(settings))
    failed = 0
    for name, priority, results in rows:
        if results is None:
            failed += 1
            typer.echo(f"  {name:<40}  p={priority:<3}  FAILED")
            continue
        finished = sum(1 for r in results.values() if r.is_finished)
        typer.echo(f"  {name:<40}  p={priority:<3}  {len(results):>5} [{finished}]")
    typer.echo(f"{len(rows) - failed}/{len(rows)} feeds reachable")
