"""Run and watch commands: one resolution pass, or passes on an interval."""

from __future__ import annotations

import asyncio
import signal
import sys

import typer

from autoresolve.errors import MarketSourceError
from autoresolve.models import RunReport
from autoresolve.resolution.orchestrator import run_forever, run_once

app = typer.Typer(help="Run one resolution pass and print its report")
watch_app = typer.Typer(help="Run resolution passes on an interval until stopped")


def _echo_report(report: RunReport) -> None:
    for key, value in report.summary().items():
        typer.echo(f"{key:>18}: {value}")
    for r in report.resolutions:
        typer.echo(f"  resolved  {r.market_id}  {r.outcome.value}")
    for f in report.failures:
        typer.echo(f"  failed    {f.market_id}  {f.outcome.value}  {f.reason}")
    for n in report.undecided:
        typer.echo(f"  undecided {n.market_id}  {n.reason}")
    for n in report.unparseable_markets:
        typer.echo(f"  skipped   {n.market_id}  {n.reason}")
    down = [name for name, count in report.feeds.items() if count is None]
    if down:
        typer.echo(f"Feeds unavailable: {', '.join(down)}")


@app.callback(invoke_without_command=True)
def run(
    ctx: typer.Context,
    as_json: bool = typer.Option(False, "--json", help="Print the full report as JSON"),
) -> None:
    """Resolve every overdue market that has a decisive result. Exit code 1 if the market list is unavailable."""
    if ctx.invoked_subcommand is not None:
        return
    settings = ctx.obj["settings"]
    try:
        report = asyncio.run(run_once(settings))
    except MarketSourceError as e:
        typer.echo(f"Run aborted: {e}", err=True)
        raise typer.Exit(1)
    if as_json:
        typer.echo(report.model_dump_json(indent=2))
    else:
        _echo_report(report)


@watch_app.callback(invoke_without_command=True)
def watch(
    ctx: typer.Context,
    interval: int = typer.Option(None, "--interval", "-i", help="Seconds between runs (overrides config)"),
    max_runs: int = typer.Option(0, "--max-runs", help="Stop after this many runs (0 = until Ctrl+C)"),
) -> None:
    """Run on a fixed interval. Use when no external scheduler triggers the job."""
    if ctx.invoked_subcommand is not None:
        return
    settings = ctx.obj["settings"]
    stop_event = asyncio.Event()

    def shutdown() -> None:
        stop_event.set()

    loop = asyncio.new_event_loop()
    if sys.platform != "win32":
        loop.add_signal_handler(signal.SIGINT, shutdown)
        loop.add_signal_handler(signal.SIGTERM, shutdown)
    try:
        typer.echo("Watching for overdue markets (Ctrl+C to stop)...")
        runs = loop.run_until_complete(
            run_forever(settings, stop_event, interval_sec=interval, max_runs=max_runs)
        )
    except KeyboardInterrupt:
        runs = None
    finally:
        loop.close()
    typer.echo(f"Stopped after {runs} runs." if runs is not None else "Stopped.")
