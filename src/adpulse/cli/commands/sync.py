"""
Sync commands for writing insights to the configured sink.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from adpulse.cli.runtime import CONFIG_OPTION_HELP, configure_logging, load_config_or_exit
from adpulse.core.errors import AdPulseError

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(
    help="Sync insights to the output sink",
    no_args_is_help=True,
)


@app.command("run")
def run_sync(
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Fetch and normalize but don't write rows",
    ),
    config_path: Optional[Path] = typer.Option(
        None,
        "--config",
        help=CONFIG_OPTION_HELP,
    ),
) -> None:
    """Run one sync pass over all configured (or discovered) accounts."""
    config = load_config_or_exit(config_path)
    configure_logging(config)

    if dry_run:
        console.print("[yellow]Dry run mode - rows will not be written[/yellow]")

    try:
        stats = asyncio.run(_run(config, dry_run=dry_run))
    except AdPulseError as e:
        err_console.print(f"[red]Sync failed:[/red] {e}")
        raise typer.Exit(1)

    table = Table(title="Sync Summary", show_header=True, header_style="bold magenta")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")

    table.add_row("Window", f"{stats.since}..{stats.until}")
    table.add_row("Accounts", str(stats.accounts_total))
    table.add_row("Synced", f"[green]{stats.accounts_synced}[/green]")
    table.add_row("Failed", f"[red]{stats.accounts_failed}[/red]" if stats.accounts_failed else "0")
    table.add_row("Rows", str(stats.rows_written))
    table.add_row("Duration", f"{stats.duration_seconds or 0.0:.1f}s")

    console.print()
    console.print(table)

    for error in stats.errors[:10]:
        err_console.print(f"  [red]x[/red] {error}")

    if stats.accounts_total and stats.accounts_failed == stats.accounts_total:
        raise typer.Exit(1)


async def _run(config, *, dry_run: bool):
    from adpulse.core.fetch.fetcher import InsightsFetcher
    from adpulse.core.sync import JsonLinesSink, NullSink, build_runner

    sink = NullSink() if dry_run else JsonLinesSink(config.sync.output_path)
    async with InsightsFetcher.from_config(config) as fetcher:
        with sink:
            return await build_runner(config, fetcher, sink).run()


@app.command("schedule")
def schedule_sync(
    config_path: Optional[Path] = typer.Option(
        None,
        "--config",
        help=CONFIG_OPTION_HELP,
    ),
) -> None:
    """Run the sync now and then every sync.interval_minutes (foreground)."""
    from adpulse.core.sync.scheduler import SyncScheduler

    config = load_config_or_exit(config_path)
    configure_logging(config)

    scheduler = SyncScheduler(
        config_path=str(config_path) if config_path else None,
        interval_minutes=config.sync.interval_minutes,
    )

    console.print(
        f"[bold]Starting sync scheduler[/bold] (every {config.sync.interval_minutes} min). "
        "Press Ctrl+C to stop."
    )
    try:
        asyncio.run(scheduler.start())
    except KeyboardInterrupt:
        console.print("[yellow]Scheduler stopped[/yellow]")
