"""
Insights commands for fetching ad performance rows.
"""

from __future__ import annotations

import asyncio
import sys
from datetime import date, timedelta
from pathlib import Path
from typing import Any, Optional

import orjson
import typer
from rich.console import Console
from rich.table import Table

from adpulse.cli.runtime import CONFIG_OPTION_HELP, configure_logging, load_config_or_exit
from adpulse.core.errors import AdPulseError, ValidationError
from adpulse.core.query.descriptor import RequestDescriptor

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(
    help="Fetch ad insights",
    no_args_is_help=True,
)


def _build_descriptor(
    account: str,
    since: str | None,
    until: str | None,
    campaigns: list[str],
    ads: list[str],
    statuses: list[str],
) -> RequestDescriptor:
    today = date.today()
    data: dict[str, Any] = {
        "account_id": account,
        "since": since or (today - timedelta(days=6)).isoformat(),
        "until": until or today.isoformat(),
        "campaign_ids": campaigns or None,
        "ad_ids": ads or None,
    }
    if statuses:
        data["statuses"] = statuses
    return RequestDescriptor.from_mapping(data)


@app.command("fetch")
def fetch_insights(
    account: str = typer.Option(
        ...,
        "--account",
        "-a",
        envvar="META_AD_ACCOUNT_ID",
        help="Ad account id (with or without act_)",
    ),
    since: Optional[str] = typer.Option(
        None,
        "--since",
        help="Start date YYYY-MM-DD (default: 6 days ago)",
    ),
    until: Optional[str] = typer.Option(
        None,
        "--until",
        help="End date YYYY-MM-DD (default: today)",
    ),
    campaign: Optional[list[str]] = typer.Option(
        None,
        "--campaign",
        "-c",
        help="Campaign id to include (repeatable; default: all)",
    ),
    ad: Optional[list[str]] = typer.Option(
        None,
        "--ad",
        help="Ad id to include (repeatable; default: all)",
    ),
    status: Optional[list[str]] = typer.Option(
        None,
        "--status",
        "-s",
        help="Effective status to include (repeatable; default: all known)",
    ),
    as_json: bool = typer.Option(
        False,
        "--json",
        help="Print raw rows as JSON lines",
    ),
    summary: bool = typer.Option(
        False,
        "--summary",
        help="Show per-day totals instead of per-ad rows",
    ),
    limit: int = typer.Option(
        25,
        "--limit",
        "-n",
        help="Maximum rows shown in the table",
    ),
    config_path: Optional[Path] = typer.Option(
        None,
        "--config",
        help=CONFIG_OPTION_HELP,
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        help="Enable debug logging",
    ),
) -> None:
    """Fetch insights for one ad account and date range.

    Examples:
        adpulse insights fetch -a act_123 --since 2024-01-01 --until 2024-01-07
        adpulse insights fetch -a 123 -c 456 -c 789 --summary
        adpulse insights fetch -a 123 --json > rows.jsonl
    """
    try:
        descriptor = _build_descriptor(account, since, until, campaign or [], ad or [], status or [])
    except ValidationError as e:
        err_console.print(f"[red]Invalid request:[/red] {e}")
        raise typer.Exit(1)

    config = load_config_or_exit(config_path)
    configure_logging(config, verbose=verbose)

    try:
        rows = asyncio.run(_fetch(config, descriptor))
    except AdPulseError as e:
        err_console.print(f"[red]Fetch failed:[/red] {e}")
        raise typer.Exit(1)

    if as_json:
        for row in rows:
            sys.stdout.write(orjson.dumps(row).decode("utf-8") + "\n")
        return

    _print_rows(descriptor, rows, summary=summary, limit=limit)


async def _fetch(config, descriptor: RequestDescriptor) -> list[dict[str, Any]]:
    from adpulse.core.fetch.fetcher import InsightsFetcher

    async with InsightsFetcher.from_config(config) as fetcher:
        return await fetcher.fetch(descriptor)


def _print_rows(descriptor: RequestDescriptor, rows: list[dict[str, Any]], *, summary: bool, limit: int) -> None:
    from adpulse.core.normalize import normalize_insight, summarize_by_date

    records = [normalize_insight(row, account_id=descriptor.account_id) for row in rows if isinstance(row, dict)]

    console.print()
    console.print(f"[bold]Insights for[/bold] {descriptor} [dim]({len(records)} rows)[/dim]")
    console.print()

    if not records:
        console.print("[dim]No rows returned.[/dim]")
        return

    if summary:
        table = Table(show_header=True, header_style="bold magenta")
        table.add_column("Date", style="cyan")
        table.add_column("Spend", justify="right")
        table.add_column("Impressions", justify="right")
        table.add_column("Clicks", justify="right")
        table.add_column("CTR %", justify="right")
        table.add_column("Leads", justify="right")
        table.add_column("CPL", justify="right")

        for day in summarize_by_date(records):
            table.add_row(
                day.date,
                f"{day.spend:,.2f}",
                f"{day.impressions:,.0f}",
                f"{day.clicks:,.0f}",
                f"{day.ctr:.2f}",
                f"{day.leads:,.0f}",
                f"{day.cpl:,.2f}",
            )
        console.print(table)
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Date", style="cyan")
    table.add_column("Campaign")
    table.add_column("Ad")
    table.add_column("Spend", justify="right")
    table.add_column("Clicks", justify="right")
    table.add_column("CTR %", justify="right")
    table.add_column("Leads", justify="right")
    table.add_column("CPL", justify="right")

    top = sorted(records, key=lambda r: r.spend, reverse=True)[:limit]
    for record in top:
        table.add_row(
            record.date or "-",
            record.campaign_name[:40],
            record.ad_name[:40],
            f"{record.spend:,.2f}",
            f"{record.clicks:,.0f}",
            f"{record.ctr:.2f}",
            f"{record.leads:,.0f}",
            f"{record.cpl:,.2f}",
        )
    console.print(table)

    if len(records) > limit:
        console.print(f"[dim]Showing top {limit} of {len(records)} rows by spend. Use --limit to see more.[/dim]")
