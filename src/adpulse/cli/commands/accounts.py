"""
Account commands for discovering ad accounts, campaigns and ads.
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
    help="Discover ad accounts, campaigns and ads",
    no_args_is_help=True,
)


@app.command("list")
def list_accounts(
    config_path: Optional[Path] = typer.Option(
        None,
        "--config",
        help=CONFIG_OPTION_HELP,
    ),
) -> None:
    """List ad accounts visible to the configured access token."""
    config = load_config_or_exit(config_path)
    configure_logging(config)

    try:
        accounts = asyncio.run(_list(config))
    except AdPulseError as e:
        err_console.print(f"[red]Could not list accounts:[/red] {e}")
        raise typer.Exit(1)

    if not accounts:
        console.print("[dim]No ad accounts found for this token.[/dim]")
        return

    table = Table(title="Ad Accounts", show_header=True, header_style="bold magenta")
    table.add_column("Account ID", style="cyan")
    table.add_column("Name")

    for account in accounts:
        table.add_row(f"act_{account.id}", account.name)

    console.print(table)


async def _list(config):
    from adpulse.core.accounts import list_ad_accounts
    from adpulse.core.fetch.fetcher import InsightsFetcher

    async with InsightsFetcher.from_config(config) as fetcher:
        return await list_ad_accounts(
            fetcher,
            page_size=config.pagination.account_page_size,
            max_pages=config.pagination.account_max_pages,
        )


ACCOUNT_OPTION_HELP = "Ad account id (with or without the act_ prefix)"


@app.command("campaigns")
def list_campaigns_command(
    account: str = typer.Option(
        ...,
        "--account",
        "-a",
        envvar="META_AD_ACCOUNT_ID",
        help=ACCOUNT_OPTION_HELP,
    ),
    config_path: Optional[Path] = typer.Option(
        None,
        "--config",
        help=CONFIG_OPTION_HELP,
    ),
) -> None:
    """List the campaigns of an ad account."""
    config = load_config_or_exit(config_path)
    configure_logging(config)

    try:
        campaigns = asyncio.run(_campaigns(config, account))
    except AdPulseError as e:
        err_console.print(f"[red]Could not list campaigns:[/red] {e}")
        raise typer.Exit(1)

    if not campaigns:
        console.print("[dim]No campaigns found for this account.[/dim]")
        return

    table = Table(title="Campaigns", show_header=True, header_style="bold magenta")
    table.add_column("Campaign ID", style="cyan")
    table.add_column("Name")
    table.add_column("Status")
    table.add_column("Objective", style="dim")

    for campaign in campaigns:
        table.add_row(
            campaign.id,
            campaign.name,
            campaign.effective_status or campaign.status,
            campaign.objective,
        )

    console.print(table)


@app.command("ads")
def list_ads_command(
    account: str = typer.Option(
        ...,
        "--account",
        "-a",
        envvar="META_AD_ACCOUNT_ID",
        help=ACCOUNT_OPTION_HELP,
    ),
    campaigns: Optional[list[str]] = typer.Option(
        None,
        "--campaign",
        "-c",
        help="Only ads of this campaign (repeatable)",
    ),
    config_path: Optional[Path] = typer.Option(
        None,
        "--config",
        help=CONFIG_OPTION_HELP,
    ),
) -> None:
    """List the ads of an ad account."""
    config = load_config_or_exit(config_path)
    configure_logging(config)

    try:
        ads = asyncio.run(_ads(config, account, campaigns or None))
    except AdPulseError as e:
        err_console.print(f"[red]Could not list ads:[/red] {e}")
        raise typer.Exit(1)

    if not ads:
        console.print("[dim]No ads found for this account.[/dim]")
        return

    table = Table(title="Ads", show_header=True, header_style="bold magenta")
    table.add_column("Ad ID", style="cyan")
    table.add_column("Name")
    table.add_column("Campaign ID", style="dim")
    table.add_column("Status")

    for ad in ads:
        table.add_row(ad.id, ad.name, ad.campaign_id, ad.effective_status or ad.status)

    console.print(table)


async def _campaigns(config, account: str):
    from adpulse.core.accounts import list_campaigns
    from adpulse.core.fetch.fetcher import InsightsFetcher

    async with InsightsFetcher.from_config(config) as fetcher:
        return await list_campaigns(fetcher, account)


async def _ads(config, account: str, campaign_ids: list[str] | None):
    from adpulse.core.accounts import list_ads
    from adpulse.core.fetch.fetcher import InsightsFetcher

    async with InsightsFetcher.from_config(config) as fetcher:
        return await list_ads(fetcher, account, campaign_ids=campaign_ids)
