"""
AdPulse CLI - Main entry point.

Fetch, inspect and sync ad insights from the terminal.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.panel import Panel
from rich.traceback import install as install_rich_traceback

from adpulse import __app_name__, __version__

# Load environment variables from .env (if present)
load_dotenv()

# Install rich traceback for better error display
install_rich_traceback(show_locals=False, width=120)

console = Console()
err_console = Console(stderr=True)

# Create main app
app = typer.Typer(
    name=__app_name__,
    help="Rate-limited, cached ad insights fetching",
    rich_markup_mode="rich",
    no_args_is_help=True,
    pretty_exceptions_show_locals=False,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold cyan]{__app_name__}[/bold cyan] version [green]{__version__}[/green]")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """AdPulse - Ad insights fetcher and sync tool."""
    pass


# =============================================================================
# Import and register subcommand modules
# =============================================================================

from .commands import accounts, config, insights, sync  # noqa: E402

app.add_typer(insights.app, name="insights", help="Fetch ad insights")
app.add_typer(accounts.app, name="accounts", help="Discover ad accounts, campaigns and ads")
app.add_typer(sync.app, name="sync", help="Sync insights to the output sink")
app.add_typer(config.app, name="config", help="Inspect and validate configuration")


# =============================================================================
# Init Command
# =============================================================================


DEFAULT_APP_CONFIG = """\
# AdPulse Configuration
# Values support ${VAR} and ${VAR:-default} environment expansion

api:
  base_url: https://graph.facebook.com
  api_version: ${META_API_VERSION:-v21.0}
  timeout_seconds: 60
  page_size: 1000

# Shared by every upstream call (account-wide Graph API limits)
rate_limit:
  max_concurrent: 2
  min_interval_ms: 4000

cache:
  ttl_seconds: 180

pagination:
  max_pages: 20
  account_max_pages: 10
  account_page_size: 100

credentials:
  access_token_env: META_ACCESS_TOKEN

sync:
  interval_minutes: 60
  lookback_minutes: 90
  account_ids: []
  output_path: data/insights.jsonl
  max_retries: 2

logging:
  level: INFO
  file: logs/adpulse.log
  json_format: true
  rich_console: true
"""


@app.command()
def init(
    force: bool = typer.Option(
        False,
        "--force",
        "-f",
        help="Overwrite existing configuration",
    ),
) -> None:
    """Create the default configuration and working directories."""
    for dir_path in (Path("configs"), Path("data"), Path("logs")):
        dir_path.mkdir(parents=True, exist_ok=True)

    app_config_path = Path("configs/app.yaml")
    if app_config_path.exists() and not force:
        err_console.print(f"[yellow]{app_config_path} already exists.[/yellow] Use --force to overwrite.")
        raise typer.Exit(1)

    app_config_path.write_text(DEFAULT_APP_CONFIG, encoding="utf-8")

    console.print()
    console.print(Panel.fit(
        "[bold green]OK - AdPulse initialized![/bold green]\n\n"
        "Created:\n"
        "  - [cyan]configs/app.yaml[/cyan] - Application configuration\n"
        "  - [cyan]data/[/cyan] - Sync output\n"
        "  - [cyan]logs/[/cyan] - Log files\n\n"
        "Next steps:\n"
        "  1. Set [yellow]META_ACCESS_TOKEN[/yellow] in your environment or .env\n"
        "  2. List accounts: [yellow]adpulse accounts list[/yellow]\n"
        "  3. Fetch insights: [yellow]adpulse insights fetch -a <account>[/yellow]",
        title="[bold]Initialization Complete[/bold]",
        border_style="green",
    ))


# =============================================================================
# Entry Point
# =============================================================================


def run() -> None:
    """Run the CLI application."""
    app()


if __name__ == "__main__":
    run()
