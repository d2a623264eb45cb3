"""
Configuration commands.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
import yaml
from rich.console import Console
from rich.syntax import Syntax

from adpulse.cli.runtime import CONFIG_OPTION_HELP, load_config_or_exit
from adpulse.core.config.loader import DEFAULT_CONFIG_PATH, validate_config_file

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(
    help="Inspect and validate configuration",
    no_args_is_help=True,
)


@app.command("show")
def show_config(
    config_path: Optional[Path] = typer.Option(
        None,
        "--config",
        help=CONFIG_OPTION_HELP,
    ),
) -> None:
    """Print the effective configuration (file values merged over defaults)."""
    config = load_config_or_exit(config_path)
    rendered = yaml.safe_dump(config.model_dump(mode="json"), sort_keys=False)
    console.print(Syntax(rendered, "yaml", theme="ansi_dark"))


@app.command("validate")
def validate_config(
    path: Path = typer.Argument(
        DEFAULT_CONFIG_PATH,
        help="Configuration file to validate",
    ),
) -> None:
    """Validate a configuration file."""
    errors = validate_config_file(path)
    if errors:
        err_console.print(f"[red]x[/red] {path} has {len(errors)} error(s):")
        for error in errors:
            err_console.print(f"  - {error}")
        raise typer.Exit(1)

    console.print(f"[green]OK[/green] {path} is valid")
