"""
Shared helpers for CLI commands: config loading and logging setup.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from adpulse.core.config import AppConfig, ConfigError, load_app_config
from adpulse.core.logging import setup_logging

err_console = Console(stderr=True)

CONFIG_OPTION_HELP = "Path to app.yaml (default: configs/app.yaml)"


def load_config_or_exit(path: Optional[Path]) -> AppConfig:
    """Load configuration, printing a readable error and exiting on failure."""
    try:
        return load_app_config(path)
    except ConfigError as e:
        err_console.print(f"[red]Configuration error:[/red] {e}")
        if e.details:
            err_console.print(f"[dim]{e.details}[/dim]")
        raise typer.Exit(1)


def configure_logging(config: AppConfig, verbose: bool = False) -> None:
    """Apply the logging section of the configuration."""
    setup_logging(
        level="DEBUG" if verbose else config.logging.level,
        log_file=config.logging.file,
        json_format=config.logging.json_format,
        rich_console=config.logging.rich_console,
    )
