"""CLI command modules."""

from . import accounts, config, insights, sync

__all__ = [
    "accounts",
    "config",
    "insights",
    "sync",
]
