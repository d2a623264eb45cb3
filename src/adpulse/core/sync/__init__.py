"""Sync job - fetch, normalize, and hand insight rows to a sink."""

from .runner import SyncRunner, SyncStats, build_runner, sync_window
from .sinks import JsonLinesSink, NullSink, RowSink

__all__ = [
    "SyncRunner",
    "SyncStats",
    "build_runner",
    "sync_window",
    "JsonLinesSink",
    "NullSink",
    "RowSink",
]
