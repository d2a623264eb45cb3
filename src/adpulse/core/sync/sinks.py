"""
Downstream sinks for normalized insight records.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import IO, Iterable

import orjson

from adpulse.core.normalize.insights import InsightRecord


class RowSink(ABC):
    """Receives normalized records from the sync job."""

    @abstractmethod
    def write(self, records: Iterable[InsightRecord]) -> int:
        """Persist records and return how many were written."""
        pass

    def close(self) -> None:
        pass

    def __enter__(self) -> "RowSink":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


class NullSink(RowSink):
    """Counts records without storing them (dry runs)."""

    def __init__(self) -> None:
        self.count = 0

    def write(self, records: Iterable[InsightRecord]) -> int:
        written = sum(1 for _ in records)
        self.count += written
        return written


class JsonLinesSink(RowSink):
    """Append records as JSON lines, one object per record."""

    def __init__(self, path: Path | str):
        self.path = Path(path)
        self._handle: IO[bytes] | None = None

    def _ensure_open(self) -> IO[bytes]:
        if self._handle is None or self._handle.closed:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._handle = open(self.path, "ab")
        return self._handle

    def write(self, records: Iterable[InsightRecord]) -> int:
        handle = self._ensure_open()
        written = 0
        for record in records:
            handle.write(orjson.dumps(record.to_dict(), option=orjson.OPT_APPEND_NEWLINE))
            written += 1
        handle.flush()
        return written

    def close(self) -> None:
        if self._handle is not None and not self._handle.closed:
            self._handle.close()
        self._handle = None
