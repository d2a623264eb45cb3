"""
APScheduler v4 integration for the periodic insights sync.

Runs a sync pass at startup and then every ``sync.interval_minutes``.
Schedules live in memory; one scheduler process per deployment.
"""

from __future__ import annotations

from typing import Any

from apscheduler import AsyncScheduler, ConflictPolicy
from apscheduler.triggers.interval import IntervalTrigger

from adpulse.core.config.loader import load_app_config
from adpulse.core.fetch.fetcher import InsightsFetcher
from adpulse.core.logging import get_logger

from .runner import build_runner
from .sinks import JsonLinesSink

logger = get_logger("scheduler")

SCHEDULE_ID = "insights-sync"


async def execute_scheduled_sync(config_path: str | None) -> dict[str, Any]:
    """Execute one scheduled sync pass with freshly loaded configuration."""
    config = load_app_config(config_path)

    async with InsightsFetcher.from_config(config) as fetcher:
        with JsonLinesSink(config.sync.output_path) as sink:
            try:
                stats = await build_runner(config, fetcher, sink).run()
            except Exception:
                logger.exception("Scheduled sync failed")
                raise

    return stats.to_dict()


class SyncScheduler:
    """APScheduler v4 integration for AdPulse."""

    def __init__(self, config_path: str | None = None, interval_minutes: int = 60) -> None:
        if interval_minutes < 1:
            raise ValueError("interval_minutes must be >= 1")
        self.config_path = config_path
        self.interval_minutes = interval_minutes
        self._scheduler: AsyncScheduler | None = None

    def build_trigger(self) -> IntervalTrigger:
        """Interval trigger whose first fire time is now."""
        return IntervalTrigger(minutes=self.interval_minutes)

    async def start(self) -> None:
        """Start scheduler in foreground mode (blocking)."""
        async with AsyncScheduler() as scheduler:
            self._scheduler = scheduler
            await scheduler.add_schedule(
                execute_scheduled_sync,
                self.build_trigger(),
                id=SCHEDULE_ID,
                args=[self.config_path],
                conflict_policy=ConflictPolicy.replace,
            )
            logger.info("Insights sync scheduled every %d minutes", self.interval_minutes)
            await scheduler.run_until_stopped()

    async def stop(self) -> None:
        if self._scheduler is not None:
            await self._scheduler.stop()
            self._scheduler = None
