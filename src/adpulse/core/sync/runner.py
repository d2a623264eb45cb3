"""
Insights sync runner.

Coordinates one sync pass: resolve accounts -> fetch each account's
insights for the lookback window -> normalize -> write to the sink.
One failing account is logged and counted; it never stops the others.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import TYPE_CHECKING, Any, Callable
from uuid import uuid4

from adpulse.core.accounts import AdAccount, fetch_account_name, list_ad_accounts
from adpulse.core.errors import AdPulseError, UpstreamError
from adpulse.core.fetch.fetcher import InsightsFetcher
from adpulse.core.fetch.retries import RetryConfig, retry_async
from adpulse.core.logging import get_contextual_logger
from adpulse.core.normalize.insights import normalize_insight
from adpulse.core.query.descriptor import RequestDescriptor, normalize_account_id

from .sinks import RowSink

if TYPE_CHECKING:
    from adpulse.core.config.models import AppConfig


@dataclass
class SyncStats:
    """Statistics for a sync run."""

    run_id: str = field(default_factory=lambda: uuid4().hex[:12])
    since: date | None = None
    until: date | None = None

    accounts_total: int = 0
    accounts_synced: int = 0
    accounts_failed: int = 0
    rows_written: int = 0

    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    finished_at: datetime | None = None

    errors: list[str] = field(default_factory=list)

    @property
    def duration_seconds(self) -> float | None:
        """Get run duration in seconds."""
        if self.finished_at:
            return (self.finished_at - self.started_at).total_seconds()
        return None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "run_id": self.run_id,
            "since": self.since.isoformat() if self.since else None,
            "until": self.until.isoformat() if self.until else None,
            "accounts_total": self.accounts_total,
            "accounts_synced": self.accounts_synced,
            "accounts_failed": self.accounts_failed,
            "rows_written": self.rows_written,
            "duration_seconds": self.duration_seconds,
        }


def sync_window(now: datetime, lookback_minutes: int) -> tuple[date, date]:
    """Whole-date range covering the last ``lookback_minutes`` before ``now`` (UTC)."""
    if now.tzinfo is not None:
        now = now.astimezone(timezone.utc)
    start = now - timedelta(minutes=lookback_minutes)
    return start.date(), now.date()


class SyncRunner:
    """Runs one insights sync pass over a set of ad accounts."""

    def __init__(
        self,
        fetcher: InsightsFetcher,
        sink: RowSink,
        *,
        account_ids: list[str] | None = None,
        lookback_minutes: int = 90,
        retry: RetryConfig | None = None,
        account_page_size: int = 100,
        account_max_pages: int = 10,
        now: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        """Initialize the sync runner.

        Args:
            fetcher: Insights fetcher shared with other callers
            sink: Destination for normalized records
            account_ids: Accounts to sync; None or empty discovers them
            lookback_minutes: Window reaching back from now
            retry: Per-account retry on upstream failure (None: no retry)
            account_page_size: Page size for account discovery
            account_max_pages: Page ceiling for account discovery
            now: Clock returning an aware datetime
        """
        self.fetcher = fetcher
        self.sink = sink
        self.account_ids = list(account_ids or [])
        self.lookback_minutes = lookback_minutes
        self.retry = retry or RetryConfig(max_attempts=1)
        self.account_page_size = account_page_size
        self.account_max_pages = account_max_pages
        self._now = now

    async def run(self) -> SyncStats:
        """Execute the sync pass."""
        stats = SyncStats()
        log = get_contextual_logger("sync", run_id=stats.run_id)
        stats.since, stats.until = sync_window(self._now(), self.lookback_minutes)

        try:
            accounts = await self._resolve_accounts()
        except AdPulseError as e:
            log.warning("Skipping sync: could not resolve ad accounts: %s", e)
            stats.errors.append(f"accounts: {e}")
            stats.finished_at = datetime.now(timezone.utc)
            return stats

        stats.accounts_total = len(accounts)
        if not accounts:
            log.warning("No ad accounts to sync")
            stats.finished_at = datetime.now(timezone.utc)
            return stats

        log.info(
            "Syncing %d accounts for %s..%s",
            len(accounts),
            stats.since.isoformat(),
            stats.until.isoformat(),
        )

        for account in accounts:
            account_log = log.with_context(account=account.id)
            try:
                count = await self.sync_account(account, stats.since, stats.until)
            except AdPulseError as e:
                stats.accounts_failed += 1
                stats.errors.append(f"{account.id}: {e}")
                account_log.error("Sync failed for %s: %s", account.name, e)
                continue

            stats.accounts_synced += 1
            stats.rows_written += count
            if count:
                account_log.info("%s: %d rows", account.name, count, extra={"rows": count})
            else:
                account_log.info("%s: no new data", account.name)

        stats.finished_at = datetime.now(timezone.utc)
        log.info(
            "Sync completed: %d/%d accounts, %d rows in %.1fs",
            stats.accounts_synced,
            stats.accounts_total,
            stats.rows_written,
            stats.duration_seconds or 0.0,
        )
        return stats

    async def sync_account(self, account: AdAccount, since: date, until: date) -> int:
        """Fetch, normalize and write one account's rows. Returns rows written."""
        descriptor = RequestDescriptor(account_id=account.id, since=since, until=until)
        rows = await retry_async(self.fetcher.fetch, descriptor, config=self.retry)
        if not rows:
            return 0
        records = [normalize_insight(row, account_id=account.id) for row in rows if isinstance(row, dict)]
        return self.sink.write(records)

    async def _resolve_accounts(self) -> list[AdAccount]:
        if not self.account_ids:
            return await list_ad_accounts(
                self.fetcher,
                page_size=self.account_page_size,
                max_pages=self.account_max_pages,
            )

        accounts: list[AdAccount] = []
        for raw_id in self.account_ids:
            account_id = normalize_account_id(raw_id)
            if not account_id or any(account.id == account_id for account in accounts):
                continue
            name = await fetch_account_name(self.fetcher, account_id)
            accounts.append(AdAccount(id=account_id, name=name or f"Account {account_id}"))
        return accounts


def build_runner(config: AppConfig, fetcher: InsightsFetcher, sink: RowSink) -> SyncRunner:
    """Create a runner from an ``AppConfig``."""
    return SyncRunner(
        fetcher,
        sink,
        account_ids=config.sync.account_ids,
        lookback_minutes=config.sync.lookback_minutes,
        retry=RetryConfig(
            max_attempts=config.sync.max_retries + 1,
            retry_exceptions=(UpstreamError,),
        ),
        account_page_size=config.pagination.account_page_size,
        account_max_pages=config.pagination.account_max_pages,
    )
