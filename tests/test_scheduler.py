import orjson
import pytest

from adpulse.core.credentials import StaticToken
from adpulse.core.fetch.fetcher import InsightsFetcher
from adpulse.core.sync import scheduler as scheduler_module
from adpulse.core.sync.scheduler import SyncScheduler, execute_scheduled_sync

from conftest import FakeBackend


def _respond(request):
    if request.url.endswith("/insights"):
        return {"data": [
            {"ad_id": "1", "date_start": "2024-06-01", "spend": "2"},
            {"ad_id": "2", "date_start": "2024-06-01", "spend": "3"},
        ]}
    return {"name": "Main account"}


def test_trigger_uses_configured_interval() -> None:
    trigger = SyncScheduler(interval_minutes=15).build_trigger()

    assert trigger.minutes == 15


def test_interval_must_be_positive() -> None:
    with pytest.raises(ValueError):
        SyncScheduler(interval_minutes=0)


async def test_execute_scheduled_sync_writes_rows(tmp_path, monkeypatch) -> None:
    output = tmp_path / "out" / "insights.jsonl"
    config_path = tmp_path / "app.yaml"
    config_path.write_text(
        "rate_limit:\n"
        "  min_interval_ms: 0\n"
        "sync:\n"
        "  account_ids: [act_7]\n"
        f"  output_path: {output}\n",
        encoding="utf-8",
    )
    backend = FakeBackend(_respond)

    def from_config(cls, config, backend_=None, token_source=None):
        return InsightsFetcher(
            backend,
            StaticToken("t"),
            base_url=config.api.base_url,
            min_interval_ms=config.rate_limit.min_interval_ms,
        )

    monkeypatch.setattr(scheduler_module.InsightsFetcher, "from_config", classmethod(from_config))

    result = await execute_scheduled_sync(str(config_path))

    assert result["accounts_total"] == 1
    assert result["accounts_synced"] == 1
    assert result["rows_written"] == 2
    lines = output.read_bytes().splitlines()
    assert [orjson.loads(line)["account_id"] for line in lines] == ["7", "7"]
    assert backend.closed
