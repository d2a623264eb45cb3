from pathlib import Path

from typer.testing import CliRunner

from adpulse import __version__
from adpulse.cli.main import app
from adpulse.core.config import validate_config_file
from adpulse.core.errors import UpstreamError
from adpulse.core.fetch.fetcher import InsightsFetcher

from conftest import FakeBackend

runner = CliRunner()


def test_version() -> None:
    result = runner.invoke(app, ["--version"])

    assert result.exit_code == 0
    assert __version__ in result.output


def test_insights_fetch_rejects_inverted_range() -> None:
    result = runner.invoke(
        app,
        ["insights", "fetch", "-a", "act_1", "--since", "2024-02-01", "--until", "2024-01-01"],
    )

    assert result.exit_code == 1
    assert "Invalid request" in result.output


def test_insights_fetch_rejects_bad_date() -> None:
    result = runner.invoke(app, ["insights", "fetch", "-a", "1", "--since", "last week"])

    assert result.exit_code == 1
    assert "not an ISO date" in result.output


def test_config_validate(tmp_path) -> None:
    good = tmp_path / "good.yaml"
    good.write_text("cache:\n  ttl_seconds: 60\n", encoding="utf-8")
    bad = tmp_path / "bad.yaml"
    bad.write_text("rate_limit:\n  max_concurrent: 0\n", encoding="utf-8")

    ok = runner.invoke(app, ["config", "validate", str(good)])
    failed = runner.invoke(app, ["config", "validate", str(bad)])

    assert ok.exit_code == 0
    assert "is valid" in ok.output
    assert failed.exit_code == 1
    assert "rate_limit.max_concurrent" in failed.output


def test_config_show(tmp_path) -> None:
    path = tmp_path / "app.yaml"
    path.write_text("rate_limit:\n  max_concurrent: 3\n", encoding="utf-8")

    result = runner.invoke(app, ["config", "show", "--config", str(path)])

    assert result.exit_code == 0
    assert "max_concurrent: 3" in result.output


def test_init_writes_valid_config(monkeypatch) -> None:
    monkeypatch.delenv("META_API_VERSION", raising=False)

    with runner.isolated_filesystem():
        first = runner.invoke(app, ["init"])
        second = runner.invoke(app, ["init"])
        forced = runner.invoke(app, ["init", "--force"])

        assert first.exit_code == 0
        assert Path("configs/app.yaml").exists()
        assert Path("data").is_dir()
        assert validate_config_file("configs/app.yaml") == []
        assert second.exit_code == 1
        assert forced.exit_code == 0


def _quiet_config(tmp_path) -> Path:
    path = tmp_path / "app.yaml"
    path.write_text(
        "logging:\n  file: null\n  rich_console: false\nrate_limit:\n  min_interval_ms: 0\n",
        encoding="utf-8",
    )
    return path


def test_accounts_ads_filters_by_campaign(tmp_path, monkeypatch, make_fetcher) -> None:
    backend = FakeBackend(lambda request: {"data": [
        {"id": "21", "name": "Video A", "campaign_id": "11", "effective_status": "ACTIVE"},
    ]})
    monkeypatch.setattr(InsightsFetcher, "from_config", classmethod(lambda cls, config: make_fetcher(backend)))

    result = runner.invoke(
        app,
        ["accounts", "ads", "-a", "act_5", "-c", "11", "--config", str(_quiet_config(tmp_path))],
    )

    assert result.exit_code == 0, result.output
    assert "Video A" in result.output
    request = backend.requests[0]
    assert request.url == "https://graph.test/v21.0/act_5/ads"
    assert '"value":["11"]' in request.params["filtering"]


def test_accounts_campaigns_reports_upstream_failure(tmp_path, monkeypatch, make_fetcher) -> None:
    backend = FakeBackend(lambda request: UpstreamError("token expired", status_code=401))
    monkeypatch.setattr(InsightsFetcher, "from_config", classmethod(lambda cls, config: make_fetcher(backend)))

    result = runner.invoke(
        app,
        ["accounts", "campaigns", "--account", "5", "--config", str(_quiet_config(tmp_path))],
    )

    assert result.exit_code == 1
    assert "Could not list campaigns" in result.output
