from pathlib import Path

import pytest

from adpulse.core.config import AppConfig, ConfigError, load_app_config, validate_config_file


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "app.yaml"
    path.write_text(text, encoding="utf-8")
    return path


def test_missing_file_gives_defaults(tmp_path) -> None:
    config = load_app_config(tmp_path / "absent.yaml")

    assert config == AppConfig()
    assert config.rate_limit.max_concurrent == 2
    assert config.rate_limit.min_interval_ms == 4000
    assert config.cache.ttl_seconds == 180
    assert config.pagination.max_pages == 20
    assert config.api.timeout_seconds == 60
    assert config.api.page_size == 1000
    assert config.api.api_version == "v21.0"


def test_partial_file_overrides_defaults(tmp_path) -> None:
    path = _write(tmp_path, "rate_limit:\n  max_concurrent: 4\nsync:\n  account_ids: [act_1, '2', '']\n")

    config = load_app_config(path)

    assert config.rate_limit.max_concurrent == 4
    assert config.rate_limit.min_interval_ms == 4000
    assert config.sync.account_ids == ["1", "2"]


def test_env_expansion(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("ADPULSE_TEST_VERSION", "v19.0")
    monkeypatch.delenv("ADPULSE_TEST_UNSET", raising=False)
    path = _write(
        tmp_path,
        "api:\n"
        "  api_version: ${ADPULSE_TEST_VERSION}\n"
        "  base_url: ${ADPULSE_TEST_UNSET:-https://graph.test}\n",
    )

    config = load_app_config(path)

    assert config.api.api_version == "v19.0"
    assert config.api.base_url == "https://graph.test"


def test_env_expansion_can_be_disabled(tmp_path) -> None:
    path = _write(tmp_path, "credentials:\n  access_token_env: ${NOT_EXPANDED}\n")

    config = load_app_config(path, expand_env=False)

    assert config.credentials.access_token_env == "${NOT_EXPANDED}"


def test_invalid_values_raise_config_error(tmp_path) -> None:
    path = _write(tmp_path, "rate_limit:\n  max_concurrent: 0\n")

    with pytest.raises(ConfigError) as exc_info:
        load_app_config(path)

    assert exc_info.value.path == path
    assert "max_concurrent" in exc_info.value.details


def test_invalid_yaml_raises_config_error(tmp_path) -> None:
    path = _write(tmp_path, "api: [unclosed\n")

    with pytest.raises(ConfigError, match="Invalid YAML"):
        load_app_config(path)


def test_non_mapping_top_level_rejected(tmp_path) -> None:
    path = _write(tmp_path, "- just\n- a list\n")

    with pytest.raises(ConfigError, match="must be a mapping"):
        load_app_config(path)


def test_logging_level_is_uppercased(tmp_path) -> None:
    path = _write(tmp_path, "logging:\n  level: debug\n  file: null\n")

    config = load_app_config(path)

    assert config.logging.level == "DEBUG"
    assert config.logging.file is None


def test_validate_config_file_reports_locations(tmp_path) -> None:
    path = _write(tmp_path, "api:\n  api_version: latest\ncache:\n  ttl_seconds: -5\n")

    errors = validate_config_file(path)

    assert len(errors) == 2
    assert any(error.startswith("api.api_version") for error in errors)
    assert any(error.startswith("cache.ttl_seconds") for error in errors)


def test_validate_config_file_missing(tmp_path) -> None:
    errors = validate_config_file(tmp_path / "nope.yaml")

    assert errors and "not found" in errors[0]


def test_validate_config_file_ok(tmp_path) -> None:
    assert validate_config_file(_write(tmp_path, "sync:\n  interval_minutes: 30\n")) == []
