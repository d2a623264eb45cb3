import logging

import orjson
import pytest

from adpulse.core.logging import ROOT_LOGGER, get_contextual_logger, get_logger, setup_logging


@pytest.fixture
def restore_root_logger():
    logger = logging.getLogger(ROOT_LOGGER)
    handlers, level = list(logger.handlers), logger.level
    yield
    for handler in logger.handlers:
        handler.close()
    logger.handlers[:] = handlers
    logger.setLevel(level)


def test_json_file_logging_carries_context(tmp_path, restore_root_logger) -> None:
    log_file = tmp_path / "logs" / "adpulse.log"
    setup_logging(level="INFO", log_file=log_file, json_format=True, rich_console=False)

    get_logger("fetch").warning("Stopped after %d pages", 20, extra={"account": "123", "page": 20})
    get_logger("fetch").debug("not written at INFO")

    for handler in logging.getLogger(ROOT_LOGGER).handlers:
        handler.flush()

    lines = log_file.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 1
    entry = orjson.loads(lines[0])
    assert entry["level"] == "WARNING"
    assert entry["logger"] == "adpulse.fetch"
    assert entry["message"] == "Stopped after 20 pages"
    assert entry["account"] == "123"
    assert entry["page"] == 20
    assert "rows" not in entry


def test_setup_replaces_handlers(restore_root_logger) -> None:
    setup_logging(level="DEBUG", rich_console=False)
    logger = setup_logging(level="WARNING", rich_console=True)

    assert len(logger.handlers) == 1
    assert logger.level == logging.WARNING


def test_contextual_logger_adds_account_and_run(caplog) -> None:
    log = get_contextual_logger("sync", run_id="run-1")

    with caplog.at_level(logging.INFO, logger=ROOT_LOGGER):
        log.with_context(account="42").info("synced")

    record = caplog.records[-1]
    assert record.name == "adpulse.sync"
    assert record.account == "42"
    assert record.run_id == "run-1"
