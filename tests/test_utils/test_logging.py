"""Tests for logging utilities."""

import json
import logging

import pytest

from cryinsight.utils.logging import (
    ColoredFormatter,
    JSONFormatter,
    create_logger_with_context,
    setup_logging,
)


def _record(message: str = "hello", level: int = logging.INFO, **extra) -> logging.LogRecord:
    record = logging.LogRecord("engine", level, __file__, 10, message, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    root.handlers = handlers
    root.setLevel(level)


class TestJSONFormatter:
    def test_fields(self):
        data = json.loads(JSONFormatter().format(_record("decoded")))
        assert data["level"] == "INFO"
        assert data["logger"] == "engine"
        assert data["message"] == "decoded"
        assert "extra" not in data

    def test_extra_fields(self):
        data = json.loads(JSONFormatter().format(_record(audio_bytes=1024)))
        assert data["extra"] == {"audio_bytes": 1024}


class TestColoredFormatter:
    def test_levelname_restored(self):
        record = _record(level=logging.WARNING)
        text = ColoredFormatter("%(levelname)s %(message)s").format(record)
        assert "\033[33m" in text
        assert record.levelname == "WARNING"


class TestSetupLogging:
    def test_console_and_file(self, tmp_path, restore_root_logger):
        log_file = tmp_path / "logs" / "cry.log"
        setup_logging(level="DEBUG", log_format="text", log_file=str(log_file))

        root = restore_root_logger
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 2

        logging.getLogger("analyzer.heuristic").info("stage done")
        for handler in root.handlers:
            handler.flush()
        line = log_file.read_text().strip().splitlines()[-1]
        assert json.loads(line)["message"] == "stage done"

    def test_console_disabled(self, restore_root_logger):
        setup_logging(console_enabled=False)
        assert restore_root_logger.handlers == []


class TestContextLogger:
    def test_context_added(self, caplog):
        log = create_logger_with_context("engine", {"audio_bytes": 48044})
        with caplog.at_level(logging.INFO, logger="engine"):
            log.info("Analyzing")
        assert caplog.records[-1].audio_bytes == 48044
