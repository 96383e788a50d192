"""Unit tests for structured logging setup."""

from __future__ import annotations

import json
import logging

import pytest
import structlog

from buildtrack.config import LoggingConfig
from buildtrack.core.logging import configure_logging


@pytest.fixture(autouse=True)
def restore_root_logger():
    level = logging.getLogger().level
    yield
    configure_logging()
    logging.getLogger().setLevel(level)


class TestConfigureLogging:
    """Test that LoggingConfig drives level and renderer."""

    def test_level_applied_to_root(self):
        configure_logging(LoggingConfig(level="WARNING", format="text"))

        assert logging.getLogger().level == logging.WARNING

    def test_json_format_renders_stdlib_records(self, capsys):
        configure_logging(LoggingConfig(level="INFO", format="json"))

        logging.getLogger("buildtrack.scheduling").info("Generated %d tasks", 4)

        line = capsys.readouterr().err.strip().splitlines()[-1]
        event = json.loads(line)
        assert event["event"] == "Generated 4 tasks"
        assert event["level"] == "info"
        assert event["logger"] == "buildtrack.scheduling"

    def test_text_format_is_not_json(self, capsys):
        configure_logging(LoggingConfig(level="INFO", format="text"))

        logging.getLogger("buildtrack.test").info("hello")

        err = capsys.readouterr().err
        assert "hello" in err
        assert not err.strip().startswith("{")

    def test_below_level_is_dropped(self, capsys):
        configure_logging(LoggingConfig(level="ERROR", format="json"))

        logging.getLogger("buildtrack.test").info("quiet")

        assert "quiet" not in capsys.readouterr().err

    def test_reconfigure_replaces_handler(self):
        configure_logging(LoggingConfig())
        configure_logging(LoggingConfig(format="json"))

        installed = [
            h
            for h in logging.getLogger().handlers
            if isinstance(h.formatter, structlog.stdlib.ProcessorFormatter)
        ]
        assert len(installed) == 1

    def test_reads_environment_by_default(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "error")

        configure_logging()

        assert logging.getLogger().level == logging.ERROR
