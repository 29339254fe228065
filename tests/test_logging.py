"""Tests for the structlog/stdlib logging setup."""

from __future__ import annotations

import json
import logging

import pytest
import structlog

from compsentinel.core.logging import ENGINE_LOGGER, setup_logging


@pytest.fixture(autouse=True)
def _restore_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    named = {name: logging.getLogger(name).level for name in ("compsentinel", ENGINE_LOGGER)}
    yield
    structlog.reset_defaults()
    root.handlers[:] = handlers
    root.setLevel(level)
    for name, named_level in named.items():
        logging.getLogger(name).setLevel(named_level)


class TestSetupLogging:
    def test_json_events_go_to_stderr(self, capsys):
        setup_logging(log_format="json", cache_loggers=False)
        structlog.get_logger(ENGINE_LOGGER).info("match.completed", anchor_matches=2)

        captured = capsys.readouterr()
        assert captured.out == ""
        record = json.loads(captured.err.strip().splitlines()[-1])
        assert record["event"] == "match.completed"
        assert record["anchor_matches"] == 2
        assert record["level"] == "info"
        assert record["logger"] == ENGINE_LOGGER
        assert "timestamp" in record

    def test_engine_level_overrides_package_level(self, monkeypatch, capsys):
        monkeypatch.setenv("COMPSENTINEL_ENGINE_LOG_LEVEL", "warning")
        setup_logging("DEBUG", log_format="json", cache_loggers=False)

        assert logging.getLogger("compsentinel").level == logging.DEBUG
        assert logging.getLogger(ENGINE_LOGGER).level == logging.WARNING
        structlog.get_logger(ENGINE_LOGGER).info("match.checking")
        assert capsys.readouterr().err == ""

    def test_exception_rendered_in_json(self, capsys):
        setup_logging(log_format="json", cache_loggers=False)
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            structlog.get_logger(ENGINE_LOGGER).exception("absorb.expansion_failed")

        record = json.loads(capsys.readouterr().err.strip().splitlines()[-1])
        assert record["level"] == "error"
        assert "RuntimeError: boom" in record["exception"]

    def test_unknown_format_is_rejected(self, monkeypatch):
        monkeypatch.setenv("COMPSENTINEL_LOG_FORMAT", "xml")
        with pytest.raises(ValueError, match="xml"):
            setup_logging(cache_loggers=False)
