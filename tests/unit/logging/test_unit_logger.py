# tests/unit/logging/test_unit_logger.py — v2
"""Tests for logging/logger.py — logger factory and formatters."""

from __future__ import annotations

import io
import json
import logging
import sys

from staleguard.config.settings import Settings
from staleguard.logging.context import clear_context, reset_context, worker_context
from staleguard.logging.logger import (
    JsonFormatter,
    TextFormatter,
    get_logger,
    setup_logging,
    setup_logging_from_settings,
)


def _record(msg: str = "Hello", **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="test", level=logging.INFO, pathname="", lineno=0,
        msg=msg, args=(), exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJsonFormatter:
    def setup_method(self):
        clear_context()

    def teardown_method(self):
        clear_context()

    def test_format_basic(self):
        parsed = json.loads(JsonFormatter().format(_record()))
        assert parsed["level"] == "INFO"
        assert parsed["message"] == "Hello"
        assert "timestamp" in parsed
        assert "context" not in parsed

    def test_format_with_worker_context(self):
        with worker_context("v3"):
            parsed = json.loads(JsonFormatter().format(_record()))
        assert parsed["context"] == {"context": "worker", "worker_version": "v3"}

    def test_format_with_reset_context(self):
        with reset_context("ab12cd34", "version_change"):
            parsed = json.loads(JsonFormatter().format(_record()))
        assert parsed["context"]["reset_id"] == "ab12cd34"
        assert parsed["context"]["trigger"] == "version_change"

    def test_format_extra_data(self):
        parsed = json.loads(
            JsonFormatter().format(_record(data={"kind": "error", "count": 2}))
        )
        assert parsed["data"] == {"kind": "error", "count": 2}

    def test_format_exception(self):
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            record = logging.LogRecord(
                name="test", level=logging.ERROR, pathname="", lineno=0,
                msg="failed", args=(), exc_info=sys.exc_info(),
            )
        parsed = json.loads(JsonFormatter().format(record))
        assert "RuntimeError: boom" in parsed["exception"]


class TestTextFormatter:
    def teardown_method(self):
        clear_context()

    def test_format_basic(self):
        output = TextFormatter().format(_record("Hello text"))
        assert "Hello text" in output
        assert "INFO" in output

    def test_format_with_context(self):
        with worker_context("v2"):
            output = TextFormatter().format(_record())
        assert "[worker]" in output
        assert "<v2>" in output

    def test_format_with_reset(self):
        with reset_context("r1", "button"):
            output = TextFormatter().format(_record())
        assert "(reset r1/button)" in output


class TestGetLogger:
    def test_returns_logger(self):
        logger = get_logger("test_module")
        assert logger.name == "staleguard.test_module"


class TestSetupLogging:
    def teardown_method(self):
        logging.getLogger("staleguard").handlers.clear()

    def test_setup_json(self):
        setup_logging(level="DEBUG", log_format="json")
        root = logging.getLogger("staleguard")
        assert root.level == logging.DEBUG
        assert isinstance(root.handlers[0].formatter, JsonFormatter)

    def test_setup_text(self):
        setup_logging(level="INFO", log_format="text")
        root = logging.getLogger("staleguard")
        assert root.level == logging.INFO
        assert isinstance(root.handlers[0].formatter, TextFormatter)

    def test_no_duplicate_handlers(self):
        setup_logging()
        setup_logging()
        assert len(logging.getLogger("staleguard").handlers) == 1

    def test_custom_stream(self):
        stream = io.StringIO()
        setup_logging(log_format="text", stream=stream)
        get_logger("probe").info("written to stream")
        assert "written to stream" in stream.getvalue()

    def test_with_file(self, tmp_path):
        log_file = tmp_path / "logs" / "staleguard.log"
        setup_logging(log_file=str(log_file))
        assert len(logging.getLogger("staleguard").handlers) == 2
        assert log_file.parent.is_dir()

    def test_from_settings(self, tmp_path):
        s = Settings(
            _env_file=None, log_level="WARNING", log_format="text",
            log_file=tmp_path / "app.log",
        )
        setup_logging_from_settings(s)
        root = logging.getLogger("staleguard")
        assert root.level == logging.WARNING
        assert len(root.handlers) == 2

    def test_from_settings_level_override(self):
        setup_logging_from_settings(Settings(_env_file=None), level="DEBUG")
        assert logging.getLogger("staleguard").level == logging.DEBUG
