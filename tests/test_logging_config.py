"""Tests for logging configuration."""

import json
import logging
import sys

from mongo_replicaset_sync.config import LoggingConfig
from mongo_replicaset_sync.logging_config import JSONFormatter, TextFormatter, configure_logging


def _record(level=logging.INFO, msg="test", args=()):
    return logging.LogRecord(
        name="test", level=level, pathname="", lineno=0,
        msg=msg, args=args, exc_info=None,
    )


class TestJSONFormatter:
    def test_formats_as_json(self):
        output = JSONFormatter().format(_record(msg="hello %s", args=("world",)))
        parsed = json.loads(output)
        assert parsed["message"] == "hello world"
        assert parsed["level"] == "INFO"
        assert "timestamp" in parsed

    def test_includes_extra_fields(self):
        record = _record()
        record.member = "10.0.0.5:27017"  # type: ignore
        record.config_updates = 2  # type: ignore
        parsed = json.loads(JSONFormatter().format(record))
        assert parsed["member"] == "10.0.0.5:27017"
        assert parsed["config_updates"] == 2
        assert "instance_id" not in parsed


class TestConfigureLogging:
    def test_json_format(self):
        configure_logging(LoggingConfig(level="DEBUG", format="json"))
        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert all(isinstance(h.formatter, JSONFormatter) for h in root.handlers)

    def test_text_format(self):
        configure_logging(LoggingConfig(level="WARNING", format="text"))
        root = logging.getLogger()
        assert root.level == logging.WARNING
        assert all(isinstance(h.formatter, TextFormatter) for h in root.handlers)

    def test_errors_routed_to_stderr_only(self):
        configure_logging(LoggingConfig())
        handlers = logging.getLogger().handlers
        out = next(h for h in handlers if h.stream is sys.stdout)
        err = next(h for h in handlers if h.stream is sys.stderr)

        warning = _record(level=logging.WARNING)
        error = _record(level=logging.ERROR)
        assert out.filter(warning)
        assert not out.filter(error)
        assert error.levelno >= err.level
        assert warning.levelno < err.level

    def test_suppresses_noisy_loggers(self):
        configure_logging(LoggingConfig())
        assert logging.getLogger("botocore").level >= logging.WARNING
        assert logging.getLogger("pymongo").level >= logging.WARNING
