"""Tests for logging configuration and setup."""

import json
import logging

import pytest
from pydantic import ValidationError

from crcsync.common.logging import LogContext, StructuredFormatter, setup_logging
from crcsync.common.logging_config import LoggingConfig


class TestLoggingConfig:
    """Test LoggingConfig validation."""

    def test_valid_config(self):
        """Test valid logging configuration."""
        config = LoggingConfig(level="INFO", format="json")
        assert config.level == "INFO"
        assert config.format == "json"

    def test_default_values(self):
        """Test default values suit a quiet command line tool."""
        config = LoggingConfig()
        assert config.level == "WARNING"
        assert config.format == "simple"
        assert config.file is None

    def test_rejects_invalid_log_level(self):
        """Test that invalid log levels are rejected."""
        with pytest.raises(ValidationError):
            LoggingConfig(level="TRACE")

    def test_rejects_invalid_format(self):
        """Test that invalid formats are rejected."""
        with pytest.raises(ValidationError):
            LoggingConfig(format="xml")

    def test_rejects_unknown_field(self):
        """Test that unknown keys are rejected."""
        with pytest.raises(ValidationError):
            LoggingConfig(colour=True)

    def test_case_insensitive_values(self):
        """Test that level and format are normalized."""
        config = LoggingConfig(level="debug", format="JSON")
        assert config.level == "DEBUG"
        assert config.format == "json"


class TestSetupLogging:
    """Tests for setup_logging and the structured formatter."""

    @pytest.fixture(autouse=True)
    def restore_root_logger(self):
        root = logging.getLogger()
        handlers = root.handlers[:]
        level = root.level
        yield
        root.handlers[:] = handlers
        root.setLevel(level)

    def test_sets_level_and_single_console_handler(self):
        """Test that setup replaces handlers and applies the level."""
        setup_logging(level="ERROR", format="simple")

        root = logging.getLogger()
        assert root.level == logging.ERROR
        assert len(root.handlers) == 1

    def test_file_handler_writes_json(self, tmp_path):
        """Test that the log file receives JSON records."""
        log_file = tmp_path / "logs" / "crcsync.log"
        setup_logging(level="INFO", format="simple", log_file=log_file)

        logging.getLogger("crcsync.test").info("hello")
        for handler in logging.getLogger().handlers:
            handler.flush()

        record = json.loads(log_file.read_text(encoding="utf-8").splitlines()[-1])
        assert record["message"] == "hello"
        assert record["level"] == "INFO"

    def test_log_context_adds_fields(self):
        """Test that LogContext fields appear in structured output."""
        logger = logging.getLogger("crcsync.test")
        formatter = StructuredFormatter()

        with LogContext(logger, file="a.cpp"):
            record = logger.makeRecord(logger.name, logging.INFO, __file__, 1, "msg", None, None)

        data = json.loads(formatter.format(record))
        assert data["file"] == "a.cpp"

    def test_log_context_restores_factory(self):
        """Test that the record factory is restored on exit."""
        original = logging.getLogRecordFactory()
        with LogContext(logging.getLogger("crcsync.test"), file="a.cpp"):
            assert logging.getLogRecordFactory() is not original
        assert logging.getLogRecordFactory() is original
