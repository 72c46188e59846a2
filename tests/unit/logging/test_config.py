"""Unit tests for logging configuration."""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

import pytest
import structlog

from cluster_test_harness.logging.config import (
    BACKUP_COUNT,
    MAX_LOG_SIZE,
    _setup_file_logging,
    configure_logging,
    get_logger,
)


@pytest.fixture(autouse=True)
def _reset_root_logger() -> Any:
    """Remove handlers added by configure_logging after each test."""
    root = logging.getLogger()
    original_handlers = list(root.handlers)
    original_level = root.level
    yield
    for handler in root.handlers:
        if handler not in original_handlers:
            handler.close()
    root.handlers = original_handlers
    root.setLevel(original_level)
    structlog.reset_defaults()


@pytest.mark.unit
class TestSetupFileLogging:
    """Tests for _setup_file_logging function."""

    def test_creates_log_directory_and_handler(self, tmp_path: Path) -> None:
        """_setup_file_logging should create the log dir and add a rotating handler."""
        log_file = tmp_path / "logs" / "harness.log"
        root = logging.getLogger()
        initial_count = len(root.handlers)

        _setup_file_logging(log_file)

        assert log_file.parent.exists()
        assert len(root.handlers) == initial_count + 1
        handler = root.handlers[-1]
        assert isinstance(handler, RotatingFileHandler)
        assert handler.maxBytes == MAX_LOG_SIZE
        assert handler.backupCount == BACKUP_COUNT


@pytest.mark.unit
class TestConfigureLogging:
    """Tests for configure_logging function."""

    @pytest.mark.parametrize(
        ("kwargs", "expected_level"),
        [
            ({}, logging.WARNING),
            ({"verbose": True}, logging.INFO),
            ({"debug": True}, logging.DEBUG),
            ({"verbose": True, "debug": True}, logging.DEBUG),
        ],
    )
    def test_console_handler_level(self, kwargs: dict[str, bool], expected_level: int) -> None:
        """configure_logging should filter the console handler at the requested level."""
        root = logging.getLogger()
        initial_count = len(root.handlers)

        configure_logging(**kwargs)

        assert len(root.handlers) == initial_count + 1
        assert root.handlers[-1].level == expected_level

    def test_json_output_uses_json_renderer(self) -> None:
        """configure_logging with json_output=True should render JSON on the console."""
        configure_logging(json_output=True)

        formatter = logging.getLogger().handlers[-1].formatter
        assert isinstance(formatter, structlog.stdlib.ProcessorFormatter)
        assert isinstance(formatter.processors[-1], structlog.processors.JSONRenderer)

    def test_log_file_adds_file_handler(self, tmp_path: Path) -> None:
        """configure_logging with log_file should add a console and a file handler."""
        root = logging.getLogger()
        initial_count = len(root.handlers)
        log_file = tmp_path / "harness.log"

        configure_logging(verbose=True, log_file=log_file)

        assert len(root.handlers) == initial_count + 2
        assert isinstance(root.handlers[-1], RotatingFileHandler)

    def test_file_receives_json_events(self, tmp_path: Path) -> None:
        """Events logged after configuration should land in the log file."""
        log_file = tmp_path / "harness.log"
        configure_logging(log_file=log_file)

        get_logger("test").warning("watch_stream_closed", scope="Pod[*] in test-cases")
        for handler in logging.getLogger().handlers:
            handler.flush()

        content = log_file.read_text()
        assert '"event": "watch_stream_closed"' in content
        assert '"scope": "Pod[*] in test-cases"' in content


@pytest.mark.unit
class TestGetLogger:
    """Tests for get_logger function."""

    def test_returns_bound_logger(self) -> None:
        """get_logger should return a structlog logger."""
        logger = get_logger("test")
        assert logger is not None

    def test_binds_initial_context(self) -> None:
        """get_logger should bind initial context when provided."""
        logger = get_logger("test", entity="watcher")
        assert logger is not None
