# ABOUTME: Tests for logging configuration module
# ABOUTME: Validates dual-mode logging setup and third-party library suppression

import logging
import os
from pathlib import Path
from unittest.mock import patch

from loguru import logger

from wiki_navigator.utils.logging.config import (
    NOISY_LOGGERS,
    LoggingMode,
    configure_logging,
    detect_logging_mode,
    get_logging_status,
)


class TestDetectLoggingMode:
    """Test logging mode detection logic."""

    def test_detect_mode_from_env(self):
        """Test detection of the logging mode from the environment variable."""
        with patch.dict(os.environ, {"WIKI_NAVIGATOR_LOG_MODE": "production"}):
            assert detect_logging_mode() == LoggingMode.PRODUCTION
        with patch.dict(os.environ, {"WIKI_NAVIGATOR_LOG_MODE": "Interactive"}):
            assert detect_logging_mode() == LoggingMode.INTERACTIVE

    def test_detect_mode_from_env_invalid(self):
        """Test fallback to TTY detection when the variable has an invalid value."""
        with (
            patch.dict(os.environ, {"WIKI_NAVIGATOR_LOG_MODE": "invalid"}),
            patch("sys.stdout.isatty", return_value=True),
        ):
            assert detect_logging_mode() == LoggingMode.INTERACTIVE

    def test_detect_mode_from_tty(self):
        """Test detection of production mode from a non-TTY stdout."""
        with patch.dict(os.environ, {}, clear=True), patch("sys.stdout.isatty", return_value=False):
            assert detect_logging_mode() == LoggingMode.PRODUCTION


class TestConfigureLogging:
    """Test logging configuration functionality."""

    def teardown_method(self):
        """Reset standard library loggers and loguru sinks."""
        for logger_name in ["", *NOISY_LOGGERS, "py.warnings"]:
            std_logger = logging.getLogger(logger_name)
            std_logger.handlers.clear()
            std_logger.setLevel(logging.NOTSET)
        logging.captureWarnings(False)
        logger.remove()

    def test_interactive_mode_creates_log_directory(self, tmp_path, monkeypatch):
        """Test that interactive mode creates the logs directory."""
        monkeypatch.chdir(tmp_path)

        configure_logging(mode=LoggingMode.INTERACTIVE, log_level="INFO")

        assert Path("logs").is_dir()
        assert logging.getLogger("httpx").level == logging.WARNING

    def test_interactive_mode_writes_log_file(self, tmp_path, monkeypatch):
        """Test that standard library records reach the custom log file."""
        monkeypatch.chdir(tmp_path)
        log_file = tmp_path / "custom.log"

        configure_logging(mode=LoggingMode.INTERACTIVE, log_level="INFO", log_file=str(log_file))
        logging.getLogger("wiki_navigator.test").info("Discovered API endpoint")
        logger.complete()

        assert "Discovered API endpoint" in log_file.read_text()

    def test_custom_log_level(self):
        """Test configuration with custom log level."""
        configure_logging(mode=LoggingMode.PRODUCTION, log_level="DEBUG")

        assert logging.getLogger().level == logging.DEBUG

    def test_third_party_loggers_suppressed(self):
        """Test that third-party loggers are properly suppressed."""
        configure_logging(mode=LoggingMode.PRODUCTION)

        for logger_name in NOISY_LOGGERS:
            assert logging.getLogger(logger_name).level == logging.WARNING, logger_name
        assert logging.getLogger("py.warnings").level == logging.ERROR


class TestGetLoggingStatus:
    """Test logging status reporting."""

    def test_status_interactive_mode(self, tmp_path, monkeypatch):
        """Test status reporting for interactive mode."""
        monkeypatch.chdir(tmp_path)
        (tmp_path / "logs").mkdir()

        with patch("wiki_navigator.utils.logging.config.detect_logging_mode", return_value=LoggingMode.INTERACTIVE):
            status = get_logging_status()

        assert status["mode"] == LoggingMode.INTERACTIVE
        assert status["log_directory"] is not None
        assert status["log_files"]["main"].endswith("wiki-navigator.log")
        assert status["log_files"]["json"].endswith("wiki-navigator.json")
        assert status["log_files"]["errors"].endswith("errors.log")
        assert "httpx" in status["third_party_suppressed"]

    def test_status_production_mode(self, tmp_path, monkeypatch):
        """Test status reporting for production mode."""
        monkeypatch.chdir(tmp_path)

        with patch("wiki_navigator.utils.logging.config.detect_logging_mode", return_value=LoggingMode.PRODUCTION):
            status = get_logging_status()

        assert status["mode"] == LoggingMode.PRODUCTION
        assert status["log_directory"] is None
        assert status["log_files"] == {"main": None, "json": None, "errors": None}
