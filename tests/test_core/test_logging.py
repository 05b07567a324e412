"""
Tests für minutecron.utils.logging – Structured Logging.

Testet:
  - Setup mit verschiedenen Konfigurationen
  - Logger-Erstellung
  - Context-Binding
  - File-Logging
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

from minutecron.utils.logging import (
    LOG_FILE_NAME,
    QUIET_LOGGERS,
    bind_context,
    clear_context,
    get_logger,
    setup_logging,
)

if TYPE_CHECKING:
    from pathlib import Path


class TestLoggingSetup:
    def test_default_setup(self) -> None:
        """Logging initialisiert ohne Fehler."""
        setup_logging(level="INFO", console=True)
        log = get_logger("test")
        log.info("test_event", key="value")

    def test_debug_level(self) -> None:
        setup_logging(level="DEBUG", console=True)
        log = get_logger("test.debug")
        log.debug("debug_event", detail="works")

    def test_json_mode(self) -> None:
        setup_logging(level="INFO", json_logs=True, console=True)
        log = get_logger("test.json")
        log.info("json_test", number=42)

    def test_unknown_level_falls_back(self) -> None:
        setup_logging(level="LOUD", console=True)
        get_logger("test.level").info("still_works")

    def test_file_logging(self, tmp_path: Path) -> None:
        log_dir = tmp_path / "logs"
        setup_logging(level="DEBUG", log_dir=log_dir, console=False)
        log = get_logger("test.file")
        log.info("file_event", path=str(tmp_path))

        assert (log_dir / LOG_FILE_NAME).exists()


class TestContextBinding:
    def test_bind_and_clear(self) -> None:
        setup_logging(level="INFO", console=True)
        bind_context(scheduler="main")
        log = get_logger("test.context")
        log.info("with_context")
        clear_context()
        log.info("without_context")

    def test_bound_context_reaches_file(self, tmp_path: Path) -> None:
        setup_logging(level="INFO", log_dir=tmp_path, console=False)
        bind_context(task="nightly")
        try:
            get_logger("test.context.file").info("context_event")
        finally:
            clear_context()
        for handler in logging.getLogger().handlers:
            handler.flush()

        lines = (tmp_path / LOG_FILE_NAME).read_text(encoding="utf-8").splitlines()
        record = json.loads(lines[-1])
        assert record["event"] == "context_event"
        assert record["task"] == "nightly"
        assert record["level"] == "info"


class TestQuietLoggers:
    def test_library_loggers_raised_to_warning(self) -> None:
        setup_logging(level="DEBUG", console=True)
        for name in QUIET_LOGGERS:
            assert logging.getLogger(name).level == logging.WARNING
        assert "apscheduler" in QUIET_LOGGERS
