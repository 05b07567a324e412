"""
minutecron · Logging.

structlog-Events laufen über das stdlib-Logging, damit auch Meldungen
von APScheduler und concurrent.futures dieselben Handler erreichen.

Ausgabe:
- Konsole (stderr): farbig oder JSON
- Datei (optional): ``minutecron.jsonl``, immer JSON

Worker-Threads binden den Task-Namen per ``bind_context``, sodass jedes
Event eines Laufs ``task=<name>`` trägt.
"""

from __future__ import annotations

import inspect
import logging
import sys
from logging.handlers import RotatingFileHandler
from typing import TYPE_CHECKING, Any

import structlog

if TYPE_CHECKING:
    from pathlib import Path

LOG_FILE_NAME = "minutecron.jsonl"

# Fremd-Logger, die nur ab WARNING interessieren
QUIET_LOGGERS = ("apscheduler", "asyncio", "concurrent")

_FILE_MAX_BYTES = 2 * 1024 * 1024
_FILE_BACKUPS = 2


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)  # type: ignore[no-any-return]


def _pre_chain() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]


def _console_renderer(json_logs: bool) -> structlog.types.Processor:
    if json_logs:
        return structlog.processors.JSONRenderer(ensure_ascii=False)
    # Parametername je nach structlog-Version: pad_event / pad_event_to
    params = inspect.signature(structlog.dev.ConsoleRenderer).parameters
    pad = "pad_event_to" if "pad_event_to" in params else "pad_event"
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty(), **{pad: 30})


def _formatter(renderer: structlog.types.Processor) -> structlog.stdlib.ProcessorFormatter:
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_pre_chain(),
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )


def _build_handlers(
    level: int,
    log_dir: Path | None,
    json_logs: bool,
    console: bool,
) -> list[logging.Handler]:
    handlers: list[logging.Handler] = []

    if console:
        stream = logging.StreamHandler(sys.stderr)
        stream.setLevel(level)
        stream.setFormatter(_formatter(_console_renderer(json_logs)))
        handlers.append(stream)

    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        jsonl = RotatingFileHandler(
            log_dir / LOG_FILE_NAME,
            maxBytes=_FILE_MAX_BYTES,
            backupCount=_FILE_BACKUPS,
            encoding="utf-8",
        )
        jsonl.setLevel(logging.DEBUG)
        jsonl.setFormatter(
            _formatter(
                structlog.processors.JSONRenderer(ensure_ascii=False),
            )
        )
        handlers.append(jsonl)

    return handlers


def setup_logging(
    *,
    level: str = "INFO",
    log_dir: Path | None = None,
    json_logs: bool = False,
    console: bool = True,
) -> None:
    """Konfiguriert structlog und das Root-Logging.

    Mehrfacher Aufruf ersetzt die vorherigen Handler.

    Args:
        level: DEBUG, INFO, WARNING oder ERROR. Unbekannt = INFO.
        log_dir: Verzeichnis für ``minutecron.jsonl``. None = keine Datei.
        json_logs: JSON statt farbiger Ausgabe auf der Konsole.
        console: Ausgabe auf stderr.
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    root = logging.getLogger()
    for old in list(root.handlers):
        root.removeHandler(old)
        old.close()
    for handler in _build_handlers(numeric_level, log_dir, json_logs, console):
        root.addHandler(handler)
    # Root auf DEBUG, damit die Datei alles bekommt; die Konsole filtert selbst
    root.setLevel(logging.DEBUG if log_dir is not None else numeric_level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    structlog.configure(
        processors=[
            *_pre_chain(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def bind_context(**kwargs: Any) -> None:
    """Bindet Werte an alle folgenden Events des aktuellen Threads."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()
