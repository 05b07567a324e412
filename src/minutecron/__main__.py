"""
minutecron -- Entry Point.

Usage: minutecron check "0,15,30,45 0-6 * * 1-4"
       minutecron check "* * * * * 2025" --at 2025-06-03T03:00
       minutecron --version
       python -m minutecron
"""

from __future__ import annotations

import argparse
import sys
from datetime import datetime
from pathlib import Path

from minutecron import __version__
from minutecron.core.errors import ConfigError, InvalidExpressionError

EXIT_OK = 0
EXIT_NO_MATCH = 1
EXIT_INVALID = 2


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Kommandozeilen-Argumente parsen."""
    parser = argparse.ArgumentParser(
        prog="minutecron",
        description="minutecron -- In-process task scheduler with minute resolution",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"minutecron v{__version__}",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Pfad zur config.yaml (Default: ~/.minutecron/config.yaml)",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Log-Level überschreiben",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    check = sub.add_parser("check", help="Ausdruck prüfen und Felder anzeigen")
    check.add_argument("expression", help="Cron-Ausdruck (5 oder 6 Felder)")
    check.add_argument(
        "--at",
        type=datetime.fromisoformat,
        default=None,
        help="Zeitpunkt (ISO-8601), gegen den der Ausdruck geprüft wird",
    )
    return parser.parse_args(argv)


def _format_values(values: tuple[int, ...] | None) -> str:
    if values is None:
        return "*"
    return ",".join(str(v) for v in values)


def run_check(expression: str, at: datetime | None) -> int:
    """Kompiliert den Ausdruck und gibt die expandierten Felder aus."""
    from minutecron.cron.expression import TimeSnapshot, compile_task, matches
    from minutecron.models import TaskSpec

    try:
        task = compile_task(TaskSpec(name="check", expression=expression, callback=lambda: None))
    except InvalidExpressionError as exc:
        print(f"Ungültig: {exc}", file=sys.stderr)
        return EXIT_INVALID

    for label, values in (
        ("minute", task.minute),
        ("hour", task.hour),
        ("day", task.day),
        ("month", task.month),
        ("weekday", task.weekday),
        ("year", task.year),
    ):
        print(f"{label:<8} {_format_values(values)}")

    if at is None:
        return EXIT_OK
    hit = matches(task, TimeSnapshot.from_datetime(at))
    print(f"{at.isoformat()}: {'match' if hit else 'no match'}")
    return EXIT_OK if hit else EXIT_NO_MATCH


def main(argv: list[str] | None = None) -> int:
    """Haupteintrittspunkt."""
    args = parse_args(argv)

    from minutecron.config import load_config
    from minutecron.utils.logging import setup_logging

    try:
        config = load_config(args.config)
    except ConfigError as exc:
        print(f"Konfigurationsfehler: {exc}", file=sys.stderr)
        return EXIT_INVALID

    setup_logging(
        level=args.log_level or config.logging.level,
        log_dir=config.logging.log_dir,
        json_logs=config.logging.json_logs,
        console=config.logging.console,
    )

    if args.command == "check":
        return run_check(args.expression, args.at)
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
