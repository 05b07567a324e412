"""Cron-Ausdrücke: Kompilieren und Abgleich mit der aktuellen Zeit.

Ein Ausdruck hat fünf oder sechs durch Leerzeichen getrennte Felder::

    minute hour day-of-month month weekday [year]

Beispiel: ``0,15,30,45 0-6 * * 1-4`` läuft jede Viertelstunde zwischen
Mitternacht und 6 Uhr, Montag bis Donnerstag.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from minutecron.core.errors import InvalidExpressionError
from minutecron.cron.fields import DAY, HOUR, MINUTE, MONTH, WEEKDAY, YEAR, contains
from minutecron.models import CompiledTask

if TYPE_CHECKING:
    from datetime import datetime

    from minutecron.models import TaskSpec

MIN_FIELDS = 5
MAX_FIELDS = 6


def split_expression(expression: str) -> list[str]:
    """Zerlegt einen Ausdruck in seine Felder.

    Mehrfache Leerzeichen werden zusammengefasst, Ränder getrimmt.

    Raises:
        InvalidExpressionError: Bei weniger als 5 oder mehr als 6 Feldern.
    """
    parts = expression.split()
    if not MIN_FIELDS <= len(parts) <= MAX_FIELDS:
        raise InvalidExpressionError(expression)
    return parts


def compile_task(spec: TaskSpec) -> CompiledTask:
    """Kompiliert eine TaskSpec in einen CompiledTask.

    Args:
        spec: Name, Ausdruck, Callback und optionale Metadaten.

    Returns:
        CompiledTask mit ``last_run=None`` und ``run_count=0``.

    Raises:
        InvalidExpressionError: Mit Ausdruck und Task-Name, wenn die
            Feldanzahl oder eines der Felder ungültig ist.
    """
    try:
        parts = split_expression(spec.expression)
        minute = MINUTE.parse(parts[0])
        hour = HOUR.parse(parts[1])
        day = DAY.parse(parts[2])
        month = MONTH.parse(parts[3])
        weekday = WEEKDAY.parse(parts[4])
        year = YEAR.parse(parts[5]) if len(parts) == MAX_FIELDS else None
    except InvalidExpressionError as exc:
        raise InvalidExpressionError(
            spec.expression,
            spec.name,
            field_text=exc.field_text,
        ) from exc

    return CompiledTask(
        name=spec.name,
        expression=spec.expression,
        callback=spec.callback,
        minute=minute,
        hour=hour,
        day=day,
        month=month,
        weekday=weekday,
        year=year,
        comment=spec.comment,
        max_runs=spec.max_runs,
    )


@dataclass(frozen=True, slots=True)
class TimeSnapshot:
    """Die sechs Zeitwerte, gegen die ein Tick alle Tasks prüft."""

    minute: int
    hour: int
    day: int
    month: int
    weekday: int  # 0 = Sonntag
    year: int

    @classmethod
    def from_datetime(cls, moment: datetime) -> TimeSnapshot:
        return cls(
            minute=moment.minute,
            hour=moment.hour,
            day=moment.day,
            month=moment.month,
            weekday=moment.isoweekday() % 7,
            year=moment.year,
        )


def matches(task: CompiledTask, now: TimeSnapshot) -> bool:
    """True wenn alle Felder des Tasks den Zeitpunkt enthalten.

    Das Jahr wird nur geprüft, wenn der Task es einschränkt.
    """
    return (
        contains(task.minute, now.minute)
        and contains(task.hour, now.hour)
        and contains(task.day, now.day)
        and contains(task.month, now.month)
        and contains(task.weekday, now.weekday)
        and (task.year is None or contains(task.year, now.year))
    )
