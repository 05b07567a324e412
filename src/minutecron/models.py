"""
minutecron · Central data models.

TaskSpec:     what a caller hands to ``add_task``.
TaskInfo:     the read-only projection returned by ``list_tasks``.
CompiledTask: the registry record holding the compiled field sets and
              the run bookkeeping.

Design principles:
  - Immutable (frozen) for everything that leaves the registry
  - Mutable only for the registry record itself
  - The callback and the compiled sets never leave the registry
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

TaskCallback = Callable[[], Any]


class TaskSpec(BaseModel):
    """Eingabe für ``MinuteScheduler.add_task``."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str
    expression: str
    callback: TaskCallback
    comment: str = ""
    max_runs: int | None = Field(default=None, ge=1)


class TaskInfo(BaseModel):
    """Read-only view of a registered task."""

    model_config = ConfigDict(frozen=True)

    name: str
    expression: str
    comment: str = ""
    last_run: datetime | None = None
    run_count: int = Field(default=0, ge=0)
    max_runs: int | None = None


@dataclass(eq=False)
class CompiledTask:
    """Ein kompilierter, registrierter Task.

    Alle Feld-Mengen sind aufsteigend sortiert und ohne Duplikate.
    ``year`` ist ``None`` wenn das Jahr nicht eingeschränkt ist.
    Identität ist Objekt-Identität (``eq=False``), da Namen doppelt
    vorkommen dürfen.
    """

    name: str
    expression: str
    callback: TaskCallback
    minute: tuple[int, ...]
    hour: tuple[int, ...]
    day: tuple[int, ...]
    month: tuple[int, ...]
    weekday: tuple[int, ...]
    year: tuple[int, ...] | None = None
    comment: str = ""
    max_runs: int | None = None
    last_run: datetime | None = None
    run_count: int = 0

    @property
    def exhausted(self) -> bool:
        """True wenn ``max_runs`` erreicht ist."""
        return self.max_runs is not None and self.run_count >= self.max_runs

    def info(self) -> TaskInfo:
        return TaskInfo(
            name=self.name,
            expression=self.expression,
            comment=self.comment,
            last_run=self.last_run,
            run_count=self.run_count,
            max_runs=self.max_runs,
        )
