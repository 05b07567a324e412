"""Task-Registry: Besitzt alle kompilierten Tasks eines Schedulers.

Alle Zugriffe laufen über ein ``threading.Lock``, da Tasks aus
Aufrufer-Threads hinzugefügt werden, während ein Tick liest und
Worker-Threads die Lauf-Statistik schreiben.
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import datetime

    from minutecron.models import CompiledTask, TaskInfo


class TaskRegistry:
    """Geordnete Sammlung von CompiledTasks (Registrierungsreihenfolge).

    Doppelte Namen sind erlaubt; ``remove`` entfernt nur den ersten
    Treffer.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._tasks: list[CompiledTask] = []

    def __len__(self) -> int:
        with self._lock:
            return len(self._tasks)

    def add(self, task: CompiledTask) -> None:
        with self._lock:
            self._tasks.append(task)

    def remove(self, name: str) -> bool:
        """Entfernt den ersten Task mit exakt diesem Namen.

        Returns:
            True wenn ein Task entfernt wurde. Ein unbekannter Name ist
            kein Fehler.
        """
        with self._lock:
            for idx, task in enumerate(self._tasks):
                if task.name == name:
                    del self._tasks[idx]
                    return True
        return False

    def discard(self, task: CompiledTask) -> bool:
        """Entfernt genau diesen Task-Record (per Identität)."""
        with self._lock:
            for idx, candidate in enumerate(self._tasks):
                if candidate is task:
                    del self._tasks[idx]
                    return True
        return False

    def get(self, name: str) -> CompiledTask | None:
        """Erster Task mit diesem Namen oder None."""
        with self._lock:
            for task in self._tasks:
                if task.name == name:
                    return task
        return None

    def snapshot(self) -> list[CompiledTask]:
        """Kopie der Task-Liste für einen Tick."""
        with self._lock:
            return list(self._tasks)

    def list(self) -> list[TaskInfo]:
        """Read-only Projektion aller Tasks in Registrierungsreihenfolge."""
        with self._lock:
            return [task.info() for task in self._tasks]

    def record_run(self, task: CompiledTask, started_at: datetime) -> int | None:
        """Bucht einen Lauf: setzt ``last_run`` und erhöht ``run_count``.

        Prüfung und Buchung laufen unter demselben Lock. Ein Record, der
        inzwischen entfernt wurde oder ``max_runs`` erreicht hat, wird
        nicht gebucht.

        Returns:
            Den neuen ``run_count`` oder None wenn der Lauf entfällt.
        """
        with self._lock:
            if task.exhausted or not any(candidate is task for candidate in self._tasks):
                return None
            task.last_run = started_at
            task.run_count += 1
            return task.run_count
