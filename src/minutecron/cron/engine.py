"""Scheduler-Engine: Minütlicher Tick, Abgleich und Dispatch.

Der MinuteScheduler besitzt seine eigene TaskRegistry und genau einen
wartenden Wake-Job auf einem APScheduler ``BackgroundScheduler``. Jeder
Wake ist ein einmaliger ``DateTrigger`` auf die nächste Minutengrenze.
Jeder Tick:

  1. plant sofort den nächsten Wake (nächste Minutengrenze),
  2. erfasst Minute, Stunde, Tag, Monat, Wochentag und Jahr,
  3. prüft jeden registrierten Task gegen diese Werte,
  4. übergibt jeden Treffer unabhängig an einen Worker-Pool.

Ein fehlschlagender oder hängender Callback blockiert weder andere
Tasks noch den nächsten Tick. Fehler landen ausschließlich beim
TaskListener.
"""

from __future__ import annotations

import asyncio
import contextlib
import inspect
import threading
import time
import uuid
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Any, Protocol

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.date import DateTrigger

from minutecron.config import SchedulerConfig
from minutecron.core.errors import TaskExecutionError
from minutecron.cron.expression import TimeSnapshot, compile_task, matches
from minutecron.cron.registry import TaskRegistry
from minutecron.models import TaskSpec
from minutecron.utils.logging import bind_context, clear_context, get_logger

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from apscheduler.job import Job

    from minutecron.config import MinuteCronConfig
    from minutecron.models import CompiledTask, TaskCallback, TaskInfo


log = get_logger(__name__)

_ONE_MINUTE = timedelta(minutes=1)


class TaskListener(Protocol):
    """Empfänger der Start- und Fehler-Benachrichtigungen."""

    def task_started(self, task: TaskInfo) -> None: ...

    def task_failed(self, error: TaskExecutionError) -> None: ...


class LoggingTaskListener:
    """Default-Listener: schreibt beide Benachrichtigungen ins Log."""

    def task_started(self, task: TaskInfo) -> None:
        log.info("task_started", task=task.name, expression=task.expression)

    def task_failed(self, error: TaskExecutionError) -> None:
        log.error(
            "task_failed",
            task=error.task_name,
            error=repr(error.cause),
            exc_info=error.cause,
        )


async def _await_result(result: Awaitable[Any]) -> Any:
    return await result


class MinuteScheduler:
    """In-Process Scheduler mit Minutenauflösung.

    Zustände: gestoppt (kein Wake-Job) und laufend (genau ein wartender
    Wake-Job). Der erste ``add_task`` startet den Scheduler automatisch;
    eine leere Registry stoppt ihn nicht.

    Usage:
        with MinuteScheduler() as scheduler:
            scheduler.add_task(name="report", expression="0 7 * * 1-5", callback=send_report)
            ...

        # oder aus der geladenen Konfiguration
        scheduler = MinuteScheduler.from_config(load_config())

    Attributes:
        registry: Die TaskRegistry dieses Schedulers.
    """

    def __init__(
        self,
        config: SchedulerConfig | None = None,
        *,
        listener: TaskListener | None = None,
        clock: Callable[[], datetime] | None = None,
        executor: Executor | None = None,
    ) -> None:
        """Initialisiert den Scheduler.

        Args:
            config: Scheduler-Einstellungen. None = Defaults.
            listener: Empfänger für "task started"/"task failed".
                None = LoggingTaskListener.
            clock: Liefert die aktuelle Zeit. None = Wanduhr in der
                konfigurierten Zeitzone.
            executor: Worker-Pool für Callbacks. None = eigener
                ThreadPoolExecutor, der bei ``shutdown`` beendet wird.
        """
        self._config = config or SchedulerConfig()
        tz = self._config.tzinfo()
        self._clock = clock or (lambda: datetime.now(tz))
        self._listener: TaskListener = listener or LoggingTaskListener()
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=self._config.max_workers,
            thread_name_prefix="minutecron",
        )
        self.registry = TaskRegistry()

        # Wake-Jobs laufen auf absoluter UTC-Zeit; die Minutengrenze
        # selbst wird über self._clock bestimmt.
        self._scheduler = BackgroundScheduler(timezone="UTC")
        self._state_lock = threading.Lock()
        self._wake_job: Job | None = None

    @classmethod
    def from_config(cls, config: MinuteCronConfig, **kwargs: Any) -> MinuteScheduler:
        """Erzeugt einen Scheduler aus einer geladenen MinuteCronConfig.

        Args:
            config: Ergebnis von ``load_config``.
            **kwargs: ``listener``, ``clock``, ``executor`` wie im Konstruktor.
        """
        return cls(config.scheduler, **kwargs)

    def __enter__(self) -> MinuteScheduler:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.shutdown()

    @property
    def running(self) -> bool:
        """True wenn ein Wake geplant ist."""
        with self._state_lock:
            return self._wake_job is not None

    # === Öffentliche API ===

    def add_task(self, spec: TaskSpec | None = None, /, **fields: Any) -> TaskInfo:
        """Kompiliert und registriert einen Task.

        Akzeptiert entweder eine fertige TaskSpec oder deren Felder als
        Keyword-Argumente (``name``, ``expression``, ``callback``,
        ``comment``, ``max_runs``).

        Returns:
            TaskInfo des neuen Tasks.

        Raises:
            InvalidExpressionError: Ausdruck oder Feld ungültig. Der
                Task wird dann nicht registriert.
        """
        if spec is None:
            spec = TaskSpec(**fields)
        task = compile_task(spec)
        self.registry.add(task)
        log.info("task_added", task=task.name, expression=task.expression, max_runs=task.max_runs)

        if not self.running:
            self.start()
        return task.info()

    def remove_task(self, name: str) -> bool:
        """Entfernt den ersten Task mit diesem Namen (No-op wenn unbekannt).

        Bereits dispatchte, aber noch nicht gestartete Läufe dieses Tasks
        entfallen.
        """
        removed = self.registry.remove(name)
        if removed:
            log.info("task_removed", task=name)
        return removed

    def list_tasks(self) -> list[TaskInfo]:
        """Alle Tasks in Registrierungsreihenfolge."""
        return self.registry.list()

    def start(self) -> None:
        """Plant den ersten Wake auf die nächste Minutengrenze.

        Ein bereits wartender Wake wird vorher verworfen.
        """
        now = self._clock()
        with self._state_lock:
            self._cancel_locked()
            self._schedule_locked(self.next_wake_delay(now))
        log.info("scheduler_started", tasks=len(self.registry))

    def stop(self) -> None:
        """Verwirft den wartenden Wake. Laufende Callbacks laufen weiter."""
        with self._state_lock:
            was_running = self._wake_job is not None
            self._cancel_locked()
        if was_running:
            log.info("scheduler_stopped")

    def shutdown(self, wait: bool = True) -> None:
        """Stoppt den Scheduler und beendet APScheduler und den eigenen Worker-Pool."""
        self.stop()
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)
        if self._owns_executor:
            self._executor.shutdown(wait=wait)

    def next_wake_delay(self, now: datetime) -> float:
        """Sekunden bis zur nächsten Minutengrenze ab ``now``."""
        return _seconds_until(_floor_minute(now) + _ONE_MINUTE, now)

    def tick(self, now: datetime | None = None) -> list[Future[None]]:
        """Prüft alle Tasks gegen ``now`` und dispatcht die Treffer.

        Plant keinen Wake; das erledigt der Wake-Job selbst.

        Args:
            now: Zeitpunkt des Ticks. None = aktuelle Uhrzeit.

        Returns:
            Futures der gestarteten Läufe (nur informativ).
        """
        moment = now if now is not None else self._clock()
        current = TimeSnapshot.from_datetime(self._target_minute(moment))

        futures: list[Future[None]] = []
        for task in self.registry.snapshot():
            if task.exhausted:
                continue
            if matches(task, current):
                futures.append(self._dispatch(task))

        log.debug("tick", at=moment.isoformat(), dispatched=len(futures))
        return futures

    def trigger_now(self, name: str) -> Future[None] | None:
        """Startet einen Task sofort, unabhängig von seinem Ausdruck.

        Returns:
            Future des Laufs oder None wenn der Task unbekannt ist.
        """
        task = self.registry.get(name)
        if task is None or task.exhausted:
            return None
        return self._dispatch(task)

    # === Wake-Jobs ===

    def _target_minute(self, moment: datetime) -> datetime:
        """Minute, die ein Tick zu ``moment`` auswertet.

        Feuert der Wake kurz vor der Minutengrenze (Sekunde über
        ``grace_seconds``), zählt der Tick schon zur nächsten Minute.
        """
        floor = _floor_minute(moment)
        if moment.second > self._config.grace_seconds:
            return floor + _ONE_MINUTE
        return floor

    def _schedule_locked(self, delay: float) -> None:
        if not self._scheduler.running:
            self._scheduler.start()
        job_id = f"minutecron-wake-{uuid.uuid4().hex}"
        run_date = datetime.now(timezone.utc) + timedelta(seconds=delay)
        self._wake_job = self._scheduler.add_job(
            self._on_wake,
            trigger=DateTrigger(run_date=run_date),
            args=[job_id],
            id=job_id,
            name="minutecron-wake",
            misfire_grace_time=None,
        )

    def _cancel_locked(self) -> None:
        if self._wake_job is None:
            return
        # Ein bereits gefeuerter DateTrigger-Job ist schon aus dem Jobstore entfernt
        with contextlib.suppress(JobLookupError):
            self._wake_job.remove()
        self._wake_job = None

    def _on_wake(self, job_id: str) -> None:
        now = self._clock()
        with self._state_lock:
            if self._wake_job is None or self._wake_job.id != job_id:
                return
            # Erst neu planen, dann auswerten
            next_boundary = self._target_minute(now) + _ONE_MINUTE
            self._cancel_locked()
            self._schedule_locked(_seconds_until(next_boundary, now))

        try:
            self.tick(now)
        except Exception:
            log.exception("tick_failed")

    # === Dispatch ===

    def _dispatch(self, task: CompiledTask) -> Future[None]:
        return self._executor.submit(self._run, task)

    def _run(self, task: CompiledTask) -> None:
        delay = self._config.dispatch_delay_seconds
        if delay:
            time.sleep(delay)

        # Entfernt oder am Limit, während der Lauf in der Queue wartete
        if self.registry.record_run(task, self._clock()) is None:
            log.debug("task_run_skipped", task=task.name)
            return

        bind_context(task=task.name)
        try:
            self._notify_started(task)
            _invoke(task.callback)
        except Exception as exc:
            self._notify_failed(TaskExecutionError(task.name, exc))
        finally:
            if task.exhausted and self.registry.discard(task):
                log.info("task_removed_max_runs", runs=task.run_count)
            clear_context()

    def _notify_started(self, task: CompiledTask) -> None:
        try:
            self._listener.task_started(task.info())
        except Exception:
            log.exception("listener_failed", event="task_started")

    def _notify_failed(self, error: TaskExecutionError) -> None:
        try:
            self._listener.task_failed(error)
        except Exception:
            log.exception("listener_failed", event="task_failed")


def _invoke(callback: TaskCallback) -> None:
    """Ruft den Callback auf und wartet ein asynchrones Ergebnis ab."""
    result = callback()
    if inspect.isawaitable(result):
        asyncio.run(_await_result(result))
    elif isinstance(result, Future):
        result.result()


def _floor_minute(moment: datetime) -> datetime:
    return moment.replace(second=0, microsecond=0)


def _seconds_until(target: datetime, now: datetime) -> float:
    return max(0.0, (target - now).total_seconds())
