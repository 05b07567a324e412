"""
minutecron · Shared Test-Fixtures.

Jeder Test bekommt einen eigenen Scheduler mit steuerbarer Uhr und
einem Mock-Listener. Der Dispatch-Delay ist 0, damit Läufe sofort
starten.
"""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor, wait
from datetime import datetime
from typing import TYPE_CHECKING
from unittest.mock import MagicMock

import pytest

from minutecron.config import SchedulerConfig
from minutecron.cron.engine import MinuteScheduler

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator


class FakeClock:
    """Steuerbare Uhr für deterministische Ticks."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def scheduler_config() -> SchedulerConfig:
    """SchedulerConfig ohne Dispatch-Delay."""
    return SchedulerConfig(dispatch_delay_seconds=0.0, max_workers=4)


@pytest.fixture
def clock() -> FakeClock:
    # Dienstag, 4. Juni 2024, 03:00
    return FakeClock(datetime(2024, 6, 4, 3, 0))


@pytest.fixture
def listener() -> MagicMock:
    return MagicMock()


@pytest.fixture
def scheduler(
    scheduler_config: SchedulerConfig,
    clock: FakeClock,
    listener: MagicMock,
) -> Iterator[MinuteScheduler]:
    """Isolierter Scheduler, wird nach dem Test heruntergefahren."""
    instance = MinuteScheduler(scheduler_config, listener=listener, clock=clock)
    yield instance
    instance.shutdown(wait=True)


@pytest.fixture
def run_tick(scheduler: MinuteScheduler) -> Callable[[datetime], int]:
    """Führt einen Tick aus und wartet auf alle gestarteten Läufe.

    Der zurückgegebene Callable liefert die Anzahl dispatchter Läufe.
    """

    def _run(now: datetime) -> int:
        futures = scheduler.tick(now)
        wait(futures, timeout=5)
        return len(futures)

    return _run


@pytest.fixture
def gated_scheduler(
    scheduler_config: SchedulerConfig,
    clock: FakeClock,
    listener: MagicMock,
) -> Iterator[tuple[MinuteScheduler, threading.Event]]:
    """Scheduler mit genau einem Worker, der von Task "blocker" belegt wird.

    "blocker" läuft nur um 03:00 und wartet, bis das Event gesetzt ist.
    Alle weiteren Läufe eines Ticks um 03:00 stehen solange in der Queue.
    """
    gate = threading.Event()
    pool = ThreadPoolExecutor(max_workers=1)
    instance = MinuteScheduler(scheduler_config, listener=listener, clock=clock, executor=pool)
    instance.add_task(name="blocker", expression="0 3 * * *", callback=lambda: gate.wait(5))
    yield instance, gate
    gate.set()
    instance.shutdown()
    pool.shutdown(wait=True)
