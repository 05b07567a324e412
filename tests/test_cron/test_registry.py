"""Tests für die TaskRegistry."""

from __future__ import annotations

from datetime import datetime

import pytest

from minutecron.cron.expression import compile_task
from minutecron.cron.registry import TaskRegistry
from minutecron.models import CompiledTask, TaskInfo, TaskSpec


def _task(name: str, expression: str = "* * * * *") -> CompiledTask:
    return compile_task(TaskSpec(name=name, expression=expression, callback=lambda: None))


@pytest.fixture()
def registry() -> TaskRegistry:
    return TaskRegistry()


class TestTaskRegistry:
    def test_list_in_registration_order(self, registry: TaskRegistry) -> None:
        for name in ("c", "a", "b"):
            registry.add(_task(name))
        assert [info.name for info in registry.list()] == ["c", "a", "b"]
        assert len(registry) == 3

    def test_list_is_projection(self, registry: TaskRegistry) -> None:
        registry.add(_task("a", "0 7 * * 1-5"))
        (info,) = registry.list()
        assert isinstance(info, TaskInfo)
        assert info.expression == "0 7 * * 1-5"
        assert not hasattr(info, "callback")
        assert not hasattr(info, "minute")

    def test_remove_existing(self, registry: TaskRegistry) -> None:
        registry.add(_task("a"))
        assert registry.remove("a") is True
        assert registry.list() == []

    def test_remove_twice_is_noop(self, registry: TaskRegistry) -> None:
        registry.add(_task("a"))
        registry.remove("a")
        assert registry.remove("a") is False

    def test_remove_unknown(self, registry: TaskRegistry) -> None:
        assert registry.remove("ghost") is False

    def test_duplicate_names_remove_first_only(self, registry: TaskRegistry) -> None:
        first = _task("dup", "1 * * * *")
        second = _task("dup", "2 * * * *")
        registry.add(first)
        registry.add(second)

        registry.remove("dup")
        assert registry.snapshot() == [second]

    def test_remove_is_exact_match(self, registry: TaskRegistry) -> None:
        registry.add(_task("Report"))
        assert registry.remove("report") is False
        assert len(registry) == 1

    def test_discard_by_identity(self, registry: TaskRegistry) -> None:
        first = _task("dup")
        second = _task("dup")
        registry.add(first)
        registry.add(second)

        assert registry.discard(second) is True
        assert registry.snapshot() == [first]
        assert registry.discard(second) is False

    def test_get(self, registry: TaskRegistry) -> None:
        task = _task("a")
        registry.add(task)
        assert registry.get("a") is task
        assert registry.get("b") is None

    def test_snapshot_is_copy(self, registry: TaskRegistry) -> None:
        registry.add(_task("a"))
        snap = registry.snapshot()
        registry.add(_task("b"))
        assert len(snap) == 1

    def test_record_run(self, registry: TaskRegistry) -> None:
        task = _task("a")
        registry.add(task)
        when = datetime(2024, 6, 4, 3, 0)

        assert registry.record_run(task, when) == 1
        assert registry.record_run(task, when) == 2
        (info,) = registry.list()
        assert info.run_count == 2
        assert info.last_run == when

    def test_record_run_refuses_removed_record(self, registry: TaskRegistry) -> None:
        task = _task("a")
        registry.add(task)
        registry.remove("a")

        assert registry.record_run(task, datetime(2024, 6, 4, 3, 0)) is None
        assert task.run_count == 0
        assert task.last_run is None

    def test_record_run_refuses_exhausted_record(self, registry: TaskRegistry) -> None:
        task = compile_task(TaskSpec(name="once", expression="* * * * *", callback=lambda: None, max_runs=1))
        registry.add(task)
        when = datetime(2024, 6, 4, 3, 0)

        assert registry.record_run(task, when) == 1
        assert registry.record_run(task, when) is None
        assert task.run_count == 1

    def test_record_run_checks_identity_not_name(self, registry: TaskRegistry) -> None:
        registry.add(_task("dup"))
        stranger = _task("dup")

        assert registry.record_run(stranger, datetime(2024, 6, 4, 3, 0)) is None
