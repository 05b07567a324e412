"""Tests für die minutecron Error-Hierarchie."""

from __future__ import annotations

import pytest

from minutecron.core.errors import (
    ConfigError,
    InvalidExpressionError,
    MinuteCronError,
    TaskExecutionError,
)


class TestErrorHierarchy:
    @pytest.mark.parametrize("cls", [ConfigError, InvalidExpressionError, TaskExecutionError])
    def test_subclasses_base(self, cls: type) -> None:
        assert issubclass(cls, MinuteCronError)

    def test_invalid_expression_is_value_error(self) -> None:
        assert issubclass(InvalidExpressionError, ValueError)


class TestInvalidExpressionError:
    def test_without_task(self) -> None:
        err = InvalidExpressionError("1-", field_text="1-")
        assert str(err) == "Invalid expression: 1-"
        assert err.error_code == "INVALID_EXPRESSION"
        assert err.details == {"expression": "1-", "field_text": "1-"}

    def test_with_task(self) -> None:
        err = InvalidExpressionError("* * *", "nightly")
        assert str(err) == "Invalid cron expression '* * *' for task 'nightly'"
        assert err.task_name == "nightly"
        assert err.field_text is None


class TestTaskExecutionError:
    def test_carries_cause(self) -> None:
        cause = KeyError("missing")
        err = TaskExecutionError("sync", cause)
        assert err.task_name == "sync"
        assert err.cause is cause
        assert err.error_code == "TASK_EXECUTION_FAILED"
        assert "sync" in str(err)
        assert err.details["task_name"] == "sync"


class TestConfigError:
    def test_defaults(self) -> None:
        err = ConfigError("bad")
        assert err.error_code == "CONFIG_ERROR"
        assert err.details == {}
