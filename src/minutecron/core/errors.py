"""minutecron · Error Hierarchy.

All custom exceptions inherit from MinuteCronError, which carries an
error_code and optional details dict for programmatic handling.

Usage::

    from minutecron.core.errors import InvalidExpressionError

    raise InvalidExpressionError("0 25 * * *", task_name="nightly")
"""

from __future__ import annotations


class MinuteCronError(Exception):
    """Base exception for all minutecron errors."""

    def __init__(
        self,
        message: str,
        error_code: str = "MINUTECRON_ERROR",
        details: dict | None = None,
    ) -> None:
        super().__init__(message)
        self.error_code = error_code
        self.details = details or {}


class InvalidExpressionError(MinuteCronError, ValueError):
    """A cron expression (or one of its fields) failed validation.

    Raised synchronously from ``add_task``, never from the scheduling loop.
    """

    def __init__(
        self,
        expression: str,
        task_name: str | None = None,
        *,
        field_text: str | None = None,
        error_code: str = "INVALID_EXPRESSION",
    ) -> None:
        if task_name is None:
            message = f"Invalid expression: {expression}"
        else:
            message = f"Invalid cron expression '{expression}' for task '{task_name}'"
        details: dict = {"expression": expression}
        if task_name is not None:
            details["task_name"] = task_name
        if field_text is not None:
            details["field_text"] = field_text
        super().__init__(message, error_code=error_code, details=details)
        self.expression = expression
        self.task_name = task_name
        self.field_text = field_text


class TaskExecutionError(MinuteCronError):
    """A task callback raised or returned a failed result.

    Never propagated to callers; only handed to ``TaskListener.task_failed``.
    """

    def __init__(
        self,
        task_name: str,
        cause: BaseException,
        error_code: str = "TASK_EXECUTION_FAILED",
    ) -> None:
        super().__init__(
            f"Error executing task '{task_name}': {cause!r}",
            error_code=error_code,
            details={"task_name": task_name, "error": str(cause)},
        )
        self.task_name = task_name
        self.cause = cause


class ConfigError(MinuteCronError):
    """Configuration-related errors (loading, validation)."""

    def __init__(
        self,
        message: str,
        error_code: str = "CONFIG_ERROR",
        details: dict | None = None,
    ) -> None:
        super().__init__(message, error_code=error_code, details=details)
