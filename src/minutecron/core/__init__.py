"""minutecron core -- shared error types."""

from minutecron.core.errors import (
    ConfigError,
    InvalidExpressionError,
    MinuteCronError,
    TaskExecutionError,
)

__all__ = [
    "ConfigError",
    "InvalidExpressionError",
    "MinuteCronError",
    "TaskExecutionError",
]
