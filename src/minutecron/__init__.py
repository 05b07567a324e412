"""minutecron -- In-process task scheduler with minute resolution."""

__version__ = "0.1.0"

from minutecron.core.errors import InvalidExpressionError, TaskExecutionError
from minutecron.cron.engine import MinuteScheduler, TaskListener
from minutecron.models import TaskInfo, TaskSpec

__all__ = [
    "InvalidExpressionError",
    "MinuteScheduler",
    "TaskExecutionError",
    "TaskInfo",
    "TaskListener",
    "TaskSpec",
    "__version__",
]
