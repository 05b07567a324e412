"""minutecron cron module -- Parser, Registry und minütlicher Scheduler."""

from minutecron.cron.engine import LoggingTaskListener, MinuteScheduler, TaskListener
from minutecron.cron.expression import TimeSnapshot, compile_task, matches
from minutecron.cron.fields import contains, parse_field
from minutecron.cron.registry import TaskRegistry

__all__ = [
    "LoggingTaskListener",
    "MinuteScheduler",
    "TaskListener",
    "TaskRegistry",
    "TimeSnapshot",
    "compile_task",
    "contains",
    "matches",
    "parse_field",
]
