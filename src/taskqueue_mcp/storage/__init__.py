"""Storage abstractions for TaskQueue MCP."""

from .json_store import JsonFileStore
from .models import TASK_STATUSES, Project, Task, TaskQueueState, TaskStatus

__all__ = [
    "JsonFileStore",
    "Project",
    "TASK_STATUSES",
    "Task",
    "TaskQueueState",
    "TaskStatus",
]
