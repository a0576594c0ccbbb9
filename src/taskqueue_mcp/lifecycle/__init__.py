"""Task and project lifecycle: id allocation and state machine rules."""

from .allocator import allocate_project_id, allocate_task_id
from .rules import (
    READY_TO_FINALIZE,
    STATE_FILTERS,
    apply_task_update,
    approve_task,
    finalize_project,
    next_task,
    project_state,
    task_state,
)

__all__ = [
    "READY_TO_FINALIZE",
    "STATE_FILTERS",
    "allocate_project_id",
    "allocate_task_id",
    "apply_task_update",
    "approve_task",
    "finalize_project",
    "next_task",
    "project_state",
    "task_state",
]
