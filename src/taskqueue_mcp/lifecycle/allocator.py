"""Sequential, never-reused identifiers for projects and tasks."""

from __future__ import annotations

from ..storage.models import Project, TaskQueueState, highest_sequence

PROJECT_PREFIX = "proj-"
TASK_PREFIX = "task-"


def allocate_project_id(state: TaskQueueState) -> str:
    """Reserve and return the next project id.

    The counter is a high-water mark kept on the state, so deleting projects
    never frees their numbers for reuse.
    """

    current = max(
        state.project_counter,
        highest_sequence((project.project_id for project in state.projects), PROJECT_PREFIX),
    )
    state.project_counter = current + 1
    return f"{PROJECT_PREFIX}{state.project_counter}"


def allocate_task_id(project: Project) -> str:
    """Reserve and return the next task id within ``project``."""

    current = max(
        project.task_counter,
        highest_sequence((task.id for task in project.tasks), TASK_PREFIX),
    )
    project.task_counter = current + 1
    return f"{TASK_PREFIX}{project.task_counter}"


__all__ = ["PROJECT_PREFIX", "TASK_PREFIX", "allocate_project_id", "allocate_task_id"]
