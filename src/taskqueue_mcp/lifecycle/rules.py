"""Task and project lifecycle rules.

Tasks move freely between ``not started``, ``in progress`` and ``done`` while
unapproved. Approval freezes a task. A project can only be finalized once
every task is done and approved, and finalization is an explicit act.
"""

from __future__ import annotations

from typing import Any, Mapping

from ..errors import ConflictError, ValidationError
from ..storage.models import TASK_STATUSES, Project, Task

STATE_FILTERS: tuple[str, ...] = ("open", "pending_approval", "completed", "all")
READY_TO_FINALIZE = "ready_to_finalize"

UPDATABLE_FIELDS: tuple[str, ...] = (
    "title",
    "description",
    "status",
    "completed_details",
    "tool_recommendations",
    "rule_recommendations",
)


def ensure_project_open(project: Project) -> None:
    if project.completed:
        raise ConflictError(
            f"Project {project.project_id} is completed; its tasks can no longer be changed"
        )


def ensure_task_mutable(task: Task) -> None:
    if task.approved:
        raise ConflictError(f"Task {task.id} is approved and can no longer be modified")


def validate_status(status: Any) -> str:
    if status not in TASK_STATUSES:
        raise ValidationError(
            f"Invalid status '{status}'. Must be one of: {', '.join(TASK_STATUSES)}"
        )
    return status


def apply_task_update(project: Project, task: Task, changes: Mapping[str, Any]) -> Task:
    """Apply a partial update to ``task`` and return the stored result.

    ``None`` values mean "leave unchanged". Every check runs against a copy, so
    a rejected update leaves the task exactly as it was.
    """

    unknown = sorted(set(changes) - set(UPDATABLE_FIELDS))
    if unknown:
        raise ValidationError(f"Unknown task field(s): {', '.join(unknown)}")

    ensure_project_open(project)
    ensure_task_mutable(task)

    updates = {name: value for name, value in changes.items() if value is not None}
    for name in ("title", "description"):
        if name in updates and not str(updates[name]).strip():
            raise ValidationError(f"Invalid or missing required parameter: {name}")
    if "status" in updates:
        validate_status(updates["status"])

    candidate = task.model_copy(update=updates)
    if candidate.status == "done":
        if not candidate.completed_details.strip():
            raise ValidationError(
                "completedDetails is required when setting status to 'done'"
            )
        if project.auto_approve:
            candidate.approved = True
    elif updates.get("completed_details", "").strip():
        raise ValidationError("completedDetails can only be set on a task whose status is 'done'")
    else:
        candidate.completed_details = ""

    index = next(i for i, existing in enumerate(project.tasks) if existing.id == task.id)
    project.tasks[index] = candidate
    return candidate


def approve_task(project: Project, task: Task) -> Task:
    ensure_project_open(project)
    if task.approved:
        raise ConflictError(f"Task {task.id} is already approved")
    if task.status != "done":
        raise ValidationError(
            f"Task {task.id} cannot be approved until it is done (current status: {task.status})"
        )
    task.approved = True
    return task


def blocking_tasks(project: Project) -> list[Task]:
    return [task for task in project.tasks if not (task.status == "done" and task.approved)]


def finalize_project(project: Project) -> Project:
    """Mark ``project`` completed once every task is done and approved."""

    if project.completed:
        raise ValidationError(f"Project {project.project_id} is already completed")
    blocking = blocking_tasks(project)
    if blocking:
        raise ValidationError(
            f"Project {project.project_id} cannot be finalized; tasks not yet done and approved: "
            + ", ".join(task.id for task in blocking)
        )
    project.completed = True
    return project


def next_task(project: Project) -> Task | None:
    """Return the first unapproved task in sequence order, whatever its status."""

    for task in project.tasks:
        if not task.approved:
            return task
    return None


def task_state(task: Task) -> str:
    if task.status != "done":
        return "open"
    if not task.approved:
        return "pending_approval"
    return "completed"


def project_state(project: Project) -> str:
    """Classify a project for filtering.

    A project whose tasks are all done and approved (including one with no
    tasks) stays ``ready_to_finalize`` until it is explicitly finalized.
    """

    if project.completed:
        return "completed"
    if any(task.status != "done" for task in project.tasks):
        return "open"
    if any(not task.approved for task in project.tasks):
        return "pending_approval"
    return READY_TO_FINALIZE


def validate_state_filter(state: str | None) -> str:
    if state is None or state == "":
        return "all"
    if state not in STATE_FILTERS:
        raise ValidationError(
            f"Invalid state filter '{state}'. Must be one of: {', '.join(STATE_FILTERS)}"
        )
    return state


def matches_state(state_filter: str, classification: str) -> bool:
    return state_filter == "all" or state_filter == classification


__all__ = [
    "READY_TO_FINALIZE",
    "STATE_FILTERS",
    "UPDATABLE_FIELDS",
    "apply_task_update",
    "approve_task",
    "blocking_tasks",
    "ensure_project_open",
    "ensure_task_mutable",
    "finalize_project",
    "matches_state",
    "next_task",
    "project_state",
    "task_state",
    "validate_state_filter",
    "validate_status",
]
