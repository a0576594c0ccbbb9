"""Task manager orchestrating storage, id allocation and lifecycle rules."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Iterable, Mapping

from .errors import NotFoundError, ValidationError
from .lifecycle import allocator, rules
from .storage import JsonFileStore, Project, Task, TaskQueueState

logger = logging.getLogger(__name__)


def _require_text(value: Any, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"Invalid or missing required parameter: {field}")
    return value


def _optional_text(value: Any, field: str) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValidationError(f"Invalid parameter: {field} must be a string")
    return value


def _task_payload(project: Project, task: Task) -> dict[str, Any]:
    return {"projectId": project.project_id, **task.model_dump(mode="json", by_alias=True)}


def _project_summary(project: Project) -> dict[str, Any]:
    return {
        "projectId": project.project_id,
        "initialPrompt": project.initial_prompt,
        "projectPlan": project.project_plan,
        "autoApprove": project.auto_approve,
        "completed": project.completed,
        "state": rules.project_state(project),
        "totalTasks": len(project.tasks),
        "completedTasks": sum(1 for task in project.tasks if task.status == "done"),
        "approvedTasks": sum(1 for task in project.tasks if task.approved),
    }


class TaskManager:
    """Serialize every operation on the file-backed task queue.

    Each operation holds one ``asyncio.Lock`` across the full load, validate,
    mutate and save sequence. State is reloaded on every call so edits made by
    other processes (for example the operator CLI) are picked up; a failed
    validation discards the loaded copy and never reaches the store.
    """

    def __init__(self, store: JsonFileStore) -> None:
        self._store = store
        self._lock = asyncio.Lock()

    @property
    def store(self) -> JsonFileStore:
        return self._store

    @asynccontextmanager
    async def _snapshot(self) -> AsyncIterator[TaskQueueState]:
        async with self._lock:
            yield await asyncio.to_thread(self._store.load)

    @asynccontextmanager
    async def _transaction(self) -> AsyncIterator[TaskQueueState]:
        async with self._lock:
            state = await asyncio.to_thread(self._store.load)
            yield state
            await asyncio.to_thread(self._store.save, state)

    @staticmethod
    def _get_project(state: TaskQueueState, project_id: Any) -> Project:
        project_id = _require_text(project_id, "projectId")
        project = state.find_project(project_id)
        if project is None:
            raise NotFoundError(f"Project {project_id} not found")
        return project

    @staticmethod
    def _get_task(project: Project, task_id: Any) -> Task:
        task_id = _require_text(task_id, "taskId")
        task = project.find_task(task_id)
        if task is None:
            raise NotFoundError(f"Task {task_id} not found in project {project.project_id}")
        return task

    @staticmethod
    def _validate_drafts(drafts: Any, *, indexed: bool = True) -> list[dict[str, str]]:
        if not isinstance(drafts, (list, tuple)):
            raise ValidationError("Invalid or missing required parameter: tasks")
        validated: list[dict[str, str]] = []
        for index, draft in enumerate(drafts):
            if not isinstance(draft, Mapping):
                raise ValidationError(f"Invalid task at tasks[{index}]: expected an object")
            label = f"tasks[{index}]." if indexed else ""
            validated.append(
                {
                    "title": _require_text(draft.get("title"), f"{label}title"),
                    "description": _require_text(draft.get("description"), f"{label}description"),
                    "tool_recommendations": _optional_text(
                        draft.get("toolRecommendations"), f"{label}toolRecommendations"
                    ),
                    "rule_recommendations": _optional_text(
                        draft.get("ruleRecommendations"), f"{label}ruleRecommendations"
                    ),
                }
            )
        return validated

    @staticmethod
    def _append_tasks(project: Project, drafts: Iterable[dict[str, str]]) -> list[Task]:
        created: list[Task] = []
        for draft in drafts:
            task = Task(id=allocator.allocate_task_id(project), **draft)
            project.tasks.append(task)
            created.append(task)
        return created

    # ---------------------------------------------------------------- projects

    async def create_project(
        self,
        initial_prompt: Any,
        tasks: Any,
        *,
        project_plan: str | None = None,
        auto_approve: bool = False,
    ) -> dict[str, Any]:
        initial_prompt = _require_text(initial_prompt, "initialPrompt")
        plan = _optional_text(project_plan, "projectPlan")
        if not isinstance(auto_approve, bool):
            raise ValidationError("Invalid parameter: autoApprove must be a boolean")
        drafts = self._validate_drafts(tasks)

        async with self._transaction() as state:
            project = Project(
                project_id=allocator.allocate_project_id(state),
                initial_prompt=initial_prompt,
                project_plan=plan if plan.strip() else initial_prompt,
                auto_approve=auto_approve,
            )
            created = self._append_tasks(project, drafts)
            state.projects.append(project)

        logger.info(
            "Created project",
            extra={"project_id": project.project_id, "task_count": len(created)},
        )
        return {
            "projectId": project.project_id,
            "totalTasks": len(created),
            "tasks": [_task_payload(project, task) for task in created],
            "message": f"Project {project.project_id} created with {len(created)} tasks.",
        }

    async def read_project(self, project_id: Any) -> dict[str, Any]:
        async with self._snapshot() as state:
            project = self._get_project(state, project_id)
        payload = project.model_dump(mode="json", by_alias=True, exclude={"task_counter"})
        payload["state"] = rules.project_state(project)
        return payload

    async def delete_project(self, project_id: Any) -> dict[str, Any]:
        async with self._transaction() as state:
            project = self._get_project(state, project_id)
            state.projects.remove(project)

        logger.info(
            "Deleted project",
            extra={"project_id": project.project_id, "task_count": len(project.tasks)},
        )
        return {
            "projectId": project.project_id,
            "message": f"Project {project.project_id} and its {len(project.tasks)} tasks were deleted.",
        }

    async def add_tasks_to_project(self, project_id: Any, tasks: Any) -> dict[str, Any]:
        drafts = self._validate_drafts(tasks)
        async with self._transaction() as state:
            project = self._get_project(state, project_id)
            rules.ensure_project_open(project)
            created = self._append_tasks(project, drafts)

        logger.info(
            "Added tasks to project",
            extra={"project_id": project.project_id, "task_ids": [task.id for task in created]},
        )
        return {
            "projectId": project.project_id,
            "tasks": [_task_payload(project, task) for task in created],
            "message": f"Added {len(created)} tasks to project {project.project_id}.",
        }

    async def finalize_project(self, project_id: Any) -> dict[str, Any]:
        async with self._transaction() as state:
            project = self._get_project(state, project_id)
            rules.finalize_project(project)

        logger.info("Finalized project", extra={"project_id": project.project_id})
        return {
            **_project_summary(project),
            "message": f"Project {project.project_id} has been marked as completed.",
        }

    async def list_projects(self, state: str | None = None) -> dict[str, Any]:
        state_filter = rules.validate_state_filter(state)
        async with self._snapshot() as snapshot:
            projects = [
                _project_summary(project)
                for project in snapshot.projects
                if rules.matches_state(state_filter, rules.project_state(project))
            ]
        return {"state": state_filter, "projects": projects}

    # ------------------------------------------------------------------- tasks

    async def create_task(
        self,
        project_id: Any,
        title: Any,
        description: Any,
        *,
        tool_recommendations: str | None = None,
        rule_recommendations: str | None = None,
    ) -> dict[str, Any]:
        [draft] = self._validate_drafts(
            [
                {
                    "title": title,
                    "description": description,
                    "toolRecommendations": tool_recommendations,
                    "ruleRecommendations": rule_recommendations,
                }
            ],
            indexed=False,
        )
        async with self._transaction() as state:
            project = self._get_project(state, project_id)
            rules.ensure_project_open(project)
            [task] = self._append_tasks(project, [draft])

        logger.info(
            "Created task",
            extra={"project_id": project.project_id, "task_id": task.id},
        )
        return _task_payload(project, task)

    async def read_task(self, project_id: Any, task_id: Any) -> dict[str, Any]:
        async with self._snapshot() as state:
            project = self._get_project(state, project_id)
            task = self._get_task(project, task_id)
        return _task_payload(project, task)

    async def update_task(
        self,
        project_id: Any,
        task_id: Any,
        *,
        title: str | None = None,
        description: str | None = None,
        status: str | None = None,
        completed_details: str | None = None,
        tool_recommendations: str | None = None,
        rule_recommendations: str | None = None,
    ) -> dict[str, Any]:
        changes = {
            "title": title,
            "description": description,
            "status": status,
            "completed_details": completed_details,
            "tool_recommendations": tool_recommendations,
            "rule_recommendations": rule_recommendations,
        }
        async with self._transaction() as state:
            project = self._get_project(state, project_id)
            task = self._get_task(project, task_id)
            updated = rules.apply_task_update(project, task, changes)

        logger.info(
            "Updated task",
            extra={
                "project_id": project.project_id,
                "task_id": updated.id,
                "status": updated.status,
                "approved": updated.approved,
                "fields": sorted(name for name, value in changes.items() if value is not None),
            },
        )
        return _task_payload(project, updated)

    async def delete_task(self, project_id: Any, task_id: Any) -> dict[str, Any]:
        async with self._transaction() as state:
            project = self._get_project(state, project_id)
            task = self._get_task(project, task_id)
            rules.ensure_project_open(project)
            rules.ensure_task_mutable(task)
            project.tasks.remove(task)

        logger.info(
            "Deleted task",
            extra={"project_id": project.project_id, "task_id": task.id},
        )
        return {
            "projectId": project.project_id,
            "taskId": task.id,
            "message": f"Task {task.id} was deleted from project {project.project_id}.",
        }

    async def approve_task(self, project_id: Any, task_id: Any) -> dict[str, Any]:
        async with self._transaction() as state:
            project = self._get_project(state, project_id)
            task = self._get_task(project, task_id)
            rules.approve_task(project, task)

        logger.info(
            "Approved task",
            extra={"project_id": project.project_id, "task_id": task.id},
        )
        return _task_payload(project, task)

    async def get_next_task(self, project_id: Any) -> dict[str, Any]:
        async with self._snapshot() as state:
            project = self._get_project(state, project_id)
        task = rules.next_task(project)
        if task is None:
            return {
                "projectId": project.project_id,
                "status": "all_tasks_done",
                "message": (
                    f"All tasks in project {project.project_id} are approved. "
                    "Finalize the project if it is not completed yet."
                ),
            }
        return {"projectId": project.project_id, "status": "next_task", "task": _task_payload(project, task)}

    async def list_tasks(self, project_id: Any = None, state: str | None = None) -> dict[str, Any]:
        state_filter = rules.validate_state_filter(state)
        async with self._snapshot() as snapshot:
            if project_id is None:
                projects = snapshot.projects
            else:
                projects = [self._get_project(snapshot, project_id)]
        tasks = [
            _task_payload(project, task)
            for project in projects
            for task in project.tasks
            if rules.matches_state(state_filter, rules.task_state(task))
        ]
        return {"state": state_filter, "tasks": tasks}

    async def overview(self) -> dict[str, Any]:
        """Return project and task counts grouped by lifecycle state."""

        async with self._snapshot() as state:
            projects_by_state: dict[str, int] = {}
            tasks_by_state: dict[str, int] = {}
            task_total = 0
            for project in state.projects:
                label = rules.project_state(project)
                projects_by_state[label] = projects_by_state.get(label, 0) + 1
                for task in project.tasks:
                    task_total += 1
                    task_label = rules.task_state(task)
                    tasks_by_state[task_label] = tasks_by_state.get(task_label, 0) + 1
            return {
                "projects": {"count": len(state.projects), "by_state": projects_by_state},
                "tasks": {"count": task_total, "by_state": tasks_by_state},
            }


__all__ = ["TaskManager"]
