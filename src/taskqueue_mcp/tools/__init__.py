"""Tool registration for TaskQueue MCP."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Literal

from fastmcp import Context, FastMCP
from fastmcp.exceptions import ToolError

from ..errors import TaskQueueError
from ..manager import TaskManager

StateFilter = Literal["open", "pending_approval", "completed", "all"]
TaskStatusValue = Literal["not started", "in progress", "done"]

TOOL_DESCRIPTIONS: dict[str, str] = {
    "list_projects": (
        "List all projects with their ID, initial prompt and task counts, optionally "
        "filtered by state (open, pending_approval, completed, all)."
    ),
    "read_project": "Read all information for a project by its ID, including its tasks' statuses.",
    "create_project": (
        "Create a new project with an initial prompt and a list of tasks. This is "
        "typically the first step in any workflow."
    ),
    "delete_project": "Delete a project and all its associated tasks.",
    "add_tasks_to_project": "Add new tasks to the end of an existing project.",
    "finalize_project": (
        "Mark a project as complete. Only allowed when every task is both done and "
        "approved. This is typically the last step in a project workflow."
    ),
    "list_tasks": (
        "List tasks, optionally filtered by project ID and/or state (open, "
        "pending_approval, completed, all)."
    ),
    "read_task": "Get the details of a task by project ID and task ID.",
    "create_task": "Create a new task at the end of an existing project.",
    "update_task": (
        "Modify a task's properties. completedDetails is required when setting status to "
        "'done', and approved tasks cannot be modified."
    ),
    "delete_task": "Remove an unapproved task from a project.",
    "approve_task": "Approve a task that is marked 'done'. Approval freezes the task.",
    "get_next_task": (
        "Get the next task to work on in a project: the first task in sequence that is "
        "not yet approved, regardless of its status."
    ),
}


@dataclass(slots=True)
class ToolHandles:
    list_projects: Any
    read_project: Any
    create_project: Any
    delete_project: Any
    add_tasks_to_project: Any
    finalize_project: Any
    list_tasks: Any
    read_task: Any
    create_task: Any
    update_task: Any
    delete_task: Any
    approve_task: Any
    get_next_task: Any
    manager: TaskManager


def register_tools(server: FastMCP, *, manager: TaskManager) -> ToolHandles:
    """Register the task queue tools on the server."""

    async def _invoke(
        context: Context | None,
        tool_name: str,
        call: Awaitable[dict[str, Any]],
    ) -> dict[str, Any]:
        try:
            result = await call
        except TaskQueueError as exc:
            await _emit_log(
                context,
                "warning",
                "Tool call failed",
                extra={"tool": tool_name, "error_kind": exc.kind, "error_message": exc.message},
            )
            raise ToolError(json.dumps(exc.to_dict())) from exc
        await _emit_log(context, "debug", "Tool call succeeded", extra={"tool": tool_name})
        return result

    async def _list_projects(
        state: StateFilter | None = None,
        context: Context | None = None,
    ) -> dict[str, Any]:
        """List projects, optionally filtered by state."""

        return await _invoke(context, "list_projects", manager.list_projects(state))

    async def _read_project(projectId: str, context: Context | None = None) -> dict[str, Any]:
        return await _invoke(context, "read_project", manager.read_project(projectId))

    async def _create_project(
        initialPrompt: str,
        tasks: list[dict[str, Any]],
        projectPlan: str | None = None,
        autoApprove: bool = False,
        context: Context | None = None,
    ) -> dict[str, Any]:
        """Create a project; each task needs a title and description."""

        return await _invoke(
            context,
            "create_project",
            manager.create_project(
                initialPrompt,
                tasks,
                project_plan=projectPlan,
                auto_approve=autoApprove,
            ),
        )

    async def _delete_project(projectId: str, context: Context | None = None) -> dict[str, Any]:
        return await _invoke(context, "delete_project", manager.delete_project(projectId))

    async def _add_tasks_to_project(
        projectId: str,
        tasks: list[dict[str, Any]],
        context: Context | None = None,
    ) -> dict[str, Any]:
        return await _invoke(
            context,
            "add_tasks_to_project",
            manager.add_tasks_to_project(projectId, tasks),
        )

    async def _finalize_project(projectId: str, context: Context | None = None) -> dict[str, Any]:
        return await _invoke(context, "finalize_project", manager.finalize_project(projectId))

    async def _list_tasks(
        projectId: str | None = None,
        state: StateFilter | None = None,
        context: Context | None = None,
    ) -> dict[str, Any]:
        """List tasks across projects or within one project."""

        return await _invoke(context, "list_tasks", manager.list_tasks(projectId, state))

    async def _read_task(
        projectId: str,
        taskId: str,
        context: Context | None = None,
    ) -> dict[str, Any]:
        return await _invoke(context, "read_task", manager.read_task(projectId, taskId))

    async def _create_task(
        projectId: str,
        title: str,
        description: str,
        toolRecommendations: str | None = None,
        ruleRecommendations: str | None = None,
        context: Context | None = None,
    ) -> dict[str, Any]:
        return await _invoke(
            context,
            "create_task",
            manager.create_task(
                projectId,
                title,
                description,
                tool_recommendations=toolRecommendations,
                rule_recommendations=ruleRecommendations,
            ),
        )

    async def _update_task(
        projectId: str,
        taskId: str,
        title: str | None = None,
        description: str | None = None,
        status: TaskStatusValue | None = None,
        completedDetails: str | None = None,
        toolRecommendations: str | None = None,
        ruleRecommendations: str | None = None,
        context: Context | None = None,
    ) -> dict[str, Any]:
        """Partially update a task; omitted fields are left unchanged."""

        return await _invoke(
            context,
            "update_task",
            manager.update_task(
                projectId,
                taskId,
                title=title,
                description=description,
                status=status,
                completed_details=completedDetails,
                tool_recommendations=toolRecommendations,
                rule_recommendations=ruleRecommendations,
            ),
        )

    async def _delete_task(
        projectId: str,
        taskId: str,
        context: Context | None = None,
    ) -> dict[str, Any]:
        return await _invoke(context, "delete_task", manager.delete_task(projectId, taskId))

    async def _approve_task(
        projectId: str,
        taskId: str,
        context: Context | None = None,
    ) -> dict[str, Any]:
        return await _invoke(context, "approve_task", manager.approve_task(projectId, taskId))

    async def _get_next_task(projectId: str, context: Context | None = None) -> dict[str, Any]:
        return await _invoke(context, "get_next_task", manager.get_next_task(projectId))

    handlers: dict[str, Callable[..., Awaitable[dict[str, Any]]]] = {
        "list_projects": _list_projects,
        "read_project": _read_project,
        "create_project": _create_project,
        "delete_project": _delete_project,
        "add_tasks_to_project": _add_tasks_to_project,
        "finalize_project": _finalize_project,
        "list_tasks": _list_tasks,
        "read_task": _read_task,
        "create_task": _create_task,
        "update_task": _update_task,
        "delete_task": _delete_task,
        "approve_task": _approve_task,
        "get_next_task": _get_next_task,
    }

    registered = {
        name: server.tool(name=name, description=TOOL_DESCRIPTIONS[name])(handler)
        for name, handler in handlers.items()
    }
    return ToolHandles(manager=manager, **registered)


__all__ = ["TOOL_DESCRIPTIONS", "ToolHandles", "register_tools"]

logger = logging.getLogger(__name__)


async def _emit_log(
    context: Context | None,
    level: str,
    message: str,
    *,
    extra: dict[str, Any] | None = None,
) -> None:
    """Log locally and mirror the message to the MCP client when a context is available."""

    payload = extra or {}
    fallback = getattr(logger, level, logger.info)
    fallback(message, extra=payload)

    if context is None:
        return
    ctx_method = getattr(context, level, None)
    if callable(ctx_method):
        await ctx_method(f"{message}: {json.dumps(payload, default=str)}")
