from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any

import pytest
from fastmcp.exceptions import ToolError

from taskqueue_mcp.manager import TaskManager
from taskqueue_mcp.storage import JsonFileStore
from taskqueue_mcp.tools import TOOL_DESCRIPTIONS, register_tools


class StubTool:
    def __init__(self, fn, name, description):
        self.fn = fn
        self.name = name
        self.description = description


class StubServer:
    def __init__(self) -> None:
        self._tools: dict[str, StubTool] = {}

    def tool(self, *args, **kwargs):
        provided_name = None
        if args and isinstance(args[0], str):
            provided_name = args[0]
        provided_name = kwargs.get("name", provided_name)

        def decorator(fn):
            tool_name = provided_name or fn.__name__
            tool = StubTool(fn, tool_name, kwargs.get("description"))
            self._tools[tool_name] = tool
            return tool

        return decorator


class StubContext:
    def __init__(self) -> None:
        self.messages: list[tuple[str, str]] = []

    async def debug(self, message: str) -> None:
        self.messages.append(("debug", message))

    async def info(self, message: str) -> None:
        self.messages.append(("info", message))

    async def warning(self, message: str) -> None:
        self.messages.append(("warning", message))


def _register(tmp_path: Path):
    server = StubServer()
    manager = TaskManager(JsonFileStore(tmp_path / "tasks.json"))
    handles = register_tools(server, manager=manager)  # type: ignore[arg-type]
    return server, handles


def _call(handle, **kwargs: Any) -> dict[str, Any]:
    return asyncio.run(handle.fn(**kwargs))


def test_all_tools_registered_with_descriptions(tmp_path: Path) -> None:
    server, handles = _register(tmp_path)

    assert set(server._tools) == set(TOOL_DESCRIPTIONS)
    assert len(server._tools) == 13
    for name, tool in server._tools.items():
        assert tool.description == TOOL_DESCRIPTIONS[name]
        assert getattr(handles, name) is tool


def test_project_workflow_through_tools(tmp_path: Path) -> None:
    _, handles = _register(tmp_path)

    created = _call(
        handles.create_project,
        initialPrompt="Write docs",
        tasks=[
            {"title": "Outline", "description": "Draft the outline"},
            {"title": "Write", "description": "Write the pages", "toolRecommendations": "editor"},
        ],
    )
    project_id = created["projectId"]

    next_task = _call(handles.get_next_task, projectId=project_id)
    assert next_task["task"]["id"] == "task-1"

    updated = _call(
        handles.update_task,
        projectId=project_id,
        taskId="task-1",
        status="done",
        completedDetails="Outline agreed",
    )
    assert updated["status"] == "done"
    assert updated["approved"] is False

    approved = _call(handles.approve_task, projectId=project_id, taskId="task-1")
    assert approved["approved"] is True

    added = _call(
        handles.add_tasks_to_project,
        projectId=project_id,
        tasks=[{"title": "Review", "description": "Peer review"}],
    )
    assert added["tasks"][0]["id"] == "task-3"

    single = _call(handles.create_task, projectId=project_id, title="Publish", description="Push")
    assert single["id"] == "task-4"

    _call(handles.delete_task, projectId=project_id, taskId="task-4")
    listing = _call(handles.list_tasks, projectId=project_id, state="open")
    assert [task["id"] for task in listing["tasks"]] == ["task-2", "task-3"]

    read = _call(handles.read_task, projectId=project_id, taskId="task-2")
    assert read["toolRecommendations"] == "editor"

    projects = _call(handles.list_projects, state="open")
    assert projects["projects"][0]["projectId"] == project_id

    project = _call(handles.read_project, projectId=project_id)
    assert project["state"] == "open"

    deleted = _call(handles.delete_project, projectId=project_id)
    assert deleted["projectId"] == project_id


def test_finalize_tool(tmp_path: Path) -> None:
    _, handles = _register(tmp_path)
    created = _call(handles.create_project, initialPrompt="Tiny", tasks=[], autoApprove=True)

    result = _call(handles.finalize_project, projectId=created["projectId"])

    assert result["completed"] is True


@pytest.mark.parametrize(
    ("tool", "kwargs", "kind"),
    [
        ("create_project", {"initialPrompt": "", "tasks": []}, "ValidationError"),
        ("read_project", {"projectId": "proj-404"}, "NotFoundError"),
        ("read_task", {"projectId": "proj-1", "taskId": "task-404"}, "NotFoundError"),
        ("update_task", {"projectId": "proj-1", "taskId": "task-1", "status": "done"}, "ValidationError"),
        ("approve_task", {"projectId": "proj-1", "taskId": "task-1"}, "ValidationError"),
        ("list_projects", {"state": "archived"}, "ValidationError"),
    ],
)
def test_tool_errors_are_structured(tmp_path: Path, tool: str, kwargs: dict[str, Any], kind: str) -> None:
    _, handles = _register(tmp_path)
    _call(handles.create_project, initialPrompt="Seed", tasks=[{"title": "A", "description": "a"}])

    with pytest.raises(ToolError) as excinfo:
        _call(getattr(handles, tool), **kwargs)

    error = json.loads(str(excinfo.value))
    assert error["kind"] == kind
    assert error["message"]


def test_frozen_task_reports_conflict(tmp_path: Path) -> None:
    _, handles = _register(tmp_path)
    _call(
        handles.create_project,
        initialPrompt="Auto",
        tasks=[{"title": "A", "description": "a"}],
        autoApprove=True,
    )
    _call(handles.update_task, projectId="proj-1", taskId="task-1", status="done", completedDetails="ok")

    with pytest.raises(ToolError) as excinfo:
        _call(handles.update_task, projectId="proj-1", taskId="task-1", title="Renamed")

    assert json.loads(str(excinfo.value))["kind"] == "ConflictError"


def test_context_receives_log_messages(tmp_path: Path) -> None:
    _, handles = _register(tmp_path)
    context = StubContext()

    _call(handles.create_project, initialPrompt="Logged", tasks=[], context=context)
    with pytest.raises(ToolError):
        _call(handles.read_project, projectId="proj-9", context=context)

    levels = [level for level, _ in context.messages]
    assert levels == ["debug", "warning"]
    assert "create_project" in context.messages[0][1]
    assert "NotFoundError" in context.messages[1][1]
