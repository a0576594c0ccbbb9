"""TaskQueue operator CLI."""

from __future__ import annotations

import argparse
import asyncio
import json
from pathlib import Path
from typing import Any, Coroutine

from pydantic import ValidationError as SettingsValidationError

from .config import TaskQueueSettings
from .errors import TaskQueueError
from .lifecycle import READY_TO_FINALIZE, STATE_FILTERS
from .manager import TaskManager
from .plans import PlanLoadError, PlanLoader
from .storage import JsonFileStore


def load_manager(args: argparse.Namespace) -> TaskManager:
    if getattr(args, "file", None):
        path = Path(args.file)
    else:
        try:
            path = TaskQueueSettings().file_path
        except SettingsValidationError as exc:
            print(f"ValidationError: invalid configuration: {exc}")
            raise SystemExit(1)
    return TaskManager(JsonFileStore(path.expanduser().resolve()))


def _run(call: Coroutine[Any, Any, dict[str, Any]]) -> dict[str, Any]:
    try:
        return asyncio.run(call)
    except TaskQueueError as exc:
        print(f"{exc.kind}: {exc.message}")
        raise SystemExit(1)


def cmd_approve(args: argparse.Namespace) -> None:
    manager = load_manager(args)
    task = _run(manager.approve_task(args.project_id, args.task_id))
    print(json.dumps(task, indent=2))

    overview = _run(manager.read_project(args.project_id))
    if overview["state"] == READY_TO_FINALIZE:
        print(f"All tasks in {args.project_id} are approved; run 'finalize {args.project_id}'.")


def cmd_finalize(args: argparse.Namespace) -> None:
    manager = load_manager(args)
    project = _run(manager.finalize_project(args.project_id))
    print(json.dumps(project, indent=2))


def cmd_list(args: argparse.Namespace) -> None:
    manager = load_manager(args)
    if args.project:
        payload = _run(manager.list_tasks(args.project, args.state))
        if args.json:
            print(json.dumps(payload, indent=2))
            return
        for task in payload["tasks"]:
            approved = "approved" if task["approved"] else "unapproved"
            print(f"{task['id']} [{task['status']}, {approved}] {task['title']}")
        return

    payload = _run(manager.list_projects(args.state))
    if args.json:
        print(json.dumps(payload, indent=2))
        return
    for project in payload["projects"]:
        print(
            f"{project['projectId']} [{project['state']}] "
            f"{project['approvedTasks']}/{project['totalTasks']} approved - {project['initialPrompt']}"
        )


def cmd_import_plan(args: argparse.Namespace) -> None:
    try:
        plan = PlanLoader().load(args.plan)
    except PlanLoadError as exc:
        print(f"Plan unavailable: {exc}")
        raise SystemExit(1)

    manager = load_manager(args)
    result = _run(
        manager.create_project(
            plan.initial_prompt,
            plan.task_drafts(),
            project_plan=plan.project_plan,
            auto_approve=plan.auto_approve,
        )
    )
    print(json.dumps(result, indent=2))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="TaskQueue operator CLI")
    parser.add_argument(
        "--file",
        help="Task file to operate on (defaults to TASK_MANAGER_FILE_PATH or the OS data directory)",
    )
    sub = parser.add_subparsers(dest="cmd")

    p_approve = sub.add_parser("approve", help="Approve a task that is marked done")
    p_approve.add_argument("project_id")
    p_approve.add_argument("task_id")
    p_approve.set_defaults(func=cmd_approve)

    p_finalize = sub.add_parser("finalize", help="Mark a fully approved project as completed")
    p_finalize.add_argument("project_id")
    p_finalize.set_defaults(func=cmd_finalize)

    p_list = sub.add_parser("list", help="List projects, or the tasks of one project")
    p_list.add_argument("--project", help="List the tasks of this project instead of projects")
    p_list.add_argument("--state", choices=STATE_FILTERS, default=None)
    p_list.add_argument("--json", action="store_true", help="Output JSON")
    p_list.set_defaults(func=cmd_list)

    p_import = sub.add_parser("import-plan", help="Create a project from a YAML or JSON plan file")
    p_import.add_argument("plan")
    p_import.set_defaults(func=cmd_import_plan)

    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not hasattr(args, "func"):
        parser.print_help()
        return
    args.func(args)


if __name__ == "__main__":
    main()
