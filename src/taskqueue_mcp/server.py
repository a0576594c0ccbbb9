"""FastMCP server bootstrap for TaskQueue."""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Optional

from fastmcp import FastMCP

from . import __version__
from .config import TaskQueueSettings, get_settings
from .manager import TaskManager
from .storage import JsonFileStore
from .tools import register_tools


def configure_logging(level: str) -> None:
    """Configure root logging for the TaskQueue server.

    Records go to stderr; stdout carries the MCP stdio stream.
    """

    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="[%(asctime)s] [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )


def create_server(
    settings: Optional[TaskQueueSettings] = None,
    manager: TaskManager | None = None,
) -> FastMCP:
    """Instantiate the FastMCP server with the task queue tools and status resource."""

    settings = settings or get_settings()
    manager = manager or TaskManager(JsonFileStore(settings.file_path))

    server = FastMCP(
        name="TaskQueue MCP",
        version=__version__,
        instructions=(
            "TaskQueue tracks projects made of ordered tasks. Create a project, fetch "
            "the next task, mark it done with completion details, wait for approval, "
            "and finalize the project once every task is done and approved."
        ),
    )

    handles = register_tools(server, manager=manager)

    @server.resource(
        "resource://taskqueue/status",
        name="taskqueue_status",
        description="Provides the current runtime status for the TaskQueue MCP server.",
        mime_type="application/json",
        tags={"status", "health"},
    )
    async def status_resource() -> str:
        """Return a JSON string summarizing stored projects and tasks."""

        overview = await manager.overview()
        payload = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "server_version": __version__,
            "log_level": settings.log_level,
            "file_path": str(manager.store.path),
            **overview,
        }
        return json.dumps(payload)

    setattr(server, "task_manager", manager)
    setattr(server, "tool_handles", handles)
    return server


def main() -> None:
    """Entry point for running the TaskQueue MCP server via CLI."""

    settings = get_settings()
    configure_logging(settings.log_level)

    server = create_server(settings)
    logging.getLogger(__name__).info(
        "Launching TaskQueue MCP server",
        extra={
            "version": __version__,
            "log_level": settings.log_level,
            "file_path": str(settings.file_path),
        },
    )
    server.run()


if __name__ == "__main__":
    main()
