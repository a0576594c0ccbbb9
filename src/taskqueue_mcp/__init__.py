"""TaskQueue MCP: project and task tracking exposed as MCP tools."""

__version__ = "1.2.0"

__all__ = ["__version__"]
