"""MCP front end (FastMCP tool server)."""

from .server import TodoistTools, create_mcp_server

__all__ = ["TodoistTools", "create_mcp_server"]
