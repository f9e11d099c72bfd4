"""Todoist relay - REST API and MCP tool server over the Todoist REST API."""

__version__ = "1.0.0"
