"""API routes package."""

from . import tasks, projects, labels, health

__all__ = ["tasks", "projects", "labels", "health"]
