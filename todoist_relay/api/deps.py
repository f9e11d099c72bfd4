"""Request-scoped accessors for objects the app factory stores on app.state, and shared path parameters."""

from typing import Annotated

from fastapi import Path, Request

from ..config import Settings
from ..models import ID_PATTERN
from ..operations import TodoistOperations

TaskId = Annotated[str, Path(pattern=ID_PATTERN, description="Todoist task ID")]
ProjectId = Annotated[str, Path(pattern=ID_PATTERN, description="Todoist project ID")]
LabelId = Annotated[str, Path(pattern=ID_PATTERN, description="Todoist label ID")]


def get_operations(request: Request) -> TodoistOperations:
    return request.app.state.operations


def get_settings(request: Request) -> Settings:
    return request.app.state.settings
