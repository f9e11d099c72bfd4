"""
Todoist MCP Server - exposes Todoist tasks, projects and labels as MCP tools.

Every tool returns a single JSON text block. Failures are reported in-band as
{"success": false, "error": ..., "status": ...} because tool results carry no
HTTP status of their own.
"""

import json
import logging
from typing import Any, Optional

from mcp.server.fastmcp import FastMCP

from ..config import Settings
from ..errors import RelayError
from ..models import (
    CreateProjectInput,
    CreateTaskInput,
    ResourceId,
    TaskFilter,
    UpdateProjectInput,
    UpdateTaskInput,
    parse_input,
    to_jsonable,
)
from ..operations import TodoistOperations

logger = logging.getLogger(__name__)


def _text(payload: dict) -> str:
    return json.dumps(payload, indent=2, default=str)


def _ok(data: Any = None, message: Optional[str] = None, count: Optional[int] = None) -> str:
    payload: dict[str, Any] = {"success": True}
    if message:
        payload["message"] = message
    payload["data"] = to_jsonable(data)
    if count is not None:
        payload["count"] = count
    return _text(payload)


def _failed(tool: str, error: RelayError) -> str:
    logger.warning(f"MCP tool {tool} failed [{error.kind.value}]: {error.message}")
    return _text(error.to_dict())


def _args(**kwargs) -> dict:
    """Drop arguments the caller did not supply."""
    return {key: value for key, value in kwargs.items() if value is not None}


class TodoistTools:
    """MCP tool implementations bound to one operations facade."""

    def __init__(self, operations: TodoistOperations):
        self.ops = operations

    # =========================================================================
    # Tasks
    # =========================================================================

    async def get_tasks(
        self,
        project_id: Optional[str] = None,
        section_id: Optional[str] = None,
        label: Optional[str] = None,
        filter: Optional[str] = None,
        lang: Optional[str] = None,
        ids: Optional[list[str]] = None,
    ) -> str:
        """
        Retrieve active tasks from Todoist, optionally filtered.

        Args:
            project_id: Only tasks in this project
            section_id: Only tasks in this section
            label: Only tasks carrying this label name
            filter: Todoist filter query, e.g. "today | overdue" or "p1 & #Work"
            lang: Language of the filter query (e.g. "en")
            ids: Only these task IDs

        Returns:
            JSON with success, data (list of tasks) and count
        """
        logger.info("MCP tool called: get_tasks")
        try:
            query = parse_input(TaskFilter, _args(
                project_id=project_id, section_id=section_id, label=label,
                filter=filter, lang=lang, ids=ids,
            ))
            tasks = await self.ops.list_tasks(query)
        except RelayError as e:
            return _failed("get_tasks", e)
        return _ok(tasks, count=len(tasks))

    async def get_task(self, task_id: ResourceId) -> str:
        """
        Retrieve a single task by ID.

        Args:
            task_id: The ID of the task
        """
        logger.info("MCP tool called: get_task")
        try:
            task = await self.ops.get_task(task_id)
        except RelayError as e:
            return _failed("get_task", e)
        return _ok(task)

    async def create_task(
        self,
        content: str,
        description: Optional[str] = None,
        project_id: Optional[str] = None,
        section_id: Optional[str] = None,
        parent_id: Optional[str] = None,
        labels: Optional[list[str]] = None,
        priority: Optional[int] = None,
        due_string: Optional[str] = None,
        due_date: Optional[str] = None,
        due_datetime: Optional[str] = None,
        due_lang: Optional[str] = None,
    ) -> str:
        """
        Create a new task in Todoist.

        Args:
            content: The task title (required, non-empty)
            description: Longer task notes
            project_id: Project to create the task in (defaults to Inbox)
            section_id: Section within the project
            parent_id: Parent task ID, to create a sub-task
            labels: Label names to attach
            priority: 1 (normal) to 4 (urgent)
            due_string: Natural-language due date, e.g. "tomorrow at 5pm"
            due_date: Due date as YYYY-MM-DD
            due_datetime: Due date and time as RFC 3339 UTC
            due_lang: Language of due_string

        Returns:
            JSON with success, message and data (the created task)
        """
        logger.info("MCP tool called: create_task")
        try:
            task_input = parse_input(CreateTaskInput, _args(
                content=content, description=description, project_id=project_id,
                section_id=section_id, parent_id=parent_id, labels=labels,
                priority=priority, due_string=due_string, due_date=due_date,
                due_datetime=due_datetime, due_lang=due_lang,
            ))
            task = await self.ops.create_task(task_input)
        except RelayError as e:
            return _failed("create_task", e)
        return _ok(task, message=f'Task "{task.content}" created successfully')

    async def update_task(
        self,
        task_id: ResourceId,
        content: Optional[str] = None,
        description: Optional[str] = None,
        labels: Optional[list[str]] = None,
        priority: Optional[int] = None,
        due_string: Optional[str] = None,
        due_date: Optional[str] = None,
        due_datetime: Optional[str] = None,
        due_lang: Optional[str] = None,
        assignee_id: Optional[str] = None,
    ) -> str:
        """
        Update an existing task. Only the fields given are changed.

        Args:
            task_id: The ID of the task to update
            content: New title
            description: New notes
            labels: Replacement label names
            priority: 1 (normal) to 4 (urgent)
            due_string: Natural-language due date
            due_date: Due date as YYYY-MM-DD
            due_datetime: Due date and time as RFC 3339 UTC
            due_lang: Language of due_string
            assignee_id: Collaborator to assign
        """
        logger.info("MCP tool called: update_task")
        try:
            updates = parse_input(UpdateTaskInput, _args(
                content=content, description=description, labels=labels,
                priority=priority, due_string=due_string, due_date=due_date,
                due_datetime=due_datetime, due_lang=due_lang, assignee_id=assignee_id,
            ))
            task = await self.ops.update_task(task_id, updates)
        except RelayError as e:
            return _failed("update_task", e)
        return _ok(task, message=f'Task "{task.content}" updated successfully')

    async def complete_task(self, task_id: ResourceId) -> str:
        """
        Mark a task as completed.

        Args:
            task_id: The ID of the task to complete
        """
        logger.info("MCP tool called: complete_task")
        try:
            await self.ops.close_task(task_id)
        except RelayError as e:
            return _failed("complete_task", e)
        return _ok({"id": task_id, "is_completed": True}, message=f"Task {task_id} completed successfully")

    async def reopen_task(self, task_id: ResourceId) -> str:
        """
        Reopen a completed task.

        Args:
            task_id: The ID of the task to reopen
        """
        logger.info("MCP tool called: reopen_task")
        try:
            await self.ops.reopen_task(task_id)
        except RelayError as e:
            return _failed("reopen_task", e)
        return _ok({"id": task_id, "is_completed": False}, message=f"Task {task_id} reopened successfully")

    async def delete_task(self, task_id: ResourceId) -> str:
        """
        Delete a task from Todoist.

        Args:
            task_id: The ID of the task to delete
        """
        logger.info("MCP tool called: delete_task")
        try:
            await self.ops.delete_task(task_id)
        except RelayError as e:
            return _failed("delete_task", e)
        return _ok({"id": task_id}, message=f"Task {task_id} deleted successfully")

    # =========================================================================
    # Projects
    # =========================================================================

    async def get_projects(self) -> str:
        """Retrieve all projects from Todoist."""
        logger.info("MCP tool called: get_projects")
        try:
            projects = await self.ops.list_projects()
        except RelayError as e:
            return _failed("get_projects", e)
        return _ok(projects, count=len(projects))

    async def get_project(self, project_id: ResourceId) -> str:
        """
        Retrieve a single project by ID.

        Args:
            project_id: The ID of the project
        """
        logger.info("MCP tool called: get_project")
        try:
            project = await self.ops.get_project(project_id)
        except RelayError as e:
            return _failed("get_project", e)
        return _ok(project)

    async def create_project(
        self,
        name: str,
        color: Optional[str] = None,
        parent_id: Optional[str] = None,
        is_favorite: Optional[bool] = None,
        view_style: Optional[str] = None,
    ) -> str:
        """
        Create a new project in Todoist.

        Args:
            name: The project name (required, non-empty)
            color: Todoist color name, e.g. "berry_red"
            parent_id: Parent project ID, to create a sub-project
            is_favorite: Mark the project as a favorite
            view_style: "list" or "board"
        """
        logger.info("MCP tool called: create_project")
        try:
            project_input = parse_input(CreateProjectInput, _args(
                name=name, color=color, parent_id=parent_id,
                is_favorite=is_favorite, view_style=view_style,
            ))
            project = await self.ops.create_project(project_input)
        except RelayError as e:
            return _failed("create_project", e)
        return _ok(project, message=f'Project "{project.name}" created successfully')

    async def update_project(
        self,
        project_id: ResourceId,
        name: Optional[str] = None,
        color: Optional[str] = None,
        is_favorite: Optional[bool] = None,
        view_style: Optional[str] = None,
    ) -> str:
        """
        Update an existing project. Only the fields given are changed.

        Args:
            project_id: The ID of the project to update
            name: New project name
            color: Todoist color name
            is_favorite: Favorite flag
            view_style: "list" or "board"
        """
        logger.info("MCP tool called: update_project")
        try:
            updates = parse_input(UpdateProjectInput, _args(
                name=name, color=color, is_favorite=is_favorite, view_style=view_style,
            ))
            project = await self.ops.update_project(project_id, updates)
        except RelayError as e:
            return _failed("update_project", e)
        return _ok(project, message=f'Project "{project.name}" updated successfully')

    async def delete_project(self, project_id: ResourceId) -> str:
        """
        Delete a project and all of its tasks.

        Args:
            project_id: The ID of the project to delete
        """
        logger.info("MCP tool called: delete_project")
        try:
            await self.ops.delete_project(project_id)
        except RelayError as e:
            return _failed("delete_project", e)
        return _ok({"id": project_id}, message=f"Project {project_id} deleted successfully")

    # =========================================================================
    # Labels & health
    # =========================================================================

    async def get_labels(self) -> str:
        """Retrieve all personal labels from Todoist."""
        logger.info("MCP tool called: get_labels")
        try:
            labels = await self.ops.list_labels()
        except RelayError as e:
            return _failed("get_labels", e)
        return _ok(labels, count=len(labels))

    async def get_label(self, label_id: ResourceId) -> str:
        """
        Retrieve a single label by ID.

        Args:
            label_id: The ID of the label
        """
        logger.info("MCP tool called: get_label")
        try:
            label = await self.ops.get_label(label_id)
        except RelayError as e:
            return _failed("get_label", e)
        return _ok(label)

    async def health_check(self) -> str:
        """Check whether the Todoist API is reachable with the configured token."""
        logger.info("MCP tool called: health_check")
        status = await self.ops.health_check()
        if status["connected"]:
            return _ok(status, message="Todoist service is healthy")
        return _text({
            "success": False,
            "error": f"Todoist service is unreachable: {status.get('error', 'unknown error')}",
            "data": status,
        })


TOOL_NAMES = (
    "get_tasks", "get_task", "create_task", "update_task",
    "complete_task", "reopen_task", "delete_task",
    "get_projects", "get_project", "create_project", "update_project", "delete_project",
    "get_labels", "get_label", "health_check",
)


def create_mcp_server(operations: TodoistOperations, settings: Settings) -> FastMCP:
    """Build a FastMCP server exposing every tool in TOOL_NAMES."""
    mcp = FastMCP(
        settings.server_name,
        instructions="Manage the user's Todoist tasks, projects and labels.",
        port=settings.port,
    )
    tools = TodoistTools(operations)
    for name in TOOL_NAMES:
        method = getattr(tools, name)
        description = (method.__doc__ or "").strip().splitlines()[0]
        mcp.add_tool(method, name=name, description=description)
    logger.info(f"Registered {len(TOOL_NAMES)} MCP tools on server '{settings.server_name}'")
    return mcp
