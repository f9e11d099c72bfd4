"""
Business operations shared by the REST API and the MCP server.

Each operation is a pass-through to one TodoistClient call, wrapped with
invocation/outcome logging. Nothing is cached or retried here.
"""

import asyncio
import functools
import logging
import time
from typing import Any, Union

from .client import TaskQueryArg, TodoistClient
from .config import Settings
from .errors import RelayError
from .logging_config import redact
from .models import (
    CreateProjectInput,
    CreateTaskInput,
    FilterExpression,
    Label,
    Project,
    Task,
    UpdateProjectInput,
    UpdateTaskInput,
    parse_input,
)

logger = logging.getLogger(__name__)

# Cheap task query used by the aggregate health check
HEALTH_TASK_FILTER = "today | overdue"


def _summarize(result: Any) -> str:
    if isinstance(result, list):
        return f"{len(result)} items"
    if isinstance(result, (Task, Project, Label)):
        return f"id={result.id}"
    if isinstance(result, dict):
        return ", ".join(f"{k}={v}" for k, v in result.items() if not isinstance(v, (list, dict)))
    return "ok"


def _inputs(args: tuple, kwargs: dict) -> dict:
    values = {f"arg{i}": arg for i, arg in enumerate(args)}
    values.update(kwargs)
    return redact({
        key: value.model_dump(exclude_unset=True) if hasattr(value, "model_dump") else value
        for key, value in values.items()
    })


def operation(func):
    """Log invocation and outcome of a facade operation."""

    @functools.wraps(func)
    async def wrapper(self, *args, **kwargs):
        name = func.__name__
        logger.info(f"{name} called", extra={"operation": name, "inputs": _inputs(args, kwargs)})
        try:
            result = await func(self, *args, **kwargs)
        except RelayError as e:
            logger.warning(f"{name} failed [{e.kind.value}]: {e.message}", extra={"operation": name})
            raise
        logger.info(f"{name} succeeded: {_summarize(result)}", extra={"operation": name})
        return result

    return wrapper


class TodoistOperations:
    """Transport-agnostic entry point used by both front ends."""

    def __init__(self, client: TodoistClient):
        self.client = client

    # Tasks

    @operation
    async def list_tasks(self, query: TaskQueryArg = None) -> list[Union[Task, dict]]:
        return await self.client.list_tasks(query)

    @operation
    async def get_task(self, task_id: str) -> Task:
        return await self.client.get_task(task_id)

    @operation
    async def create_task(self, task: Union[CreateTaskInput, dict]) -> Task:
        task = parse_input(CreateTaskInput, task)
        return await self.client.create_task(task)

    @operation
    async def update_task(self, task_id: str, updates: Union[UpdateTaskInput, dict]) -> Task:
        updates = parse_input(UpdateTaskInput, updates)
        return await self.client.update_task(task_id, updates)

    @operation
    async def close_task(self, task_id: str) -> None:
        await self.client.close_task(task_id)

    @operation
    async def reopen_task(self, task_id: str) -> None:
        await self.client.reopen_task(task_id)

    @operation
    async def delete_task(self, task_id: str) -> None:
        await self.client.delete_task(task_id)

    # Projects

    @operation
    async def list_projects(self) -> list[Union[Project, dict]]:
        return await self.client.list_projects()

    @operation
    async def get_project(self, project_id: str) -> Project:
        return await self.client.get_project(project_id)

    @operation
    async def create_project(self, project: Union[CreateProjectInput, dict]) -> Project:
        project = parse_input(CreateProjectInput, project)
        return await self.client.create_project(project.name, project.options())

    @operation
    async def update_project(self, project_id: str, updates: Union[UpdateProjectInput, dict]) -> Project:
        updates = parse_input(UpdateProjectInput, updates)
        return await self.client.update_project(project_id, updates)

    @operation
    async def delete_project(self, project_id: str) -> None:
        await self.client.delete_project(project_id)

    # Labels

    @operation
    async def list_labels(self) -> list[Union[Label, dict]]:
        return await self.client.list_labels()

    @operation
    async def get_label(self, label_id: str) -> Label:
        return await self.client.get_label(label_id)

    # Aggregates

    @operation
    async def account_info(self, task_query: TaskQueryArg = None) -> dict:
        """Projects and tasks fetched concurrently.

        If either listing fails the whole call fails; when both fail, the
        first exception to propagate out of asyncio.gather wins.
        """
        projects, tasks = await asyncio.gather(
            self.client.list_projects(),
            self.client.list_tasks(task_query),
        )
        return {
            "projects_count": len(projects),
            "tasks_count": len(tasks),
            "projects": projects,
            "tasks": tasks,
        }

    async def health_check(self) -> dict:
        """Aggregate connectivity check. Never raises."""
        started = time.monotonic()
        try:
            info = await self.account_info(FilterExpression(query=HEALTH_TASK_FILTER))
        except Exception as e:
            logger.warning(f"Todoist health check failed: {e}")
            return {
                "connected": False,
                "error": str(e),
                "response_time_ms": _elapsed_ms(started),
            }
        return {
            "connected": True,
            "projects_count": info["projects_count"],
            "tasks_count": info["tasks_count"],
            "response_time_ms": _elapsed_ms(started),
        }

    async def ready(self) -> bool:
        """Readiness: a single project listing succeeds."""
        return await self.client.health_check()


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


def build_operations(settings: Settings) -> TodoistOperations:
    """Construct the client and facade from process settings."""
    client = TodoistClient(
        settings.todoist_api_key,
        base_url=settings.base_url,
        timeout=settings.timeout,
    )
    return TodoistOperations(client)
