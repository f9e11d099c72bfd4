"""
Todoist REST API client.

The only component that talks to Todoist. Every call is a single
authenticated request; responses go through the schema layer and every
failure surfaces as an ApiError. No retries, no caching.
"""

import logging
from typing import Any, Optional, Union

import httpx
from pydantic import ValidationError as PydanticValidationError

from .config import DEFAULT_TIMEOUT, TODOIST_API_BASE
from .errors import ApiError
from .models import (
    CreateTaskInput,
    FilterExpression,
    Label,
    Project,
    ProjectOptions,
    Task,
    TaskFilter,
    UpdateProjectInput,
    UpdateTaskInput,
    field_issues,
    parse_entity,
    parse_id,
    parse_input,
    parse_listing,
)

logger = logging.getLogger(__name__)

TaskQueryArg = Union[FilterExpression, TaskFilter, str, None]


class TodoistClient:
    """Async Todoist REST v2 client backed by httpx.

    Args:
        api_key: Todoist personal API token
        base_url: Override API base URL (useful for testing)
        timeout: Per-request timeout in seconds
        transport: Optional httpx transport (tests pass httpx.MockTransport)
    """

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = TODOIST_API_BASE,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._http = httpx.AsyncClient(
            base_url=self.base_url,
            headers={
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "TodoistClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[dict] = None,
        json: Optional[dict] = None,
    ) -> Any:
        """Issue one request and return the decoded JSON body (None when empty).

        Raises:
            ApiError: On error statuses, undecodable bodies, timeouts and
                connection failures
        """
        try:
            response = await self._http.request(method, path, params=params or None, json=json)
        except httpx.TimeoutException as e:
            logger.error(f"Todoist API: {method} {path} timed out")
            raise ApiError.timeout(e) from e
        except httpx.RequestError as e:
            logger.error(f"Todoist API: {method} {path} failed: {e}")
            raise ApiError.network(e) from e

        logger.debug(f"Todoist API: {method} {path} -> {response.status_code}")

        if response.is_error:
            error = ApiError.from_response(response)
            logger.error(
                f"Todoist API error: {method} {path} -> {response.status_code}",
                extra={"endpoint": path, "upstream_body": error.body},
            )
            raise error

        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise ApiError.invalid_response(
                "body is not JSON", status=response.status_code, body=response.text[:500]
            ) from e

    @staticmethod
    def _path(collection: str, item_id: str, action: str = "") -> str:
        """Build /collection/{id}[/action], rejecting IDs that would alter the path."""
        item_id = parse_id(item_id, field=f"{collection[:-1]}_id")
        path = f"/{collection}/{item_id}"
        return f"{path}/{action}" if action else path

    async def _get_one(self, model, path: str):
        data = await self._request("GET", path)
        return self._validate_one(model, data)

    async def _get_many(self, model, path: str, params: Optional[dict] = None) -> list:
        data = await self._request("GET", path, params=params)
        try:
            return parse_listing(model, data)
        except TypeError as e:
            raise ApiError.invalid_response(str(e)) from e

    @staticmethod
    def _validate_one(model, data):
        try:
            return parse_entity(model, data)
        except PydanticValidationError as e:
            issues = field_issues(e)
            logger.error(
                f"{model.__name__} validation failed: "
                + ", ".join(f"{i['field']} ({i['reason']})" for i in issues),
                extra={"payload": data},
            )
            raise ApiError.invalid_response(f"{model.__name__} failed validation") from e

    # ------------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------------

    async def list_tasks(self, query: TaskQueryArg = None) -> list[Union[Task, dict]]:
        """List active tasks.

        Args:
            query: A raw filter string, a FilterExpression, or TaskFilter options
        """
        if isinstance(query, str):
            query = FilterExpression(query=query)
        params = query.to_params() if query is not None else None
        return await self._get_many(Task, "/tasks", params)

    async def get_task(self, task_id: str) -> Task:
        return await self._get_one(Task, self._path("tasks", task_id))

    async def create_task(self, task: CreateTaskInput) -> Task:
        task = parse_input(CreateTaskInput, task)
        data = await self._request("POST", "/tasks", json=task.to_payload())
        return self._validate_one(Task, data)

    async def update_task(self, task_id: str, updates: UpdateTaskInput) -> Task:
        updates = parse_input(UpdateTaskInput, updates)
        data = await self._request("POST", self._path("tasks", task_id), json=updates.to_payload())
        return self._validate_one(Task, data)

    async def close_task(self, task_id: str) -> None:
        await self._request("POST", self._path("tasks", task_id, "close"))

    async def reopen_task(self, task_id: str) -> None:
        await self._request("POST", self._path("tasks", task_id, "reopen"))

    async def delete_task(self, task_id: str) -> None:
        await self._request("DELETE", self._path("tasks", task_id))

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------

    async def list_projects(self) -> list[Union[Project, dict]]:
        return await self._get_many(Project, "/projects")

    async def get_project(self, project_id: str) -> Project:
        return await self._get_one(Project, self._path("projects", project_id))

    async def create_project(self, name: str, options: Optional[ProjectOptions] = None) -> Project:
        options = parse_input(ProjectOptions, options)
        body = {"name": name, **options.to_payload()}
        data = await self._request("POST", "/projects", json=body)
        return self._validate_one(Project, data)

    async def update_project(self, project_id: str, updates: UpdateProjectInput) -> Project:
        updates = parse_input(UpdateProjectInput, updates)
        data = await self._request("POST", self._path("projects", project_id), json=updates.to_payload())
        return self._validate_one(Project, data)

    async def delete_project(self, project_id: str) -> None:
        await self._request("DELETE", self._path("projects", project_id))

    # ------------------------------------------------------------------
    # Labels
    # ------------------------------------------------------------------

    async def list_labels(self) -> list[Union[Label, dict]]:
        return await self._get_many(Label, "/labels")

    async def get_label(self, label_id: str) -> Label:
        return await self._get_one(Label, self._path("labels", label_id))

    # ------------------------------------------------------------------
    # Health
    # ------------------------------------------------------------------

    async def health_check(self) -> bool:
        """True if a project listing succeeds. Never raises."""
        try:
            await self.list_projects()
        except Exception as e:
            logger.warning(f"Todoist connectivity check failed: {e}")
            return False
        return True
