"""
Schema layer: pydantic models for Todoist entities and client input.

Upstream payloads are validated structurally only. Listings are validated
per item and leniently (a failing item is logged and passed through raw);
client input is validated strictly before any network call.
"""

import logging
from typing import Annotated, Any, Literal, Optional, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator
from pydantic import ValidationError as PydanticValidationError

from .errors import ValidationError

logger = logging.getLogger(__name__)

Priority = Annotated[int, Field(ge=1, le=4, description="1 = normal (lowest), 4 = urgent (highest)")]

# Todoist IDs are opaque alphanumeric strings. They are interpolated into
# upstream paths, so separators and dot segments must never get through.
ID_PATTERN = r"^[A-Za-z0-9_-]+$"
ResourceId = Annotated[str, Field(min_length=1, pattern=ID_PATTERN, description="Todoist resource ID")]

# Longest payload repr written into a schema drift log line
MAX_LOGGED_PAYLOAD = 300


# ============================================================================
# UPSTREAM ENTITIES
# ============================================================================

class UpstreamModel(BaseModel):
    """Base for upstream records. Unknown upstream fields are kept as-is."""

    model_config = ConfigDict(extra="allow")


class Due(UpstreamModel):
    """Due date of a task.

    `datetime` and `timezone` are sometimes omitted entirely and sometimes
    sent as null; both shapes parse to None.
    """

    date: str = Field(min_length=1)
    string: str = Field(min_length=1)
    is_recurring: bool
    datetime: Optional[str] = None
    timezone: Optional[str] = None
    lang: Optional[str] = None


class Task(UpstreamModel):
    id: str
    content: str
    description: str = ""
    is_completed: bool = False
    labels: list[str] = Field(default_factory=list)
    order: int
    priority: Priority
    project_id: str
    section_id: Optional[str] = None
    parent_id: Optional[str] = None
    assignee_id: Optional[str] = None
    assigner_id: Optional[str] = None
    creator_id: str
    created_at: str
    comment_count: int = 0
    url: str
    due: Optional[Due] = None
    # Opaque upstream objects, passed through unvalidated
    duration: Optional[Any] = None
    deadline: Optional[Any] = None


class Project(UpstreamModel):
    id: str
    name: str
    comment_count: int = 0
    order: int = 0
    color: str
    is_shared: bool
    is_favorite: bool
    is_inbox_project: bool = False
    is_team_inbox: bool = False
    view_style: str
    url: str
    parent_id: Optional[str] = None
    description: str = ""

    @field_validator("description", mode="before")
    @classmethod
    def _none_is_empty(cls, value):
        return "" if value is None else value


class Label(UpstreamModel):
    id: str
    name: str
    color: str
    order: int = 0
    is_favorite: bool = False


# ============================================================================
# CLIENT INPUT
# ============================================================================

class InputModel(BaseModel):
    """Base for client-supplied input. Unknown fields are rejected."""

    model_config = ConfigDict(extra="forbid")

    def to_payload(self) -> dict:
        """Request body for upstream: only the fields the caller set."""
        return self.model_dump(exclude_unset=True, exclude_none=True)


class CreateTaskInput(InputModel):
    content: str = Field(min_length=1)
    description: Optional[str] = None
    project_id: Optional[str] = None
    section_id: Optional[str] = None
    parent_id: Optional[str] = None
    order: Optional[int] = None
    labels: Optional[list[str]] = None
    priority: Optional[Priority] = None
    # due_string, due_date and due_datetime are forwarded as given;
    # upstream decides which one wins
    due_string: Optional[str] = None
    due_date: Optional[str] = None
    due_datetime: Optional[str] = None
    due_lang: Optional[str] = None
    assignee_id: Optional[str] = None


class UpdateTaskInput(InputModel):
    content: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    project_id: Optional[str] = None
    section_id: Optional[str] = None
    parent_id: Optional[str] = None
    order: Optional[int] = None
    labels: Optional[list[str]] = None
    priority: Optional[Priority] = None
    due_string: Optional[str] = None
    due_date: Optional[str] = None
    due_datetime: Optional[str] = None
    due_lang: Optional[str] = None
    assignee_id: Optional[str] = None


class ProjectOptions(InputModel):
    parent_id: Optional[str] = None
    color: Optional[str] = None
    is_favorite: Optional[bool] = None
    view_style: Optional[Literal["list", "board"]] = None


class CreateProjectInput(ProjectOptions):
    name: str = Field(min_length=1)

    def options(self) -> ProjectOptions:
        return ProjectOptions(**self.model_dump(exclude={"name"}, exclude_unset=True))


class UpdateProjectInput(InputModel):
    name: Optional[str] = Field(None, min_length=1)
    color: Optional[str] = None
    is_favorite: Optional[bool] = None
    view_style: Optional[Literal["list", "board"]] = None


# ============================================================================
# TASK QUERIES
# ============================================================================

class FilterExpression(BaseModel):
    """A raw Todoist filter-language query, e.g. 'today | overdue'."""

    kind: Literal["expression"] = "expression"
    query: str = Field(min_length=1)

    def to_params(self) -> dict[str, str]:
        return {"filter": self.query}


class TaskFilter(InputModel):
    """Structured task listing options."""

    kind: Literal["options"] = "options"
    project_id: Optional[str] = None
    section_id: Optional[str] = None
    label: Optional[str] = None
    filter: Optional[str] = None
    lang: Optional[str] = None
    ids: Optional[list[str]] = None

    @field_validator("ids", mode="before")
    @classmethod
    def _split_ids(cls, value):
        if isinstance(value, str):
            return [part.strip() for part in value.split(",") if part.strip()]
        return value

    def to_params(self) -> dict[str, str]:
        params = {}
        for name in ("project_id", "section_id", "label", "filter", "lang"):
            value = getattr(self, name)
            if value:
                params[name] = value
        if self.ids:
            params["ids"] = ",".join(self.ids)
        return params


TaskQuery = Annotated[Union[FilterExpression, TaskFilter], Field(discriminator="kind")]


# ============================================================================
# PARSING
# ============================================================================

M = TypeVar("M", bound=BaseModel)


def field_issues(error: PydanticValidationError) -> list[dict]:
    """Flatten a pydantic error into [{field, reason}] entries."""
    issues = []
    for item in error.errors():
        path = ".".join(str(part) for part in item["loc"]) or "(root)"
        issues.append({"field": path, "reason": item["msg"]})
    return issues


def parse_entity(model: type[M], raw: Any) -> M:
    """Validate a single upstream object.

    Raises:
        pydantic.ValidationError: On structural mismatch
    """
    return model.model_validate(raw)


def parse_listing(model: type[M], raw_items: Any) -> list[Union[M, dict]]:
    """Validate an upstream listing item by item.

    Items that fail validation are logged and returned unvalidated, so one
    drifting record never hides the rest of the listing.

    Raises:
        TypeError: If the payload is not a list at all
    """
    if not isinstance(raw_items, list):
        raise TypeError(f"expected a list of {model.__name__} records, got {type(raw_items).__name__}")

    results: list[Union[M, dict]] = []
    for index, raw in enumerate(raw_items):
        try:
            results.append(model.model_validate(raw))
        except PydanticValidationError as e:
            issues = field_issues(e)
            logger.warning(
                f"Schema drift in {model.__name__} listing item {index}: "
                + ", ".join(f"{i['field']} ({i['reason']})" for i in issues)
                + f"; payload={_clip(repr(raw))}",
                extra={"event": "schema_drift", "entity": model.__name__, "issues": issues, "payload": raw},
            )
            results.append(raw)
    return results


def parse_input(model: type[M], raw: Any) -> M:
    """Strictly validate client input.

    Raises:
        ValidationError: With per-field details, before anything is sent upstream
    """
    if isinstance(raw, model):
        return raw
    if raw is None:
        raw = {}
    try:
        return model.model_validate(raw)
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid {_describe(model)}", details=field_issues(e)) from e


_resource_id = TypeAdapter(ResourceId)


def parse_id(value: Any, field: str = "id") -> str:
    """Validate a resource ID before it becomes part of an upstream path.

    Raises:
        ValidationError: If the ID is empty or contains anything but
            letters, digits, '_' and '-'
    """
    try:
        return _resource_id.validate_python(value)
    except PydanticValidationError as e:
        details = [{"field": field, "reason": issue["reason"]} for issue in field_issues(e)]
        raise ValidationError(f"Invalid {field}", details=details) from e


def _clip(text: str) -> str:
    if len(text) <= MAX_LOGGED_PAYLOAD:
        return text
    return text[:MAX_LOGGED_PAYLOAD] + "..."


def _describe(model: type[BaseModel]) -> str:
    names = {
        CreateTaskInput: "task data",
        UpdateTaskInput: "update data",
        CreateProjectInput: "project data",
        UpdateProjectInput: "project update data",
        TaskFilter: "query parameters",
    }
    return names.get(model, model.__name__)


def to_jsonable(value: Any) -> Any:
    """Convert models (or lists of models and raw dicts) into JSON-ready data."""
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, list):
        return [to_jsonable(item) for item in value]
    if isinstance(value, dict):
        return {key: to_jsonable(item) for key, item in value.items()}
    return value
