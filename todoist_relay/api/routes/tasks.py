"""Task API routes."""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Query, Request

from ...models import CreateTaskInput, TaskFilter, UpdateTaskInput, parse_input, to_jsonable
from ...operations import TodoistOperations
from ..deps import TaskId, get_operations

router = APIRouter(tags=["tasks"])


@router.get("/tasks")
async def list_tasks(
    request: Request,
    project_id: Optional[str] = Query(None, description="Only tasks in this project"),
    section_id: Optional[str] = Query(None, description="Only tasks in this section"),
    label: Optional[str] = Query(None, description="Only tasks with this label name"),
    filter: Optional[str] = Query(None, description="Todoist filter query, e.g. 'today | overdue'"),
    lang: Optional[str] = Query(None, description="Language of the filter query"),
    ids: Optional[str] = Query(None, description="Comma separated task IDs"),
    ops: TodoistOperations = Depends(get_operations),
):
    """List active tasks with optional filtering. Unknown query parameters are rejected with 400."""
    raw = {
        "project_id": project_id,
        "section_id": section_id,
        "label": label,
        "filter": filter,
        "lang": lang,
        "ids": ids,
    }
    # Pass unrecognised parameters along so TaskFilter reports them
    raw.update({key: value for key, value in request.query_params.items() if key not in raw})
    query = parse_input(TaskFilter, raw)
    tasks = await ops.list_tasks(query)
    return {"success": True, "data": to_jsonable(tasks), "count": len(tasks)}


@router.post("/tasks", status_code=201)
async def create_task(
    payload: Dict[str, Any] = Body(...),
    ops: TodoistOperations = Depends(get_operations),
):
    """Create a task. `content` is required; priority must be 1-4."""
    task = await ops.create_task(parse_input(CreateTaskInput, payload))
    return {"success": True, "data": to_jsonable(task)}


@router.get("/tasks/{task_id}")
async def get_task(task_id: TaskId, ops: TodoistOperations = Depends(get_operations)):
    task = await ops.get_task(task_id)
    return {"success": True, "data": to_jsonable(task)}


@router.patch("/tasks/{task_id}")
async def update_task(
    task_id: TaskId,
    payload: Dict[str, Any] = Body(...),
    ops: TodoistOperations = Depends(get_operations),
):
    """Update any subset of a task's fields."""
    task = await ops.update_task(task_id, parse_input(UpdateTaskInput, payload))
    return {"success": True, "data": to_jsonable(task)}


@router.post("/tasks/{task_id}/complete")
async def complete_task(task_id: TaskId, ops: TodoistOperations = Depends(get_operations)):
    await ops.close_task(task_id)
    return {
        "success": True,
        "message": "Task completed successfully",
        "data": {"id": task_id, "is_completed": True},
    }


@router.post("/tasks/{task_id}/reopen")
async def reopen_task(task_id: TaskId, ops: TodoistOperations = Depends(get_operations)):
    await ops.reopen_task(task_id)
    return {
        "success": True,
        "message": "Task reopened successfully",
        "data": {"id": task_id, "is_completed": False},
    }


@router.delete("/tasks/{task_id}")
async def delete_task(task_id: TaskId, ops: TodoistOperations = Depends(get_operations)):
    await ops.delete_task(task_id)
    return {
        "success": True,
        "message": "Task deleted successfully",
        "data": {"id": task_id},
    }
