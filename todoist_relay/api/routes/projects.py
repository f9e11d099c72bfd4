"""Project API routes."""

from typing import Any, Dict

from fastapi import APIRouter, Body, Depends

from ...models import CreateProjectInput, UpdateProjectInput, parse_input, to_jsonable
from ...operations import TodoistOperations
from ..deps import ProjectId, get_operations

router = APIRouter(tags=["projects"])


@router.get("/projects")
async def list_projects(ops: TodoistOperations = Depends(get_operations)):
    projects = await ops.list_projects()
    return {"success": True, "data": to_jsonable(projects), "count": len(projects)}


@router.post("/projects", status_code=201)
async def create_project(
    payload: Dict[str, Any] = Body(...),
    ops: TodoistOperations = Depends(get_operations),
):
    """Create a project. `name` is required; parent_id, color, is_favorite and view_style are optional."""
    project = await ops.create_project(parse_input(CreateProjectInput, payload))
    return {"success": True, "data": to_jsonable(project)}


@router.get("/projects/{project_id}")
async def get_project(project_id: ProjectId, ops: TodoistOperations = Depends(get_operations)):
    project = await ops.get_project(project_id)
    return {"success": True, "data": to_jsonable(project)}


@router.patch("/projects/{project_id}")
async def update_project(
    project_id: ProjectId,
    payload: Dict[str, Any] = Body(...),
    ops: TodoistOperations = Depends(get_operations),
):
    project = await ops.update_project(project_id, parse_input(UpdateProjectInput, payload))
    return {"success": True, "data": to_jsonable(project)}


@router.delete("/projects/{project_id}")
async def delete_project(project_id: ProjectId, ops: TodoistOperations = Depends(get_operations)):
    await ops.delete_project(project_id)
    return {
        "success": True,
        "message": "Project deleted successfully",
        "data": {"id": project_id},
    }
