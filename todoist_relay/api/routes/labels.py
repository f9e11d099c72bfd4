"""Label API routes."""

from fastapi import APIRouter, Depends

from ...models import to_jsonable
from ...operations import TodoistOperations
from ..deps import LabelId, get_operations

router = APIRouter(tags=["labels"])


@router.get("/labels")
async def list_labels(ops: TodoistOperations = Depends(get_operations)):
    labels = await ops.list_labels()
    return {"success": True, "data": to_jsonable(labels), "count": len(labels)}


@router.get("/labels/{label_id}")
async def get_label(label_id: LabelId, ops: TodoistOperations = Depends(get_operations)):
    label = await ops.get_label(label_id)
    return {"success": True, "data": to_jsonable(label)}
