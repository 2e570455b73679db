"""Task API endpoints."""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from ... import crud, schemas
from ...models import Priority, TaskStatus
from ...notifications import Notifier
from ...store import DocumentStore
from ..dependencies import get_notifier, get_store
from ..errors import DOMAIN_ERRORS, paginate, to_http_exception

logger = logging.getLogger("pms-core.tasks")

router = APIRouter(tags=["tasks"])


def _mutation_response(result: crud.MutationResult) -> dict:
    if result.warnings:
        logger.warning(f"Task {result.document.get('hierarchy_id')} saved with warnings: {result.warnings}")
    return {"task": result.document, "warnings": result.warnings}


@router.post("/", response_model=schemas.TaskMutationResponse, status_code=201)
def create_task(
    task: schemas.TaskCreate,
    store: DocumentStore = Depends(get_store),
    notifier: Notifier = Depends(get_notifier),
):
    """
    Create a task.

    The hierarchy id extends the parent task, the FR (with a sprint), the
    project sprint, or the project, in that order of preference.
    """
    try:
        result = crud.create_task(store, task, notifier)
    except DOMAIN_ERRORS as e:
        raise to_http_exception(e, "create task") from e
    return _mutation_response(result)


@router.get("/", response_model=schemas.TaskListResponse)
def list_tasks(
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(50, ge=1, le=100, description="Items per page"),
    project_id: Optional[str] = Query(None, description="Filter by project"),
    sprint_id: Optional[str] = Query(None, description="Filter by sprint"),
    epic_id: Optional[str] = Query(None, description="Filter by epic"),
    functional_requirement_id: Optional[str] = Query(None, description="Filter by functional requirement"),
    parent_task_id: Optional[str] = Query(None, description="Filter by parent task (subtasks)"),
    status: Optional[TaskStatus] = Query(None, description="Filter by status"),
    priority: Optional[Priority] = Query(None, description="Filter by priority"),
    assignee_id: Optional[str] = Query(None, description="Filter by assignee"),
    store: DocumentStore = Depends(get_store),
):
    """List tasks in board order."""
    tasks = crud.list_tasks(
        store,
        project_id=project_id,
        sprint_id=sprint_id,
        epic_id=epic_id,
        functional_requirement_id=functional_requirement_id,
        parent_task_id=parent_task_id,
        status=status.value if status else None,
        priority=priority.value if priority else None,
        assignee_id=assignee_id,
    )
    return paginate(tasks, page, page_size)


@router.get("/{task_id}", response_model=schemas.TaskResponse)
def get_task(task_id: str, store: DocumentStore = Depends(get_store)):
    try:
        return crud.get_task(store, task_id)
    except DOMAIN_ERRORS as e:
        raise to_http_exception(e, f"get task {task_id}") from e


@router.patch("/{task_id}", response_model=schemas.TaskMutationResponse)
def update_task(
    task_id: str,
    task_update: schemas.TaskUpdate,
    store: DocumentStore = Depends(get_store),
    notifier: Notifier = Depends(get_notifier),
):
    """
    Update a task.

    A status change re-derives the linked requirement's status. If that
    fails the task change is kept and the failure is listed in ``warnings``.
    """
    try:
        result = crud.update_task(store, task_id, task_update, notifier)
    except DOMAIN_ERRORS as e:
        raise to_http_exception(e, f"update task {task_id}") from e
    return _mutation_response(result)


@router.delete("/{task_id}", response_model=schemas.DeleteResponse)
def delete_task(
    task_id: str,
    store: DocumentStore = Depends(get_store),
    notifier: Notifier = Depends(get_notifier),
):
    try:
        warnings = crud.delete_task(store, task_id, notifier)
    except DOMAIN_ERRORS as e:
        raise to_http_exception(e, f"delete task {task_id}") from e
    return {"deleted": True, "warnings": warnings}
