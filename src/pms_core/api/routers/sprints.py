"""Sprint API endpoints."""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from ... import crud, schemas
from ...models import SprintStatus
from ...store import DocumentStore
from ..dependencies import get_store
from ..errors import DOMAIN_ERRORS, paginate, to_http_exception

logger = logging.getLogger("pms-core.sprints")

router = APIRouter(tags=["sprints"])


@router.post("/", response_model=schemas.SprintResponse, status_code=201)
def create_sprint(sprint: schemas.SprintCreate, store: DocumentStore = Depends(get_store)):
    try:
        return crud.create_sprint(store, sprint)
    except DOMAIN_ERRORS as e:
        raise to_http_exception(e, "create sprint") from e


@router.get("/", response_model=schemas.SprintListResponse)
def list_sprints(
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(50, ge=1, le=100, description="Items per page"),
    project_id: Optional[str] = Query(None, description="Filter by project"),
    status: Optional[SprintStatus] = Query(None, description="Filter by status"),
    store: DocumentStore = Depends(get_store),
):
    """List sprints ordered by start date."""
    sprints = crud.list_sprints(store, project_id=project_id, status=status.value if status else None)
    return paginate(sprints, page, page_size)


@router.get("/{sprint_id}", response_model=schemas.SprintResponse)
def get_sprint(sprint_id: str, store: DocumentStore = Depends(get_store)):
    try:
        return crud.get_sprint(store, sprint_id)
    except DOMAIN_ERRORS as e:
        raise to_http_exception(e, f"get sprint {sprint_id}") from e


@router.patch("/{sprint_id}", response_model=schemas.SprintResponse)
def update_sprint(
    sprint_id: str,
    sprint_update: schemas.SprintUpdate,
    store: DocumentStore = Depends(get_store),
):
    try:
        return crud.update_sprint(store, sprint_id, sprint_update)
    except DOMAIN_ERRORS as e:
        raise to_http_exception(e, f"update sprint {sprint_id}") from e


@router.delete("/{sprint_id}", status_code=204)
def delete_sprint(sprint_id: str, store: DocumentStore = Depends(get_store)):
    try:
        crud.delete_sprint(store, sprint_id)
    except DOMAIN_ERRORS as e:
        raise to_http_exception(e, f"delete sprint {sprint_id}") from e
