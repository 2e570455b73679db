"""Epic API endpoints."""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from ... import crud, schemas
from ...store import DocumentStore
from ..dependencies import get_store
from ..errors import DOMAIN_ERRORS, paginate, to_http_exception

logger = logging.getLogger("pms-core.epics")

router = APIRouter(tags=["epics"])


@router.post("/", response_model=schemas.EpicResponse, status_code=201)
def create_epic(epic: schemas.EpicCreate, store: DocumentStore = Depends(get_store)):
    """
    Create an epic (status TODO, progress 0).

    - **client_requirement_id**: Optional; adds the requirement token to the hierarchy id
    """
    try:
        return crud.create_epic(store, epic)
    except DOMAIN_ERRORS as e:
        raise to_http_exception(e, "create epic") from e


@router.get("/", response_model=schemas.EpicListResponse)
def list_epics(
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(50, ge=1, le=100, description="Items per page"),
    project_id: Optional[str] = Query(None, description="Filter by project"),
    client_requirement_id: Optional[str] = Query(None, description="Filter by client requirement"),
    store: DocumentStore = Depends(get_store),
):
    epics = crud.list_epics(store, project_id=project_id, client_requirement_id=client_requirement_id)
    return paginate(epics, page, page_size)


@router.get("/{epic_id}", response_model=schemas.EpicResponse)
def get_epic(epic_id: str, store: DocumentStore = Depends(get_store)):
    try:
        return crud.get_epic(store, epic_id)
    except DOMAIN_ERRORS as e:
        raise to_http_exception(e, f"get epic {epic_id}") from e


@router.get("/{epic_id}/progress", response_model=schemas.EpicProgressResponse)
def get_epic_progress(epic_id: str, store: DocumentStore = Depends(get_store)):
    """Share of the epic's tasks that are done, or the stored progress while it has none."""
    try:
        return crud.get_epic_progress(store, epic_id)
    except DOMAIN_ERRORS as e:
        raise to_http_exception(e, f"progress of epic {epic_id}") from e


@router.patch("/{epic_id}", response_model=schemas.EpicResponse)
def update_epic(
    epic_id: str,
    epic_update: schemas.EpicUpdate,
    store: DocumentStore = Depends(get_store),
):
    try:
        return crud.update_epic(store, epic_id, epic_update)
    except DOMAIN_ERRORS as e:
        raise to_http_exception(e, f"update epic {epic_id}") from e


@router.delete("/{epic_id}", status_code=204)
def delete_epic(epic_id: str, store: DocumentStore = Depends(get_store)):
    try:
        crud.delete_epic(store, epic_id)
    except DOMAIN_ERRORS as e:
        raise to_http_exception(e, f"delete epic {epic_id}") from e
