"""Client requirement API endpoints."""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from ... import crud, schemas
from ...models import ClientRequirementStatus
from ...store import DocumentStore
from ..dependencies import get_store
from ..errors import DOMAIN_ERRORS, paginate, to_http_exception

logger = logging.getLogger("pms-core.client_requirements")

router = APIRouter(tags=["client-requirements"])


@router.post("/", response_model=schemas.ClientRequirementResponse, status_code=201)
def create_client_requirement(
    requirement: schemas.ClientRequirementCreate,
    store: DocumentStore = Depends(get_store),
):
    """Create a client requirement. Its hierarchy id is ``<code>-<REQ>-NN``."""
    try:
        return crud.create_client_requirement(store, requirement)
    except DOMAIN_ERRORS as e:
        raise to_http_exception(e, "create client requirement") from e


@router.get("/", response_model=schemas.ClientRequirementListResponse)
def list_client_requirements(
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(50, ge=1, le=100, description="Items per page"),
    project_id: Optional[str] = Query(None, description="Filter by project"),
    status: Optional[ClientRequirementStatus] = Query(None, description="Filter by status"),
    store: DocumentStore = Depends(get_store),
):
    requirements = crud.list_client_requirements(
        store, project_id=project_id, status=status.value if status else None
    )
    return paginate(requirements, page, page_size)


@router.get("/{requirement_id}", response_model=schemas.ClientRequirementResponse)
def get_client_requirement(requirement_id: str, store: DocumentStore = Depends(get_store)):
    try:
        return crud.get_client_requirement(store, requirement_id)
    except DOMAIN_ERRORS as e:
        raise to_http_exception(e, f"get client requirement {requirement_id}") from e


@router.patch("/{requirement_id}", response_model=schemas.ClientRequirementResponse)
def update_client_requirement(
    requirement_id: str,
    requirement_update: schemas.ClientRequirementUpdate,
    store: DocumentStore = Depends(get_store),
):
    try:
        return crud.update_client_requirement(store, requirement_id, requirement_update)
    except DOMAIN_ERRORS as e:
        raise to_http_exception(e, f"update client requirement {requirement_id}") from e


@router.delete("/{requirement_id}", status_code=204)
def delete_client_requirement(requirement_id: str, store: DocumentStore = Depends(get_store)):
    """Delete a client requirement. Refused with 400 while epics or FRs link to it."""
    try:
        crud.delete_client_requirement(store, requirement_id)
    except DOMAIN_ERRORS as e:
        raise to_http_exception(e, f"delete client requirement {requirement_id}") from e
