"""Functional requirement API endpoints."""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from ... import crud, schemas
from ...models import FRStatus
from ...notifications import Notifier
from ...state_machine import get_allowed_transitions
from ...store import DocumentStore
from ..dependencies import get_notifier, get_store
from ..errors import DOMAIN_ERRORS, paginate, to_http_exception

logger = logging.getLogger("pms-core.functional_requirements")

router = APIRouter(tags=["functional-requirements"])


def _mutation_response(result: crud.MutationResult) -> dict:
    if result.warnings:
        logger.warning(f"{result.document.get('hierarchy_id')} saved with warnings: {result.warnings}")
    return {
        "requirement": result.document,
        "created_task": result.created_task,
        "warnings": result.warnings,
    }


@router.post("/", response_model=schemas.FunctionalRequirementMutationResponse, status_code=201)
def create_functional_requirement(
    requirement: schemas.FunctionalRequirementCreate,
    store: DocumentStore = Depends(get_store),
    notifier: Notifier = Depends(get_notifier),
):
    """
    Create a functional requirement.

    - **epic_id** / **client_requirement_id**: ancestry encoded in the hierarchy id
    - **parent_requirement_id**: creates a child requirement (``<parent id>.NN``)
    - **sprint_id**: schedules the requirement and creates its first task
    """
    try:
        result = crud.create_functional_requirement(store, requirement, notifier)
    except DOMAIN_ERRORS as e:
        raise to_http_exception(e, "create functional requirement") from e
    return _mutation_response(result)


@router.get("/", response_model=schemas.FunctionalRequirementListResponse)
def list_functional_requirements(
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(50, ge=1, le=100, description="Items per page"),
    project_id: Optional[str] = Query(None, description="Filter by project"),
    epic_id: Optional[str] = Query(None, description="Filter by epic"),
    sprint_id: Optional[str] = Query(None, description="Filter by sprint"),
    status: Optional[FRStatus] = Query(None, description="Filter by status"),
    sort_by_status: bool = Query(False, description="Order by workflow status instead of creation time"),
    store: DocumentStore = Depends(get_store),
):
    requirements = crud.list_functional_requirements(
        store,
        project_id=project_id,
        epic_id=epic_id,
        sprint_id=sprint_id,
        status=status.value if status else None,
        sort_by_status=sort_by_status,
    )
    return paginate(requirements, page, page_size)


@router.get("/{fr_id}", response_model=schemas.FunctionalRequirementResponse)
def get_functional_requirement(fr_id: str, store: DocumentStore = Depends(get_store)):
    try:
        return crud.get_functional_requirement(store, fr_id)
    except DOMAIN_ERRORS as e:
        raise to_http_exception(e, f"get functional requirement {fr_id}") from e


@router.get("/{fr_id}/transitions", response_model=list[FRStatus])
def get_functional_requirement_transitions(fr_id: str, store: DocumentStore = Depends(get_store)):
    """Statuses a user may move this requirement to."""
    try:
        fr = crud.get_functional_requirement(store, fr_id)
    except DOMAIN_ERRORS as e:
        raise to_http_exception(e, f"transitions of functional requirement {fr_id}") from e
    return get_allowed_transitions(FRStatus(fr["status"]))


@router.patch("/{fr_id}", response_model=schemas.FunctionalRequirementMutationResponse)
def update_functional_requirement(
    fr_id: str,
    requirement_update: schemas.FunctionalRequirementUpdate,
    store: DocumentStore = Depends(get_store),
    notifier: Notifier = Depends(get_notifier),
):
    """
    Update a functional requirement.

    Assigning a sprint it was not in before creates a task for it; any
    failure doing so is returned in ``warnings``. A deployed requirement's
    status cannot be changed.
    """
    try:
        result = crud.update_functional_requirement(store, fr_id, requirement_update, notifier)
    except DOMAIN_ERRORS as e:
        raise to_http_exception(e, f"update functional requirement {fr_id}") from e
    return _mutation_response(result)


@router.post("/{fr_id}/clone", response_model=schemas.FunctionalRequirementResponse, status_code=201)
def clone_functional_requirement(
    fr_id: str,
    clone: schemas.FunctionalRequirementClone,
    store: DocumentStore = Depends(get_store),
):
    """Copy a requirement into another project (status DRAFT, no sprint)."""
    try:
        return crud.clone_functional_requirement(store, fr_id, clone)
    except DOMAIN_ERRORS as e:
        raise to_http_exception(e, f"clone functional requirement {fr_id}") from e


@router.delete("/{fr_id}", status_code=204)
def delete_functional_requirement(fr_id: str, store: DocumentStore = Depends(get_store)):
    """Delete a requirement. Refused with 400 while it has child requirements."""
    try:
        crud.delete_functional_requirement(store, fr_id)
    except DOMAIN_ERRORS as e:
        raise to_http_exception(e, f"delete functional requirement {fr_id}") from e
