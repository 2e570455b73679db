"""Project API endpoints."""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from ... import analytics, crud, schemas
from ...models import ProjectStatus
from ...store import DocumentStore
from ..dependencies import get_store
from ..errors import DOMAIN_ERRORS, paginate, to_http_exception

logger = logging.getLogger("pms-core.projects")

router = APIRouter(tags=["projects"])


@router.post("/", response_model=schemas.ProjectResponse, status_code=201)
def create_project(
    project: schemas.ProjectCreate,
    store: DocumentStore = Depends(get_store),
):
    """
    Create a new project.

    - **name**: Project name
    - **code**: Optional short code used as the hierarchy id prefix
    - **methodology**: SCRUM or KANBAN
    """
    try:
        return crud.create_project(store, project)
    except DOMAIN_ERRORS as e:
        raise to_http_exception(e, "create project") from e


@router.get("/", response_model=schemas.ProjectListResponse)
def list_projects(
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(50, ge=1, le=100, description="Items per page"),
    workspace_id: Optional[str] = Query(None, description="Filter by workspace"),
    status: Optional[ProjectStatus] = Query(None, description="Filter by status"),
    search: Optional[str] = Query(None, description="Search in name and description"),
    store: DocumentStore = Depends(get_store),
):
    """List projects, newest first."""
    projects = crud.list_projects(
        store,
        workspace_id=workspace_id,
        status=status.value if status else None,
        search=search,
    )
    return paginate(projects, page, page_size)


@router.get("/{project_id}", response_model=schemas.ProjectResponse)
def get_project(project_id: str, store: DocumentStore = Depends(get_store)):
    try:
        return crud.get_project(store, project_id)
    except DOMAIN_ERRORS as e:
        raise to_http_exception(e, f"get project {project_id}") from e


@router.patch("/{project_id}", response_model=schemas.ProjectResponse)
def update_project(
    project_id: str,
    project_update: schemas.ProjectUpdate,
    store: DocumentStore = Depends(get_store),
):
    """Update a project. The short code cannot be changed."""
    try:
        return crud.update_project(store, project_id, project_update)
    except DOMAIN_ERRORS as e:
        raise to_http_exception(e, f"update project {project_id}") from e


@router.delete("/{project_id}", status_code=204)
def delete_project(project_id: str, store: DocumentStore = Depends(get_store)):
    """
    Delete a project.

    Refused with 400 while the project still owns tasks, requirements,
    epics, sprints or client requirements.
    """
    try:
        crud.delete_project(store, project_id)
    except DOMAIN_ERRORS as e:
        raise to_http_exception(e, f"delete project {project_id}") from e


@router.get("/{project_id}/analytics", response_model=schemas.ProjectAnalytics)
def get_project_analytics(project_id: str, store: DocumentStore = Depends(get_store)):
    """
    KPI summary for a project.

    Task status and priority distribution, completion rate, hours, overdue
    tasks, per-assignee stats, FR status breakdown and sprint progress.
    """
    try:
        return analytics.project_summary(store, project_id)
    except DOMAIN_ERRORS as e:
        raise to_http_exception(e, f"analytics for project {project_id}") from e
