"""Pydantic schemas for request/response validation."""
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field, ConfigDict, field_validator

from .models import (
    ProjectMethodology,
    ProjectStatus,
    Priority,
    ClientRequirementStatus,
    EpicStatus,
    FRStatus,
    FRType,
    FRComplexity,
    SprintStatus,
    TaskStatus,
)


def _reject_null(value):
    """Partial updates may omit a required field but not clear it."""
    if value is None:
        raise ValueError("may be omitted but cannot be null")
    return value


class DocumentResponse(BaseModel):
    """Fields every stored document carries."""

    id: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(extra="ignore", use_enum_values=True)


# Project Schemas

class ProjectBase(BaseModel):
    """Base schema for project fields."""

    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    client_name: Optional[str] = None
    methodology: ProjectMethodology = ProjectMethodology.SCRUM
    status: ProjectStatus = ProjectStatus.ACTIVE
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    member_ids: list[str] = Field(default_factory=list)


class ProjectCreate(ProjectBase):
    """Schema for creating a project.

    - **code**: 2-10 letters/digits used as the prefix of every hierarchy id
      (e.g. "PTES"). Derived from the name when omitted.
    """

    workspace_id: Optional[str] = None
    code: Optional[str] = Field(None, min_length=2, max_length=10, pattern=r"^[A-Za-z0-9]+$")
    owner_id: Optional[str] = None
    created_by: Optional[str] = None

    @field_validator("code")
    @classmethod
    def uppercase_code(cls, v: Optional[str]) -> Optional[str]:
        return v.upper() if v else v


class ProjectUpdate(BaseModel):
    """Schema for updating a project. The code is immutable."""

    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    client_name: Optional[str] = None
    methodology: Optional[ProjectMethodology] = None
    status: Optional[ProjectStatus] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    member_ids: Optional[list[str]] = None

    @field_validator("name", "methodology", "status", "member_ids")
    @classmethod
    def required_fields_not_null(cls, v):
        return _reject_null(v)


class ProjectResponse(ProjectBase, DocumentResponse):
    workspace_id: Optional[str] = None
    code: Optional[str] = None
    owner_id: Optional[str] = None
    created_by: Optional[str] = None


# Client Requirement Schemas

class ClientRequirementCreate(BaseModel):
    project_id: str
    workspace_id: Optional[str] = None
    title: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    client_name: str = ""
    priority: Priority = Priority.MEDIUM
    created_by: Optional[str] = None


class ClientRequirementUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    client_name: Optional[str] = None
    priority: Optional[Priority] = None
    status: Optional[ClientRequirementStatus] = None

    @field_validator("title", "description", "client_name", "priority", "status")
    @classmethod
    def required_fields_not_null(cls, v):
        return _reject_null(v)


class ClientRequirementResponse(DocumentResponse):
    project_id: str
    workspace_id: Optional[str] = None
    hierarchy_id: Optional[str] = None
    title: str
    description: str = ""
    client_name: str = ""
    priority: Priority
    status: ClientRequirementStatus
    created_by: Optional[str] = None


# Epic Schemas

class EpicCreate(BaseModel):
    project_id: str
    workspace_id: Optional[str] = None
    client_requirement_id: Optional[str] = None
    name: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    color: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    assigned_team: Optional[str] = None
    created_by: Optional[str] = None


class EpicUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    color: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    status: Optional[EpicStatus] = None
    progress: Optional[int] = Field(None, ge=0, le=100)
    assigned_team: Optional[str] = None

    @field_validator("name", "description", "status", "progress")
    @classmethod
    def required_fields_not_null(cls, v):
        return _reject_null(v)


class EpicResponse(DocumentResponse):
    project_id: str
    workspace_id: Optional[str] = None
    client_requirement_id: Optional[str] = None
    hierarchy_id: Optional[str] = None
    name: str
    description: str = ""
    color: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    status: EpicStatus
    progress: int = 0
    assigned_team: Optional[str] = None
    created_by: Optional[str] = None


class EpicProgressResponse(BaseModel):
    epic_id: str
    total_tasks: int
    completed_tasks: int
    progress: int
    status: EpicStatus


# Functional Requirement Schemas

class FunctionalRequirementCreate(BaseModel):
    """Schema for creating a functional requirement.

    The hierarchy id is generated from the linked epic (and its client
    requirement), or from ``parent_requirement_id`` for a child requirement.
    Supplying ``sprint_id`` schedules the FR and creates its first task.
    """

    project_id: str
    workspace_id: Optional[str] = None
    epic_id: Optional[str] = None
    sprint_id: Optional[str] = None
    client_requirement_id: Optional[str] = None
    parent_requirement_id: Optional[str] = None
    title: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    type: FRType = FRType.FUNCTIONAL
    complexity: FRComplexity = FRComplexity.MEDIUM
    priority: Priority = Priority.MEDIUM
    status: FRStatus = FRStatus.DRAFT
    reusable: bool = False
    assigned_to: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    created_by: Optional[str] = None


class FunctionalRequirementUpdate(BaseModel):
    """Partial update. Only fields present in the request are written."""

    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    type: Optional[FRType] = None
    complexity: Optional[FRComplexity] = None
    priority: Optional[Priority] = None
    status: Optional[FRStatus] = None
    reusable: Optional[bool] = None
    assigned_to: Optional[list[str]] = None
    tags: Optional[list[str]] = None
    epic_id: Optional[str] = None
    sprint_id: Optional[str] = None
    client_requirement_id: Optional[str] = None

    @field_validator(
        "title", "description", "type", "complexity", "priority", "status", "reusable", "assigned_to", "tags"
    )
    @classmethod
    def required_fields_not_null(cls, v):
        return _reject_null(v)


class FunctionalRequirementClone(BaseModel):
    target_project_id: str
    target_epic_id: Optional[str] = None
    target_client_requirement_id: Optional[str] = None


class FunctionalRequirementResponse(DocumentResponse):
    project_id: str
    workspace_id: Optional[str] = None
    hierarchy_id: Optional[str] = None
    epic_id: Optional[str] = None
    sprint_id: Optional[str] = None
    client_requirement_id: Optional[str] = None
    parent_requirement_id: Optional[str] = None
    title: str
    description: str = ""
    type: FRType
    complexity: FRComplexity
    priority: Priority
    status: FRStatus
    reusable: bool = False
    assigned_to: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    created_by: Optional[str] = None


# Sprint Schemas

class SprintCreate(BaseModel):
    project_id: str
    workspace_id: Optional[str] = None
    name: str = Field(..., min_length=1, max_length=100)
    goal: Optional[str] = None
    start_date: date
    end_date: date
    status: SprintStatus = SprintStatus.PLANNING
    created_by: Optional[str] = None


class SprintUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    goal: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    status: Optional[SprintStatus] = None
    retrospective_notes: Optional[str] = None

    @field_validator("name", "start_date", "end_date", "status")
    @classmethod
    def required_fields_not_null(cls, v):
        return _reject_null(v)


class SprintResponse(DocumentResponse):
    project_id: str
    workspace_id: Optional[str] = None
    label: Optional[str] = None
    name: str
    goal: Optional[str] = None
    start_date: date
    end_date: date
    status: SprintStatus
    retrospective_notes: Optional[str] = None
    created_by: Optional[str] = None


# Task Schemas

class TaskCreate(BaseModel):
    """Schema for creating a task.

    - **parent_task_id**: makes this a subtask; its id extends the parent's
    - **functional_requirement_id** + **sprint_id**: id extends the FR's id
    - **sprint_id** alone: project sprint id; neither: plain project id
    """

    project_id: str
    workspace_id: Optional[str] = None
    title: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    status: TaskStatus = TaskStatus.TODO
    priority: Priority = Priority.MEDIUM
    assigned_to: list[str] = Field(default_factory=list)
    assigned_by: Optional[str] = None
    created_by: Optional[str] = None
    due_date: Optional[datetime] = None
    estimated_hours: float = Field(0, ge=0)
    sprint_id: Optional[str] = None
    epic_id: Optional[str] = None
    functional_requirement_id: Optional[str] = None
    parent_task_id: Optional[str] = None
    labels: list[str] = Field(default_factory=list)


class TaskUpdate(BaseModel):
    """Partial update. Only fields present in the request are written."""

    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    status: Optional[TaskStatus] = None
    priority: Optional[Priority] = None
    assigned_to: Optional[list[str]] = None
    assigned_by: Optional[str] = None
    due_date: Optional[datetime] = None
    estimated_hours: Optional[float] = Field(None, ge=0)
    actual_hours: Optional[float] = Field(None, ge=0)
    sprint_id: Optional[str] = None
    epic_id: Optional[str] = None
    functional_requirement_id: Optional[str] = None
    labels: Optional[list[str]] = None
    position: Optional[int] = Field(None, ge=0)

    @field_validator(
        "title", "description", "status", "priority", "assigned_to",
        "estimated_hours", "actual_hours", "labels", "position",
    )
    @classmethod
    def required_fields_not_null(cls, v):
        return _reject_null(v)


class TaskResponse(DocumentResponse):
    project_id: str
    workspace_id: Optional[str] = None
    hierarchy_id: Optional[str] = None
    title: str
    description: str = ""
    status: TaskStatus
    priority: Priority
    assigned_to: list[str] = Field(default_factory=list)
    assigned_by: Optional[str] = None
    created_by: Optional[str] = None
    due_date: Optional[datetime] = None
    estimated_hours: float = 0
    actual_hours: float = 0
    sprint_id: Optional[str] = None
    epic_id: Optional[str] = None
    functional_requirement_id: Optional[str] = None
    parent_task_id: Optional[str] = None
    labels: list[str] = Field(default_factory=list)
    position: int = 0


# Mutation results carrying best-effort warnings

class TaskMutationResponse(BaseModel):
    task: TaskResponse
    warnings: list[str] = Field(default_factory=list)


class FunctionalRequirementMutationResponse(BaseModel):
    requirement: FunctionalRequirementResponse
    created_task: Optional[TaskResponse] = None
    warnings: list[str] = Field(default_factory=list)


class DeleteResponse(BaseModel):
    deleted: bool = True
    warnings: list[str] = Field(default_factory=list)


# Paginated lists

class PageMeta(BaseModel):
    total: int
    page: int
    page_size: int
    total_pages: int


class ProjectListResponse(PageMeta):
    items: list[ProjectResponse]


class ClientRequirementListResponse(PageMeta):
    items: list[ClientRequirementResponse]


class EpicListResponse(PageMeta):
    items: list[EpicResponse]


class FunctionalRequirementListResponse(PageMeta):
    items: list[FunctionalRequirementResponse]


class SprintListResponse(PageMeta):
    items: list[SprintResponse]


class TaskListResponse(PageMeta):
    items: list[TaskResponse]


# Analytics

class AssigneeStats(BaseModel):
    total: int = 0
    completed: int = 0
    in_progress: int = 0


class SprintProgress(BaseModel):
    sprint_id: str
    name: str
    status: SprintStatus
    total_tasks: int
    completed_tasks: int
    progress: int


class ProjectAnalytics(BaseModel):
    """KPI summary for one project."""

    project_id: str
    total_tasks: int
    completed_tasks: int
    completion_rate: float = Field(description="Percent of tasks DONE, one decimal")
    status_distribution: dict[str, int]
    priority_distribution: dict[str, int]
    total_estimated_hours: float
    total_actual_hours: float
    overdue_tasks: int
    assignee_stats: dict[str, AssigneeStats]
    fr_status_distribution: dict[str, int]
    sprints: list[SprintProgress]
