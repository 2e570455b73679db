"""SQLAlchemy database models and domain enumerations."""
from datetime import datetime
from uuid import uuid4
import enum

from sqlalchemy import (
    Column,
    String,
    Integer,
    DateTime,
    JSON,
    CheckConstraint,
    UniqueConstraint,
    Index,
)
from sqlalchemy.orm import declarative_base

# Base class for all models
Base = declarative_base()


class Collection(str, enum.Enum):
    """Document collections held by the store."""

    PROJECTS = "projects"
    CLIENT_REQUIREMENTS = "client_requirements"
    EPICS = "epics"
    FUNCTIONAL_REQUIREMENTS = "functional_requirements"
    SPRINTS = "sprints"
    TASKS = "tasks"
    NOTIFICATIONS = "notifications"


class ProjectMethodology(str, enum.Enum):
    """Delivery methodology of a project."""

    SCRUM = "SCRUM"
    KANBAN = "KANBAN"


class ProjectStatus(str, enum.Enum):
    """Project status enum."""

    PLANNING = "PLANNING"
    ACTIVE = "ACTIVE"
    ON_HOLD = "ON_HOLD"
    COMPLETED = "COMPLETED"
    ARCHIVED = "ARCHIVED"


class Priority(str, enum.Enum):
    """Priority shared by client requirements, FRs and tasks."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class ClientRequirementStatus(str, enum.Enum):
    """Client requirement status enum."""

    DRAFT = "DRAFT"
    SUBMITTED = "SUBMITTED"
    APPROVED = "APPROVED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    ARCHIVED = "ARCHIVED"


class EpicStatus(str, enum.Enum):
    """Epic status enum."""

    TODO = "TODO"
    IN_PROGRESS = "IN_PROGRESS"
    DONE = "DONE"


class FRStatus(str, enum.Enum):
    """Functional requirement lifecycle status.

    DRAFT → REVIEW → APPROVED → IMPLEMENTED → TESTED → DEPLOYED

    REVIEW and DEPLOYED are only ever set by a user. The task-driven sync
    produces DRAFT, APPROVED, IMPLEMENTED and TESTED.
    """

    DRAFT = "DRAFT"
    REVIEW = "REVIEW"
    APPROVED = "APPROVED"
    IMPLEMENTED = "IMPLEMENTED"
    TESTED = "TESTED"
    DEPLOYED = "DEPLOYED"


class FRType(str, enum.Enum):
    """Functional requirement category."""

    FUNCTIONAL = "FUNCTIONAL"
    NON_FUNCTIONAL = "NON_FUNCTIONAL"
    TECHNICAL = "TECHNICAL"
    BUSINESS = "BUSINESS"


class FRComplexity(str, enum.Enum):
    """Functional requirement complexity estimate."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    VERY_HIGH = "VERY_HIGH"


class SprintStatus(str, enum.Enum):
    """Sprint status enum."""

    PLANNING = "PLANNING"
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"


class TaskStatus(str, enum.Enum):
    """Task board column / lifecycle status."""

    BACKLOG = "BACKLOG"
    TODO = "TODO"
    IN_PROGRESS = "IN_PROGRESS"
    REVIEW = "REVIEW"
    DONE = "DONE"


class NotificationType(str, enum.Enum):
    """Notification kinds dispatched by task and FR mutations."""

    TASK_ASSIGNED = "TASK_ASSIGNED"
    TASK_STATUS_CHANGED = "TASK_STATUS_CHANGED"
    TASK_PRIORITY_CHANGED = "TASK_PRIORITY_CHANGED"
    TASK_COMPLETED = "TASK_COMPLETED"
    FR_STATUS_CHANGED = "FR_STATUS_CHANGED"


def _new_id() -> str:
    return uuid4().hex


class Document(Base):
    """
    A schemaless document in one of the store collections.

    project_id and hierarchy_id are copied out of the payload so that
    hierarchy identifiers can be kept unique per project and collection.
    """

    __tablename__ = "documents"

    id = Column(String(32), primary_key=True, default=_new_id)
    collection = Column(String(50), nullable=False, index=True)
    project_id = Column(String(64), nullable=True, index=True)
    hierarchy_id = Column(String(200), nullable=True)
    data = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("collection", "project_id", "hierarchy_id", name="uq_document_hierarchy_id"),
        Index("ix_documents_collection_project", "collection", "project_id"),
    )

    def __repr__(self) -> str:
        return f"<Document {self.collection}/{self.id} {self.hierarchy_id or ''}>"


class IDSequence(Base):
    """
    Tracks the next available sequence number per scope key.

    Scope keys look like ``fr:<project_id>`` or ``subtask:<task_id>``.
    """

    __tablename__ = "id_sequences"

    id = Column(String(32), primary_key=True, default=_new_id)
    scope = Column(String(120), nullable=False, unique=True)
    next_number = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        CheckConstraint("next_number > 0", name="chk_next_number_positive"),
    )

    def __repr__(self) -> str:
        return f"<IDSequence {self.scope} next={self.next_number}>"
