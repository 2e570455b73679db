"""Entity operations for projects, requirements, epics, sprints and tasks.

Primary operations (the create/update/delete the caller asked for) raise on
failure. Secondary work layered on top of them - FR status sync, task
auto-creation on sprint assignment, notifications - is best-effort: its
failures are logged and returned as warnings on the MutationResult.
"""
import logging
from dataclasses import dataclass, field
from typing import Optional

from . import hierarchy_ids, lineage, schemas, status_sync
from .models import (
    Collection,
    ClientRequirementStatus,
    EpicStatus,
    FRStatus,
    NotificationType,
    TaskStatus,
)
from .notifications import Notifier, notify
from .state_machine import STATUS_SORT_ORDER, validate_transition
from .store import DocumentStore, StoreError

logger = logging.getLogger("pms-core.crud")


class ChildrenExistError(ValueError):
    """Raised when deleting an entity that still has dependent children."""


@dataclass
class MutationResult:
    """Outcome of a mutation plus anything produced by its side effects."""

    document: dict
    warnings: list[str] = field(default_factory=list)
    created_task: Optional[dict] = None


def _apply_filters(documents: list[dict], **filters) -> list[dict]:
    for name, value in filters.items():
        if value is not None:
            documents = [d for d in documents if d.get(name) == value]
    return documents


# ============================================================================
# Project CRUD Operations
# ============================================================================

def create_project(store: DocumentStore, data: schemas.ProjectCreate) -> dict:
    """
    Create a new project.

    The short code prefixes every hierarchy id in the project; when it is not
    supplied it is derived from the project name.
    """
    fields = data.model_dump(mode="json")
    fields["code"] = data.code or hierarchy_ids.generate_project_code(data.name)
    fields["owner_id"] = data.owner_id or data.created_by
    if fields["owner_id"] and fields["owner_id"] not in fields["member_ids"]:
        fields["member_ids"].append(fields["owner_id"])

    project = store.create(Collection.PROJECTS, fields)
    logger.info(f"Created project '{project['name']}' ({project['code']}) (ID: {project['id']})")
    return project


def get_project(store: DocumentStore, project_id: str) -> dict:
    return store.get(Collection.PROJECTS, project_id)


def list_projects(
    store: DocumentStore,
    workspace_id: Optional[str] = None,
    status: Optional[str] = None,
    search: Optional[str] = None,
) -> list[dict]:
    projects = _apply_filters(
        store.list(Collection.PROJECTS, order_by="-created_at"),
        workspace_id=workspace_id,
        status=status,
    )
    if search:
        needle = search.lower()
        projects = [
            p for p in projects
            if needle in (p.get("name") or "").lower() or needle in (p.get("description") or "").lower()
        ]
    return projects


def update_project(store: DocumentStore, project_id: str, update: schemas.ProjectUpdate) -> dict:
    store.get(Collection.PROJECTS, project_id)
    changes = update.model_dump(exclude_unset=True, mode="json")
    project = store.update(Collection.PROJECTS, project_id, changes)
    logger.info(f"Updated project {project_id}: {sorted(changes)}")
    return project


def delete_project(store: DocumentStore, project_id: str) -> None:
    """
    Delete a project that no longer owns anything.

    Raises:
        ChildrenExistError: If any entity still belongs to the project
    """
    store.get(Collection.PROJECTS, project_id)
    for collection in (
        Collection.TASKS,
        Collection.FUNCTIONAL_REQUIREMENTS,
        Collection.SPRINTS,
        Collection.EPICS,
        Collection.CLIENT_REQUIREMENTS,
    ):
        remaining = store.list(collection, {"project_id": project_id})
        if remaining:
            raise ChildrenExistError(
                f"Cannot delete project: it still has {len(remaining)} {collection.value.replace('_', ' ')}. "
                f"Delete them first."
            )
    store.delete(Collection.PROJECTS, project_id)
    logger.info(f"Deleted project {project_id}")


# ============================================================================
# Client Requirement CRUD Operations
# ============================================================================

def create_client_requirement(store: DocumentStore, data: schemas.ClientRequirementCreate) -> dict:
    project = store.get(Collection.PROJECTS, data.project_id)
    existing = store.list(Collection.CLIENT_REQUIREMENTS, {"project_id": data.project_id})

    fields = data.model_dump(mode="json")
    fields["status"] = ClientRequirementStatus.DRAFT.value
    requirement = lineage.create_with_hierarchy_id(
        store,
        Collection.CLIENT_REQUIREMENTS,
        fields,
        scope=f"client_requirement:{data.project_id}",
        sibling_count=len(existing),
        make_id=lambda n: hierarchy_ids.generate_client_requirement_id(
            project.get("code") or "", project.get("name") or "", data.title, n
        ),
    )
    logger.info(f"Created client requirement {requirement['hierarchy_id']}: {requirement['title']}")
    return requirement


def get_client_requirement(store: DocumentStore, requirement_id: str) -> dict:
    return store.get(Collection.CLIENT_REQUIREMENTS, requirement_id)


def list_client_requirements(
    store: DocumentStore,
    project_id: Optional[str] = None,
    status: Optional[str] = None,
) -> list[dict]:
    filters = {"project_id": project_id} if project_id else None
    return _apply_filters(
        store.list(Collection.CLIENT_REQUIREMENTS, filters, order_by="-created_at"),
        status=status,
    )


def update_client_requirement(
    store: DocumentStore,
    requirement_id: str,
    update: schemas.ClientRequirementUpdate,
) -> dict:
    store.get(Collection.CLIENT_REQUIREMENTS, requirement_id)
    changes = update.model_dump(exclude_unset=True, mode="json")
    requirement = store.update(Collection.CLIENT_REQUIREMENTS, requirement_id, changes)
    logger.info(f"Updated client requirement {requirement.get('hierarchy_id')}")
    return requirement


def delete_client_requirement(store: DocumentStore, requirement_id: str) -> None:
    """
    Delete a client requirement that has no epics or FRs under it.

    Raises:
        ChildrenExistError: If epics or functional requirements link to it
    """
    requirement = store.get(Collection.CLIENT_REQUIREMENTS, requirement_id)
    epics = store.list(Collection.EPICS, {"client_requirement_id": requirement_id})
    frs = store.list(Collection.FUNCTIONAL_REQUIREMENTS, {"client_requirement_id": requirement_id})
    if epics or frs:
        children = ", ".join(
            c.get("hierarchy_id") or c["id"] for c in epics + frs
        )
        logger.warning(f"Blocked delete of {requirement.get('hierarchy_id')}: children {children}")
        raise ChildrenExistError(
            f"Cannot delete requirement with child items: {children}. Delete or unlink them first."
        )
    store.delete(Collection.CLIENT_REQUIREMENTS, requirement_id)
    logger.info(f"Deleted client requirement {requirement.get('hierarchy_id')}")


# ============================================================================
# Epic CRUD Operations
# ============================================================================

def create_epic(store: DocumentStore, data: schemas.EpicCreate) -> dict:
    """
    Create an epic with status TODO and progress 0.

    The hierarchy id includes the client requirement token when the epic is
    linked to a requirement that can still be found.
    """
    project = store.get(Collection.PROJECTS, data.project_id)
    existing = store.list(Collection.EPICS, {"project_id": data.project_id})
    requirement = lineage.find_document(store, Collection.CLIENT_REQUIREMENTS, data.client_requirement_id)
    requirement_title = (requirement.get("title") or "") if requirement else ""

    fields = data.model_dump(mode="json")
    fields["status"] = EpicStatus.TODO.value
    fields["progress"] = 0
    epic = lineage.create_with_hierarchy_id(
        store,
        Collection.EPICS,
        fields,
        scope=f"epic:{data.project_id}",
        sibling_count=len(existing),
        make_id=lambda n: hierarchy_ids.generate_epic_id(
            project.get("code") or "", project.get("name") or "", requirement_title, data.name, n
        ),
    )
    logger.info(f"Created epic {epic['hierarchy_id']}: {epic['name']}")
    return epic


def get_epic(store: DocumentStore, epic_id: str) -> dict:
    return store.get(Collection.EPICS, epic_id)


def list_epics(
    store: DocumentStore,
    project_id: Optional[str] = None,
    client_requirement_id: Optional[str] = None,
) -> list[dict]:
    filters = {"project_id": project_id} if project_id else None
    return _apply_filters(
        store.list(Collection.EPICS, filters, order_by="-created_at"),
        client_requirement_id=client_requirement_id,
    )


def update_epic(store: DocumentStore, epic_id: str, update: schemas.EpicUpdate) -> dict:
    store.get(Collection.EPICS, epic_id)
    changes = update.model_dump(exclude_unset=True, mode="json")
    epic = store.update(Collection.EPICS, epic_id, changes)
    logger.info(f"Updated epic {epic.get('hierarchy_id')}")
    return epic


def delete_epic(store: DocumentStore, epic_id: str) -> None:
    epic = store.get(Collection.EPICS, epic_id)
    store.delete(Collection.EPICS, epic_id)
    logger.info(f"Deleted epic {epic.get('hierarchy_id')}")


def get_epic_progress(store: DocumentStore, epic_id: str) -> schemas.EpicProgressResponse:
    """Progress of an epic derived from its linked tasks (read path only)."""
    epic = store.get(Collection.EPICS, epic_id)
    tasks = store.list(Collection.TASKS, {"epic_id": epic_id})
    completed = sum(1 for t in tasks if t.get("status") == TaskStatus.DONE.value)
    return schemas.EpicProgressResponse(
        epic_id=epic_id,
        total_tasks=len(tasks),
        completed_tasks=completed,
        progress=status_sync.calculate_epic_progress(tasks, epic.get("progress") or 0),
        status=status_sync.calculate_epic_status(tasks) or epic.get("status") or EpicStatus.TODO,
    )


# ============================================================================
# Functional Requirement CRUD Operations
# ============================================================================

def _schedule_fr(
    store: DocumentStore,
    fr: dict,
    new_sprint_id: Optional[str],
    previous_sprint_id: Optional[str],
    result: MutationResult,
    notifier: Optional[Notifier],
    created_by: Optional[str] = None,
) -> None:
    """Auto-create the sprint task for an FR without failing the FR mutation."""
    try:
        task = status_sync.auto_create_task_on_sprint_assignment(
            store, fr, new_sprint_id, previous_sprint_id, created_by=created_by
        )
    except StoreError as e:
        logger.warning(f"FR {fr.get('hierarchy_id')} saved but task creation failed: {e}")
        result.warnings.append(f"Requirement saved but task creation failed: {e}")
        return

    if task is None:
        return
    result.created_task = task
    _notify_assigned(store, notifier, task, task.get("assigned_to"))
    warning = status_sync.reconcile_fr_status(store, fr["id"], notifier)
    if warning:
        result.warnings.append(warning)
        return
    refreshed = lineage.find_document(store, Collection.FUNCTIONAL_REQUIREMENTS, fr["id"])
    if refreshed is not None:
        result.document = refreshed


def create_functional_requirement(
    store: DocumentStore,
    data: schemas.FunctionalRequirementCreate,
    notifier: Optional[Notifier] = None,
) -> MutationResult:
    """
    Create a functional requirement.

    A child requirement (``parent_requirement_id``) gets ``<parent id>.NN``.
    A top-level requirement gets the full-chain, epic-only or standalone id
    depending on which ancestors exist. Creating it directly in a sprint
    also creates its first task.
    """
    project = store.get(Collection.PROJECTS, data.project_id)
    fields = data.model_dump(mode="json")

    parent = lineage.find_document(store, Collection.FUNCTIONAL_REQUIREMENTS, data.parent_requirement_id)
    if parent is not None and parent.get("hierarchy_id"):
        siblings = store.list(
            Collection.FUNCTIONAL_REQUIREMENTS,
            {"project_id": data.project_id, "parent_requirement_id": parent["id"]},
        )
        fr = lineage.create_with_hierarchy_id(
            store,
            Collection.FUNCTIONAL_REQUIREMENTS,
            fields,
            scope=f"fr_child:{parent['id']}",
            sibling_count=len(siblings),
            make_id=lambda n: hierarchy_ids.child_id(parent["hierarchy_id"], n),
        )
    else:
        existing = store.list(Collection.FUNCTIONAL_REQUIREMENTS, {"project_id": data.project_id})
        ancestry = lineage.resolve_fr_ancestry(store, project, data.epic_id, data.client_requirement_id)
        fr = lineage.create_with_hierarchy_id(
            store,
            Collection.FUNCTIONAL_REQUIREMENTS,
            fields,
            scope=f"fr:{data.project_id}",
            sibling_count=len(existing),
            make_id=lambda n: hierarchy_ids.format_fr_id(ancestry, data.title, n),
        )
    logger.info(f"Created functional requirement {fr['hierarchy_id']}: {fr['title']}")

    result = MutationResult(document=fr)
    if data.sprint_id:
        _schedule_fr(store, fr, data.sprint_id, None, result, notifier)
    return result


def get_functional_requirement(store: DocumentStore, fr_id: str) -> dict:
    return store.get(Collection.FUNCTIONAL_REQUIREMENTS, fr_id)


def list_functional_requirements(
    store: DocumentStore,
    project_id: Optional[str] = None,
    epic_id: Optional[str] = None,
    sprint_id: Optional[str] = None,
    status: Optional[str] = None,
    sort_by_status: bool = False,
) -> list[dict]:
    """List FRs newest first, or grouped by workflow status when ``sort_by_status``."""
    filters = {"project_id": project_id} if project_id else None
    frs = _apply_filters(
        store.list(Collection.FUNCTIONAL_REQUIREMENTS, filters, order_by="-created_at"),
        epic_id=epic_id,
        sprint_id=sprint_id,
        status=status,
    )
    if sort_by_status:
        frs.sort(key=lambda fr: STATUS_SORT_ORDER.get(FRStatus(fr["status"]), len(STATUS_SORT_ORDER)))
    return frs


def update_functional_requirement(
    store: DocumentStore,
    fr_id: str,
    update: schemas.FunctionalRequirementUpdate,
    notifier: Optional[Notifier] = None,
    updated_by: Optional[str] = None,
) -> MutationResult:
    """
    Update a functional requirement.

    The previous sprint link is read from the stored FR, so assigning a
    sprint creates exactly one task and re-saving the same sprint creates
    none. The hierarchy id never changes.

    Raises:
        StateTransitionError: If the requested status change is not allowed
    """
    fr = store.get(Collection.FUNCTIONAL_REQUIREMENTS, fr_id)
    changes = update.model_dump(exclude_unset=True, mode="json")

    if "status" in changes:
        validate_transition(FRStatus(fr["status"]), FRStatus(changes["status"]))

    previous_sprint_id = fr.get("sprint_id")
    updated = store.update(Collection.FUNCTIONAL_REQUIREMENTS, fr_id, changes)
    logger.info(f"Updated functional requirement {updated.get('hierarchy_id')}: {sorted(changes)}")

    result = MutationResult(document=updated)
    if "sprint_id" in changes:
        _schedule_fr(store, updated, changes["sprint_id"], previous_sprint_id, result, notifier, updated_by)
    return result


def delete_functional_requirement(store: DocumentStore, fr_id: str) -> None:
    """
    Delete a functional requirement without child requirements.

    Raises:
        ChildrenExistError: If child requirements exist (nothing is deleted)
    """
    fr = store.get(Collection.FUNCTIONAL_REQUIREMENTS, fr_id)
    children = store.list(Collection.FUNCTIONAL_REQUIREMENTS, {"parent_requirement_id": fr_id})
    if children:
        logger.warning(f"Blocked delete of {fr.get('hierarchy_id')}: {len(children)} child requirements")
        raise ChildrenExistError(
            "Cannot delete requirement with child requirements. Delete children first."
        )
    store.delete(Collection.FUNCTIONAL_REQUIREMENTS, fr_id)
    logger.info(f"Deleted functional requirement {fr.get('hierarchy_id')}")


def clone_functional_requirement(
    store: DocumentStore,
    fr_id: str,
    clone: schemas.FunctionalRequirementClone,
) -> dict:
    """
    Reuse a functional requirement in another project.

    The copy gets a hierarchy id for its new ancestry, starts in DRAFT and
    has no sprint or assignees.
    """
    original = store.get(Collection.FUNCTIONAL_REQUIREMENTS, fr_id)
    target = store.get(Collection.PROJECTS, clone.target_project_id)
    existing = store.list(Collection.FUNCTIONAL_REQUIREMENTS, {"project_id": clone.target_project_id})
    ancestry = lineage.resolve_fr_ancestry(
        store, target, clone.target_epic_id, clone.target_client_requirement_id
    )

    fields = {
        "workspace_id": target.get("workspace_id"),
        "project_id": clone.target_project_id,
        "epic_id": clone.target_epic_id,
        "sprint_id": None,
        "client_requirement_id": clone.target_client_requirement_id,
        "parent_requirement_id": None,
        "title": original["title"],
        "description": f"{original.get('description') or ''}\n\n(Cloned from {original.get('hierarchy_id')})".lstrip(),
        "type": original.get("type"),
        "complexity": original.get("complexity"),
        "priority": original.get("priority"),
        "status": FRStatus.DRAFT.value,
        "reusable": original.get("reusable", False),
        "assigned_to": [],
        "tags": list(original.get("tags") or []),
        "created_by": original.get("created_by"),
    }
    fr = lineage.create_with_hierarchy_id(
        store,
        Collection.FUNCTIONAL_REQUIREMENTS,
        fields,
        scope=f"fr:{clone.target_project_id}",
        sibling_count=len(existing),
        make_id=lambda n: hierarchy_ids.format_fr_id(ancestry, original["title"], n),
    )
    logger.info(f"Cloned {original.get('hierarchy_id')} into {fr['hierarchy_id']}")
    return fr


# ============================================================================
# Sprint CRUD Operations
# ============================================================================

def create_sprint(store: DocumentStore, data: schemas.SprintCreate) -> dict:
    project = store.get(Collection.PROJECTS, data.project_id)
    if data.end_date < data.start_date:
        raise ValueError("Sprint end date must not be before its start date")

    fields = data.model_dump(mode="json")
    fields["label"] = hierarchy_ids.generate_sprint_label(
        project.get("code") or "", project.get("name") or "", data.name
    )
    sprint = store.create(Collection.SPRINTS, fields)
    logger.info(f"Created sprint {sprint['label']} ({sprint['id']})")
    return sprint


def get_sprint(store: DocumentStore, sprint_id: str) -> dict:
    return store.get(Collection.SPRINTS, sprint_id)


def list_sprints(
    store: DocumentStore,
    project_id: Optional[str] = None,
    status: Optional[str] = None,
) -> list[dict]:
    filters = {"project_id": project_id} if project_id else None
    return _apply_filters(
        store.list(Collection.SPRINTS, filters, order_by="start_date"),
        status=status,
    )


def update_sprint(store: DocumentStore, sprint_id: str, update: schemas.SprintUpdate) -> dict:
    store.get(Collection.SPRINTS, sprint_id)
    changes = update.model_dump(exclude_unset=True, mode="json")
    sprint = store.update(Collection.SPRINTS, sprint_id, changes)
    logger.info(f"Updated sprint {sprint_id}: {sorted(changes)}")
    return sprint


def delete_sprint(store: DocumentStore, sprint_id: str) -> None:
    store.get(Collection.SPRINTS, sprint_id)
    store.delete(Collection.SPRINTS, sprint_id)
    logger.info(f"Deleted sprint {sprint_id}")


# ============================================================================
# Task CRUD Operations
# ============================================================================

def _notify_assigned(
    store: DocumentStore,
    notifier: Optional[Notifier],
    task: dict,
    user_ids: Optional[list[str]],
) -> None:
    if notifier is None or not user_ids:
        return
    project = lineage.find_document(store, Collection.PROJECTS, task.get("project_id"))
    project_name = project.get("name") if project else task.get("project_id")
    notify(
        notifier,
        NotificationType.TASK_ASSIGNED,
        user_ids,
        title="New task assigned",
        message=f"{task.get('hierarchy_id')} {task.get('title')} ({project_name})",
        related_entity_id=task["id"],
        related_entity_type="TASK",
        workspace_id=task.get("workspace_id"),
    )


def _top_level_task_id_builder(store: DocumentStore, project: dict, data: schemas.TaskCreate):
    if data.functional_requirement_id:
        fr = lineage.find_document(store, Collection.FUNCTIONAL_REQUIREMENTS, data.functional_requirement_id)
        if fr is None:
            ancestry = hierarchy_ids.BareTaskAncestry(project.get("code") or "", project.get("name") or "")
        else:
            ancestry = lineage.resolve_task_ancestry(store, project, fr, data.sprint_id)
    else:
        ancestry = lineage.resolve_task_ancestry(store, project, None, data.sprint_id)
    return lambda n: hierarchy_ids.format_task_id(ancestry, data.title, n)


def create_task(
    store: DocumentStore,
    data: schemas.TaskCreate,
    notifier: Optional[Notifier] = None,
) -> MutationResult:
    """
    Create a task.

    A subtask's id is its parent's id plus ``.NN`` (siblings so far + 1).
    A top-level task's id depends on its FR and sprint links; if a linked
    ancestor cannot be found the plain ``<code>-TNN`` form is used.
    """
    project = store.get(Collection.PROJECTS, data.project_id)
    existing = store.list(Collection.TASKS, {"project_id": data.project_id})

    fields = data.model_dump(mode="json")
    fields["assigned_by"] = data.assigned_by or data.created_by
    fields["actual_hours"] = 0
    fields["position"] = len(existing)

    parent = lineage.find_document(store, Collection.TASKS, data.parent_task_id)
    if parent is not None and parent.get("hierarchy_id"):
        siblings = [t for t in existing if t.get("parent_task_id") == parent["id"]]
        task = lineage.create_with_hierarchy_id(
            store,
            Collection.TASKS,
            fields,
            scope=f"subtask:{parent['id']}",
            sibling_count=len(siblings),
            make_id=lambda n: hierarchy_ids.child_id(parent["hierarchy_id"], n),
        )
    else:
        task = lineage.create_with_hierarchy_id(
            store,
            Collection.TASKS,
            fields,
            scope=f"task:{data.project_id}",
            sibling_count=len([t for t in existing if not t.get("parent_task_id")]),
            make_id=_top_level_task_id_builder(store, project, data),
        )
    logger.info(f"Created task {task['hierarchy_id']}: {task['title']}")

    result = MutationResult(document=task)
    _notify_assigned(store, notifier, task, data.assigned_to)
    if task.get("functional_requirement_id"):
        warning = status_sync.reconcile_fr_status(store, task["functional_requirement_id"], notifier)
        if warning:
            result.warnings.append(warning)
    return result


def get_task(store: DocumentStore, task_id: str) -> dict:
    return store.get(Collection.TASKS, task_id)


def list_tasks(
    store: DocumentStore,
    project_id: Optional[str] = None,
    sprint_id: Optional[str] = None,
    epic_id: Optional[str] = None,
    functional_requirement_id: Optional[str] = None,
    parent_task_id: Optional[str] = None,
    status: Optional[str] = None,
    priority: Optional[str] = None,
    assignee_id: Optional[str] = None,
) -> list[dict]:
    """List tasks in board order (position, then creation)."""
    filters = {"project_id": project_id} if project_id else None
    tasks = _apply_filters(
        store.list(Collection.TASKS, filters),
        sprint_id=sprint_id,
        epic_id=epic_id,
        functional_requirement_id=functional_requirement_id,
        parent_task_id=parent_task_id,
        status=status,
        priority=priority,
    )
    if assignee_id:
        tasks = [t for t in tasks if assignee_id in (t.get("assigned_to") or [])]
    tasks.sort(key=lambda t: t.get("position") or 0)
    return tasks


def _notify_task_changes(
    store: DocumentStore,
    notifier: Optional[Notifier],
    before: dict,
    after: dict,
    changes: dict,
) -> None:
    if notifier is None:
        return

    assignees = after.get("assigned_to") or []
    if "assigned_to" in changes:
        added = [a for a in assignees if a not in (before.get("assigned_to") or [])]
        _notify_assigned(store, notifier, after, added)

    common = dict(
        related_entity_id=after["id"],
        related_entity_type="TASK",
        workspace_id=after.get("workspace_id"),
    )

    if changes.get("priority") and changes["priority"] != before.get("priority"):
        notify(
            notifier,
            NotificationType.TASK_PRIORITY_CHANGED,
            assignees,
            title="Task priority changed",
            message=f"{after.get('hierarchy_id')} priority is now {changes['priority']}",
            **common,
        )

    if changes.get("status") and changes["status"] != before.get("status"):
        if changes["status"] == TaskStatus.DONE.value:
            project = lineage.find_document(store, Collection.PROJECTS, after.get("project_id")) or {}
            reviewers = [
                uid for uid in [project.get("owner_id"), *(project.get("member_ids") or [])]
                if uid and uid not in assignees
            ]
            notify(
                notifier,
                NotificationType.TASK_COMPLETED,
                reviewers,
                title="Task completed",
                message=f"{after.get('hierarchy_id')} {after.get('title')} is ready for review",
                **common,
            )
        else:
            notify(
                notifier,
                NotificationType.TASK_STATUS_CHANGED,
                assignees,
                title="Task status changed",
                message=f"{after.get('hierarchy_id')} moved to {changes['status']}",
                **common,
            )


def update_task(
    store: DocumentStore,
    task_id: str,
    update: schemas.TaskUpdate,
    notifier: Optional[Notifier] = None,
) -> MutationResult:
    """
    Update a task, then re-derive the status of every FR it is (or was) linked to.

    The task update is the primary operation: FR sync and notification
    failures are reported as warnings and never undo it.
    """
    before = store.get(Collection.TASKS, task_id)
    changes = update.model_dump(exclude_unset=True, mode="json")
    after = store.update(Collection.TASKS, task_id, changes)
    logger.info(f"Updated task {after.get('hierarchy_id')}: {sorted(changes)}")

    result = MutationResult(document=after)
    _notify_task_changes(store, notifier, before, after, changes)

    status_changed = "status" in changes and changes["status"] != before.get("status")
    link_changed = (
        "functional_requirement_id" in changes
        and changes["functional_requirement_id"] != before.get("functional_requirement_id")
    )
    if status_changed or link_changed:
        fr_ids = {before.get("functional_requirement_id"), after.get("functional_requirement_id")}
        for fr_id in sorted(f for f in fr_ids if f):
            warning = status_sync.reconcile_fr_status(store, fr_id, notifier)
            if warning:
                result.warnings.append(warning)
    return result


def delete_task(store: DocumentStore, task_id: str, notifier: Optional[Notifier] = None) -> list[str]:
    """
    Delete a task and re-derive its FR's status.

    Returns:
        Warnings from the best-effort FR sync
    """
    task = store.get(Collection.TASKS, task_id)
    store.delete(Collection.TASKS, task_id)
    logger.info(f"Deleted task {task.get('hierarchy_id')}")

    warnings = []
    if task.get("functional_requirement_id"):
        warning = status_sync.reconcile_fr_status(store, task["functional_requirement_id"], notifier)
        if warning:
            warnings.append(warning)
    return warnings
