"""Derived status rules linking functional requirements, tasks and epics.

- An FR's status follows the aggregate status of its linked tasks.
- Assigning an FR to a new sprint creates a task for it in that sprint.
- An epic's progress is the share of its linked tasks that are done.

The FR sync is recomputed from scratch every time, so an FR can move back
(e.g. TESTED → IMPLEMENTED when a done task is reopened). It never writes to
a DEPLOYED FR.
"""
import logging
import math
from typing import Iterable, Optional, Union

from . import hierarchy_ids, lineage
from .models import Collection, EpicStatus, FRStatus, NotificationType, Priority, TaskStatus
from .notifications import Notifier, notify
from .store import DocumentStore, StoreError

logger = logging.getLogger("pms-core.status_sync")

_STARTED = {TaskStatus.IN_PROGRESS.value, TaskStatus.REVIEW.value}


def _status_of(task: Union[dict, str, TaskStatus]) -> str:
    value = task.get("status") if isinstance(task, dict) else task
    return value.value if isinstance(value, TaskStatus) else str(value)


def calculate_fr_status(tasks: Iterable[Union[dict, str, TaskStatus]]) -> FRStatus:
    """
    Derive an FR status from its linked tasks.

    - no tasks                    → DRAFT
    - every task DONE             → TESTED
    - any task IN_PROGRESS/REVIEW → IMPLEMENTED
    - otherwise (none started)    → APPROVED

    Args:
        tasks: Task documents, or bare task statuses

    Returns:
        The derived FR status
    """
    statuses = [_status_of(t) for t in tasks]
    if not statuses:
        return FRStatus.DRAFT
    if all(s == TaskStatus.DONE.value for s in statuses):
        return FRStatus.TESTED
    if any(s in _STARTED for s in statuses):
        return FRStatus.IMPLEMENTED
    return FRStatus.APPROVED


def sync_fr_status_from_tasks(store: DocumentStore, fr_id: str) -> Optional[FRStatus]:
    """
    Recompute an FR's status from its tasks and persist it if it changed.

    Returns:
        The new status if the FR was updated, None if nothing changed

    Raises:
        DocumentNotFoundError: If the FR does not exist
        StoreError: If reading tasks or writing the FR fails
    """
    fr = store.get(Collection.FUNCTIONAL_REQUIREMENTS, fr_id)
    current = fr.get("status")

    if current == FRStatus.DEPLOYED.value:
        logger.debug(f"FR {fr.get('hierarchy_id')} is deployed; skipping sync")
        return None

    tasks = store.list(Collection.TASKS, {"functional_requirement_id": fr_id})
    new_status = calculate_fr_status(tasks)
    if new_status.value == current:
        return None

    store.update(Collection.FUNCTIONAL_REQUIREMENTS, fr_id, {"status": new_status.value})
    logger.info(f"FR {fr.get('hierarchy_id')} status {current} → {new_status.value} ({len(tasks)} tasks)")
    return new_status


def reconcile_fr_status(
    store: DocumentStore,
    fr_id: str,
    notifier: Optional[Notifier] = None,
) -> Optional[str]:
    """
    Best-effort FR status sync run after a task mutation.

    Safe to repeat: the status is derived from the current tasks only. Never
    raises; a failure is logged and returned so the caller can surface it as
    a warning while keeping its own (primary) change.

    Returns:
        A warning message if the sync failed, otherwise None
    """
    try:
        new_status = sync_fr_status_from_tasks(store, fr_id)
    except StoreError as e:
        logger.warning(f"FR status sync failed for {fr_id}: {e}")
        return f"Task saved but requirement status could not be synchronised: {e}"

    if new_status is not None and notifier is not None:
        try:
            fr = store.get(Collection.FUNCTIONAL_REQUIREMENTS, fr_id)
        except StoreError as e:
            logger.warning(f"Could not load FR {fr_id} for notification: {e}")
            return None
        notify(
            notifier,
            NotificationType.FR_STATUS_CHANGED,
            fr.get("assigned_to"),
            title="Requirement status changed",
            message=f"{fr.get('hierarchy_id')} is now {new_status.value}",
            related_entity_id=fr_id,
            related_entity_type="FUNCTIONAL_REQUIREMENT",
            workspace_id=fr.get("workspace_id"),
        )
    return None


def is_new_sprint_assignment(new_sprint_id: Optional[str], previous_sprint_id: Optional[str]) -> bool:
    return bool(new_sprint_id) and new_sprint_id != (previous_sprint_id or None)


def auto_create_task_on_sprint_assignment(
    store: DocumentStore,
    fr: dict,
    new_sprint_id: Optional[str],
    previous_sprint_id: Optional[str],
    created_by: Optional[str] = None,
) -> Optional[dict]:
    """
    Create the task for an FR that was just scheduled into a sprint.

    Only acts when ``new_sprint_id`` is set and differs from
    ``previous_sprint_id``. The guard trusts the caller's previous value: a
    stale previous id makes a re-save look like a new assignment and creates
    another task. ``crud.update_functional_requirement`` reads the stored
    value itself for that reason.

    Args:
        store: Document store
        fr: The FR document after its update
        new_sprint_id: Sprint the FR is now assigned to
        previous_sprint_id: Sprint the FR was assigned to before
        created_by: User creating the task (defaults to the FR's creator)

    Returns:
        The created task, or None if the guard did not pass

    Raises:
        StoreError: If any lookup or the creation fails
    """
    if not is_new_sprint_assignment(new_sprint_id, previous_sprint_id):
        return None

    project_id = fr["project_id"]
    project = store.get(Collection.PROJECTS, project_id)
    existing = store.list(Collection.TASKS, {"project_id": project_id})
    sibling_count = len([t for t in existing if not t.get("parent_task_id")])
    ancestry = lineage.resolve_task_ancestry(store, project, fr, new_sprint_id)

    fields = {
        "workspace_id": fr.get("workspace_id"),
        "project_id": project_id,
        "title": fr.get("title") or "",
        "description": fr.get("description") or f"Task auto-created from FR: {fr.get('hierarchy_id')}",
        "status": TaskStatus.TODO.value,
        "priority": fr.get("priority") or Priority.MEDIUM.value,
        "assigned_to": list(fr.get("assigned_to") or []),
        "created_by": created_by or fr.get("created_by"),
        "sprint_id": new_sprint_id,
        "epic_id": fr.get("epic_id"),
        "functional_requirement_id": fr["id"],
        "parent_task_id": None,
        "due_date": None,
        "estimated_hours": 0,
        "actual_hours": 0,
        "labels": [],
        "position": len(existing),
    }
    task = lineage.create_with_hierarchy_id(
        store,
        Collection.TASKS,
        fields,
        scope=f"task:{project_id}",
        sibling_count=sibling_count,
        make_id=lambda n: hierarchy_ids.format_task_id(ancestry, fields["title"], n),
    )
    logger.info(f"Auto-created task {task['hierarchy_id']} for FR {fr.get('hierarchy_id')}")
    return task


def calculate_epic_progress(tasks: Iterable[Union[dict, str, TaskStatus]], stored_progress: int = 0) -> int:
    """
    Percentage of an epic's tasks that are done, rounded half up.

    Falls back to ``stored_progress`` while the epic has no tasks.
    """
    statuses = [_status_of(t) for t in tasks]
    if not statuses:
        return stored_progress or 0
    done = sum(1 for s in statuses if s == TaskStatus.DONE.value)
    return int(math.floor(done / len(statuses) * 100 + 0.5))


def calculate_epic_status(tasks: Iterable[Union[dict, str, TaskStatus]]) -> Optional[EpicStatus]:
    """
    Epic status implied by its tasks.

    All tasks done gives DONE, any task done or started gives IN_PROGRESS,
    otherwise TODO. Returns None when the epic has no tasks so the stored
    status is kept.
    """
    statuses = [_status_of(t) for t in tasks]
    if not statuses:
        return None
    if all(s == TaskStatus.DONE.value for s in statuses):
        return EpicStatus.DONE
    if any(s == TaskStatus.DONE.value or s in _STARTED for s in statuses):
        return EpicStatus.IN_PROGRESS
    return EpicStatus.TODO
