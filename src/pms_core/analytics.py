"""Project KPI aggregation over tasks, functional requirements and sprints."""
import logging
from collections import Counter
from datetime import datetime, timezone
from typing import Optional

from pydantic import TypeAdapter, ValidationError

from . import schemas
from .models import Collection, Priority, TaskStatus
from .store import DocumentStore

logger = logging.getLogger("pms-core.analytics")

_datetime_adapter = TypeAdapter(datetime)


def _parse_due_date(value) -> Optional[datetime]:
    """Parse a stored due date as naive UTC; unparseable values count as no due date."""
    if not value:
        return None
    try:
        parsed = _datetime_adapter.validate_python(value)
    except ValidationError:
        logger.warning(f"Ignoring unparseable due date: {value!r}")
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def _percent(part: int, whole: int) -> int:
    if whole == 0:
        return 0
    return int(part / whole * 100 + 0.5)


def project_summary(
    store: DocumentStore,
    project_id: str,
    now: Optional[datetime] = None,
) -> schemas.ProjectAnalytics:
    """
    Compute the KPI summary for a project.

    Args:
        store: Document store
        project_id: Project to summarise
        now: Reference time for overdue detection (naive UTC, defaults to now)

    Raises:
        DocumentNotFoundError: If the project does not exist
    """
    store.get(Collection.PROJECTS, project_id)
    if now is None:
        now = datetime.utcnow()
    elif now.tzinfo is not None:
        now = now.astimezone(timezone.utc).replace(tzinfo=None)

    tasks = store.list(Collection.TASKS, {"project_id": project_id})
    frs = store.list(Collection.FUNCTIONAL_REQUIREMENTS, {"project_id": project_id})
    sprints = store.list(Collection.SPRINTS, {"project_id": project_id}, order_by="start_date")

    status_distribution = {s.value: 0 for s in TaskStatus}
    status_distribution.update(Counter(t.get("status") for t in tasks if t.get("status")))
    priority_distribution = {p.value: 0 for p in Priority}
    priority_distribution.update(Counter(t.get("priority") for t in tasks if t.get("priority")))

    done = TaskStatus.DONE.value
    completed = status_distribution.get(done, 0)
    completion_rate = round(completed / len(tasks) * 100, 1) if tasks else 0.0

    overdue = 0
    for task in tasks:
        due = _parse_due_date(task.get("due_date"))
        if due is not None and due < now and task.get("status") != done:
            overdue += 1

    assignee_stats: dict[str, schemas.AssigneeStats] = {}
    for task in tasks:
        for user_id in task.get("assigned_to") or []:
            stats = assignee_stats.setdefault(user_id, schemas.AssigneeStats())
            stats.total += 1
            if task.get("status") == done:
                stats.completed += 1
            elif task.get("status") == TaskStatus.IN_PROGRESS.value:
                stats.in_progress += 1

    sprint_progress = []
    for sprint in sprints:
        sprint_tasks = [t for t in tasks if t.get("sprint_id") == sprint["id"]]
        sprint_done = sum(1 for t in sprint_tasks if t.get("status") == done)
        sprint_progress.append(schemas.SprintProgress(
            sprint_id=sprint["id"],
            name=sprint.get("name") or "",
            status=sprint["status"],
            total_tasks=len(sprint_tasks),
            completed_tasks=sprint_done,
            progress=_percent(sprint_done, len(sprint_tasks)),
        ))

    logger.debug(f"Computed analytics for project {project_id}: {len(tasks)} tasks, {len(frs)} FRs")
    return schemas.ProjectAnalytics(
        project_id=project_id,
        total_tasks=len(tasks),
        completed_tasks=completed,
        completion_rate=completion_rate,
        status_distribution=status_distribution,
        priority_distribution=priority_distribution,
        total_estimated_hours=sum(float(t.get("estimated_hours") or 0) for t in tasks),
        total_actual_hours=sum(float(t.get("actual_hours") or 0) for t in tasks),
        overdue_tasks=overdue,
        assignee_stats=assignee_stats,
        fr_status_distribution=dict(Counter(fr.get("status") for fr in frs if fr.get("status"))),
        sprints=sprint_progress,
    )
