"""Tests for project KPI aggregation."""
from datetime import datetime

import pytest

from pms_core import analytics, crud, schemas
from pms_core.models import SprintStatus, TaskStatus
from pms_core.store import DocumentNotFoundError

NOW = datetime(2026, 3, 1, 12, 0)


@pytest.fixture
def populated(store, project, sprint):
    """Three tasks (one done, one overdue, one upcoming) and one FR."""
    def add(title, **fields):
        return crud.create_task(store, schemas.TaskCreate(project_id=project["id"], title=title, **fields)).document

    done = add(
        "Ship login", status=TaskStatus.DONE, priority="HIGH", estimated_hours=5,
        assigned_to=["dev-1"], sprint_id=sprint["id"], due_date="2026-01-01T00:00:00",
    )
    crud.update_task(store, done["id"], schemas.TaskUpdate(actual_hours=4.5))
    add(
        "Fix logout", status=TaskStatus.IN_PROGRESS, priority="MEDIUM", estimated_hours=3,
        assigned_to=["dev-1", "dev-2"], sprint_id=sprint["id"], due_date="2026-02-01T00:00:00+00:00",
    )
    add("Write docs", status=TaskStatus.TODO, priority="LOW", estimated_hours=2, due_date="2026-04-01T00:00:00")
    crud.create_functional_requirement(
        store, schemas.FunctionalRequirementCreate(project_id=project["id"], title="Login flow")
    )
    return project


class TestProjectSummary:
    """Test the project analytics summary."""

    def test_totals_and_distributions(self, store, populated):
        summary = analytics.project_summary(store, populated["id"], now=NOW)

        assert summary.total_tasks == 3
        assert summary.completed_tasks == 1
        assert summary.completion_rate == 33.3
        assert summary.status_distribution == {
            "BACKLOG": 0, "TODO": 1, "IN_PROGRESS": 1, "REVIEW": 0, "DONE": 1,
        }
        assert summary.priority_distribution == {"LOW": 1, "MEDIUM": 1, "HIGH": 1, "CRITICAL": 0}
        assert summary.fr_status_distribution == {"DRAFT": 1}

    def test_hours(self, store, populated):
        summary = analytics.project_summary(store, populated["id"], now=NOW)
        assert summary.total_estimated_hours == 10
        assert summary.total_actual_hours == 4.5

    def test_overdue_ignores_done_and_future_tasks(self, store, populated):
        assert analytics.project_summary(store, populated["id"], now=NOW).overdue_tasks == 1
        assert analytics.project_summary(store, populated["id"], now=datetime(2025, 1, 1)).overdue_tasks == 0

    def test_assignee_stats(self, store, populated):
        stats = analytics.project_summary(store, populated["id"], now=NOW).assignee_stats

        assert stats["dev-1"].total == 2
        assert stats["dev-1"].completed == 1
        assert stats["dev-1"].in_progress == 1
        assert stats["dev-2"].total == 1
        assert stats["dev-2"].completed == 0

    def test_sprint_progress(self, store, populated, sprint):
        [progress] = analytics.project_summary(store, populated["id"], now=NOW).sprints

        assert progress.sprint_id == sprint["id"]
        assert progress.status == SprintStatus.PLANNING
        assert progress.total_tasks == 2
        assert progress.completed_tasks == 1
        assert progress.progress == 50

    def test_empty_project(self, store, project):
        summary = analytics.project_summary(store, project["id"], now=NOW)

        assert summary.total_tasks == 0
        assert summary.completion_rate == 0.0
        assert summary.assignee_stats == {}
        assert summary.sprints == []

    def test_unknown_project(self, store):
        with pytest.raises(DocumentNotFoundError):
            analytics.project_summary(store, "missing")
