"""Tests for the HTTP API."""
from fastapi import HTTPException

from pms_core.api.errors import paginate, to_http_exception
from pms_core.crud import ChildrenExistError
from pms_core.store import DocumentNotFoundError, HierarchyIdCollisionError


def create_project(client, **fields):
    payload = {"name": "Payment Test System", "code": "PTES", "member_ids": ["dev-1"], **fields}
    response = client.post("/api/v1/projects/", json=payload)
    assert response.status_code == 201
    return response.json()


def create_fr(client, project_id, **fields):
    response = client.post(
        "/api/v1/functional-requirements/",
        json={"project_id": project_id, "title": "Login flow", **fields},
    )
    assert response.status_code == 201
    return response.json()


def create_sprint(client, project_id):
    response = client.post("/api/v1/sprints/", json={
        "project_id": project_id, "name": "Sprint 1", "start_date": "2026-01-05", "end_date": "2026-01-19",
    })
    assert response.status_code == 201
    return response.json()


class TestServerInfo:
    """Test root and health endpoints."""

    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["docs"] == "/docs"

    def test_health(self, client):
        assert client.get("/health").json() == {"status": "healthy"}


class TestProjectsApi:
    """Test project endpoints."""

    def test_create_get_update(self, client):
        project = create_project(client)
        assert project["code"] == "PTES"

        response = client.patch(f"/api/v1/projects/{project['id']}", json={"status": "ON_HOLD"})
        assert response.status_code == 200
        assert response.json()["status"] == "ON_HOLD"
        assert client.get(f"/api/v1/projects/{project['id']}").json()["status"] == "ON_HOLD"

    def test_missing_project_is_404(self, client):
        assert client.get("/api/v1/projects/missing").status_code == 404

    def test_invalid_code_is_422(self, client):
        response = client.post("/api/v1/projects/", json={"name": "Demo", "code": "no-dashes"})
        assert response.status_code == 422

    def test_analytics(self, client):
        project = create_project(client)
        client.post("/api/v1/tasks/", json={"project_id": project["id"], "title": "Write docs", "status": "DONE"})

        response = client.get(f"/api/v1/projects/{project['id']}/analytics")

        assert response.status_code == 200
        assert response.json()["completion_rate"] == 100.0


class TestFunctionalRequirementsApi:
    """Test FR endpoints including sprint scheduling and guards."""

    def test_create_in_sprint_returns_created_task(self, client):
        project = create_project(client)
        sprint = create_sprint(client, project["id"])

        body = create_fr(client, project["id"], sprint_id=sprint["id"])

        assert body["requirement"]["hierarchy_id"] == "PTES-LOG-01"
        assert body["requirement"]["status"] == "APPROVED"
        assert body["created_task"]["hierarchy_id"] == "PTES-LOG-01-S1-LOG-01"
        assert body["warnings"] == []

    def test_resave_same_sprint_creates_no_task(self, client):
        project = create_project(client)
        sprint = create_sprint(client, project["id"])
        fr = create_fr(client, project["id"])["requirement"]

        first = client.patch(f"/api/v1/functional-requirements/{fr['id']}", json={"sprint_id": sprint["id"]})
        second = client.patch(f"/api/v1/functional-requirements/{fr['id']}", json={"sprint_id": sprint["id"]})

        assert first.json()["created_task"] is not None
        assert second.json()["created_task"] is None
        tasks = client.get("/api/v1/tasks/", params={"functional_requirement_id": fr["id"]}).json()
        assert tasks["total"] == 1

    def test_deployed_transition_is_400(self, client):
        project = create_project(client)
        fr = create_fr(client, project["id"])["requirement"]
        url = f"/api/v1/functional-requirements/{fr['id']}"
        client.patch(url, json={"status": "DEPLOYED"})

        response = client.patch(url, json={"status": "DRAFT"})

        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "invalid_status_transition"
        assert client.get(f"{url}/transitions").json() == []

    def test_null_status_is_rejected(self, client):
        project = create_project(client)
        fr = create_fr(client, project["id"])["requirement"]
        url = f"/api/v1/functional-requirements/{fr['id']}"
        client.patch(url, json={"status": "DEPLOYED"})

        response = client.patch(url, json={"status": None, "title": None})

        assert response.status_code == 422
        body = client.get(url).json()
        assert body["status"] == "DEPLOYED"
        assert body["title"] == "Login flow"

    def test_null_sprint_clears_link(self, client):
        project = create_project(client)
        sprint = create_sprint(client, project["id"])
        fr = create_fr(client, project["id"], sprint_id=sprint["id"])["requirement"]

        response = client.patch(f"/api/v1/functional-requirements/{fr['id']}", json={"sprint_id": None})

        assert response.status_code == 200
        assert response.json()["requirement"]["sprint_id"] is None
        assert response.json()["created_task"] is None

    def test_delete_with_children_is_400(self, client):
        project = create_project(client)
        parent = create_fr(client, project["id"])["requirement"]
        create_fr(client, project["id"], parent_requirement_id=parent["id"])

        response = client.delete(f"/api/v1/functional-requirements/{parent['id']}")

        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "children_exist"
        assert client.get(f"/api/v1/functional-requirements/{parent['id']}").status_code == 200

    def test_clone(self, client):
        project = create_project(client)
        target = create_project(client, name="Operations", code="OPS")
        fr = create_fr(client, project["id"])["requirement"]

        response = client.post(
            f"/api/v1/functional-requirements/{fr['id']}/clone",
            json={"target_project_id": target["id"]},
        )

        assert response.status_code == 201
        assert response.json()["hierarchy_id"] == "OPS-LOG-01"


class TestTasksApi:
    """Test task endpoints and the FR status they drive."""

    def test_task_status_drives_fr_status(self, client):
        project = create_project(client)
        fr = create_fr(client, project["id"])["requirement"]
        response = client.post("/api/v1/tasks/", json={
            "project_id": project["id"], "title": "Login form", "functional_requirement_id": fr["id"],
        })
        task = response.json()["task"]
        fr_url = f"/api/v1/functional-requirements/{fr['id']}"
        assert client.get(fr_url).json()["status"] == "APPROVED"

        response = client.patch(f"/api/v1/tasks/{task['id']}", json={"status": "IN_PROGRESS"})
        assert response.status_code == 200
        assert response.json()["warnings"] == []
        assert client.get(fr_url).json()["status"] == "IMPLEMENTED"

        client.patch(f"/api/v1/tasks/{task['id']}", json={"status": "DONE"})
        assert client.get(fr_url).json()["status"] == "TESTED"

        response = client.delete(f"/api/v1/tasks/{task['id']}")
        assert response.json() == {"deleted": True, "warnings": []}
        assert client.get(fr_url).json()["status"] == "DRAFT"

    def test_subtasks(self, client):
        project = create_project(client)
        parent = client.post("/api/v1/tasks/", json={"project_id": project["id"], "title": "Parent"}).json()["task"]

        ids = [
            client.post("/api/v1/tasks/", json={
                "project_id": project["id"], "title": "Child", "parent_task_id": parent["id"],
            }).json()["task"]["hierarchy_id"]
            for _ in range(3)
        ]

        assert ids == ["PTES-T01.01", "PTES-T01.02", "PTES-T01.03"]

    def test_pagination(self, client):
        project = create_project(client)
        for title in ("One", "Two", "Three"):
            client.post("/api/v1/tasks/", json={"project_id": project["id"], "title": title})

        body = client.get("/api/v1/tasks/", params={"project_id": project["id"], "page": 2, "page_size": 2}).json()

        assert body["total"] == 3
        assert body["total_pages"] == 2
        assert [t["title"] for t in body["items"]] == ["Three"]

    def test_missing_task_is_404(self, client):
        assert client.patch("/api/v1/tasks/missing", json={"status": "DONE"}).status_code == 404

    def test_null_required_field_is_rejected(self, client):
        project = create_project(client)
        task = client.post("/api/v1/tasks/", json={"project_id": project["id"], "title": "Login form"}).json()["task"]
        url = f"/api/v1/tasks/{task['id']}"

        for payload in ({"title": None}, {"status": None}, {"labels": None}):
            assert client.patch(url, json=payload).status_code == 422
        stored = client.get(url).json()
        assert stored["title"] == "Login form"
        assert stored["status"] == "TODO"


class TestEpicsApi:
    """Test epic and client requirement endpoints."""

    def test_epic_progress(self, client):
        project = create_project(client)
        requirement = client.post("/api/v1/client-requirements/", json={
            "project_id": project["id"], "title": "Refund Automation",
        }).json()
        epic = client.post("/api/v1/epics/", json={
            "project_id": project["id"], "name": "Authentication", "client_requirement_id": requirement["id"],
        }).json()
        assert epic["hierarchy_id"] == "PTES-REF-AUT-01"

        for status in ("DONE", "TODO"):
            client.post("/api/v1/tasks/", json={
                "project_id": project["id"], "title": "Step", "status": status, "epic_id": epic["id"],
            })

        progress = client.get(f"/api/v1/epics/{epic['id']}/progress").json()
        assert progress == {
            "epic_id": epic["id"], "total_tasks": 2, "completed_tasks": 1, "progress": 50, "status": "IN_PROGRESS",
        }

        response = client.delete(f"/api/v1/client-requirements/{requirement['id']}")
        assert response.status_code == 400


class TestErrorMapping:
    """Test domain error → HTTP status mapping."""

    def test_status_codes(self):
        cases = [
            (DocumentNotFoundError("tasks", "t1"), 404),
            (HierarchyIdCollisionError("tasks", "PTES-T01"), 409),
            (ChildrenExistError("has children"), 400),
            (ValueError("bad"), 400),
        ]
        for error, status_code in cases:
            exc = to_http_exception(error, "test")
            assert isinstance(exc, HTTPException)
            assert exc.status_code == status_code

    def test_paginate(self):
        page = paginate(list(range(5)), page=3, page_size=2)
        assert page["items"] == [4]
        assert page["total_pages"] == 3
        assert paginate([], 1, 10)["total_pages"] == 0
