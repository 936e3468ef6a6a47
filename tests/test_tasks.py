"""Tests for task CRUD endpoints."""

from unittest.mock import patch

import pytest

from taskflow.errors import Forbidden
from taskflow.models import Task, User
from taskflow.services.tasks import TaskService


def load_task(in_db, task_id):
    def _load(session):
        task = session.get(Task, task_id)
        return None if task is None else {"title": task.title, "user_id": task.user_id,
                                          "status": task.status}

    return in_db(_load)


class TestCreateTask:
    def test_create_with_defaults(self, auth_client, user):
        response = auth_client.post("/api/tasks", json={"title": "Buy milk"})

        assert response.status_code == 201
        data = response.get_json()
        assert data["title"] == "Buy milk"
        assert data["priority"] == "medium"
        assert data["status"] == "todo"
        assert data["user_id"] == user.id
        assert data["description"] is None
        assert data["due_date"] is None
        assert data["id"] is not None
        assert data["created_at"] is not None

    def test_create_with_all_fields(self, auth_client):
        response = auth_client.post(
            "/api/tasks",
            json={
                "title": "Ship release",
                "description": "Tag and publish",
                "priority": "high",
                "status": "in_progress",
                "due_date": "2026-03-01T09:30:00",
                "tags": ["work", "release"],
                "ai_summary": "Publish the release.",
            },
        )

        assert response.status_code == 201
        data = response.get_json()
        assert data["priority"] == "high"
        assert data["status"] == "in_progress"
        assert data["due_date"].startswith("2026-03-01T09:30:00")
        assert data["tags"] == ["work", "release"]
        assert data["ai_summary"] == "Publish the release."

    def test_bare_due_date_means_midnight(self, auth_client):
        response = auth_client.post("/api/tasks", json={"title": "Pay rent", "due_date": "2026-02-01"})

        assert response.status_code == 201
        assert response.get_json()["due_date"].startswith("2026-02-01T00:00:00")

    def test_owner_comes_from_session(self, auth_client, user, other_user, in_db):
        response = auth_client.post(
            "/api/tasks",
            json={"title": "Mine", "user_id": other_user.id, "id": 999},
        )

        assert response.status_code == 201
        data = response.get_json()
        assert data["user_id"] == user.id
        assert load_task(in_db, data["id"])["user_id"] == user.id

    def test_missing_title(self, auth_client):
        response = auth_client.post("/api/tasks", json={"description": "No title"})

        assert response.status_code == 400
        data = response.get_json()
        assert data["field"] == "title"
        assert data["status"] == 400

    def test_empty_title(self, auth_client):
        response = auth_client.post("/api/tasks", json={"title": ""})

        assert response.status_code == 400
        assert response.get_json()["field"] == "title"

    def test_invalid_priority(self, auth_client):
        response = auth_client.post("/api/tasks", json={"title": "x", "priority": "urgent"})

        assert response.status_code == 400
        assert response.get_json()["field"] == "priority"

    def test_invalid_due_date(self, auth_client):
        response = auth_client.post("/api/tasks", json={"title": "x", "due_date": "next week"})

        assert response.status_code == 400
        assert response.get_json()["field"] == "due_date"

    def test_invalid_tag_reports_path(self, auth_client):
        response = auth_client.post("/api/tasks", json={"title": "x", "tags": ["ok", 5]})

        assert response.status_code == 400
        assert response.get_json()["field"] == "tags.1"

    def test_form_body_is_a_validation_error(self, auth_client):
        response = auth_client.post("/api/tasks", data={"title": "x"})

        assert response.status_code == 400
        data = response.get_json()
        assert data["status"] == 400
        assert data["message"] == "Request body must be valid JSON"

    def test_plain_text_body_is_a_validation_error(self, auth_client):
        response = auth_client.post("/api/tasks", data="title=x", content_type="text/plain")

        assert response.status_code == 400

    def test_create_unauthenticated(self, client):
        response = client.post("/api/tasks", json={"title": "x"})

        assert response.status_code == 401


class TestListTasks:
    def test_lists_only_own_tasks(self, auth_client, user, other_user, make_task):
        mine = make_task(user.id, title="Mine")
        make_task(other_user.id, title="Theirs")

        response = auth_client.get("/api/tasks")

        assert response.status_code == 200
        data = response.get_json()
        assert [t["id"] for t in data] == [mine]

    def test_newest_first(self, auth_client, user, make_task):
        first = make_task(user.id, title="First")
        second = make_task(user.id, title="Second")

        data = auth_client.get("/api/tasks").get_json()

        assert [t["id"] for t in data] == [second, first]

    def test_empty_list(self, auth_client):
        response = auth_client.get("/api/tasks")

        assert response.status_code == 200
        assert response.get_json() == []

    def test_list_unauthenticated(self, client):
        assert client.get("/api/tasks").status_code == 401


class TestGetTask:
    def test_get_own_task(self, auth_client, user, make_task):
        task_id = make_task(user.id, title="Mine")

        response = auth_client.get(f"/api/tasks/{task_id}")

        assert response.status_code == 200
        assert response.get_json()["title"] == "Mine"

    def test_get_foreign_task_is_forbidden(self, auth_client, other_user, make_task):
        task_id = make_task(other_user.id, title="Secret")

        response = auth_client.get(f"/api/tasks/{task_id}")

        assert response.status_code == 403
        data = response.get_json()
        assert data["message"] == "Forbidden"
        assert "title" not in data
        assert "Secret" not in response.get_data(as_text=True)

    def test_get_missing_task(self, auth_client):
        response = auth_client.get("/api/tasks/424242")

        assert response.status_code == 404
        assert response.get_json()["message"] == "Task not found"

    def test_non_numeric_id(self, auth_client):
        assert auth_client.get("/api/tasks/abc").status_code == 404

    @pytest.mark.parametrize("method", ["get", "patch", "delete"])
    def test_id_beyond_integer_range(self, auth_client, method):
        response = getattr(auth_client, method)("/api/tasks/99999999999999999999", json={})

        assert response.status_code == 404
        assert response.get_json()["message"] == "Task not found"


class TestUpdateTask:
    def test_partial_update_changes_only_given_fields(self, auth_client, user, make_task):
        task_id = make_task(user.id, title="Draft", description="Keep me", priority="low")

        response = auth_client.patch(f"/api/tasks/{task_id}", json={"status": "completed"})

        assert response.status_code == 200
        data = response.get_json()
        assert data["status"] == "completed"
        assert data["title"] == "Draft"
        assert data["description"] == "Keep me"
        assert data["priority"] == "low"

    def test_update_does_not_apply_defaults(self, auth_client, user, make_task):
        task_id = make_task(user.id, priority="high", status="in_progress")

        data = auth_client.patch(f"/api/tasks/{task_id}", json={"title": "Renamed"}).get_json()

        assert data["priority"] == "high"
        assert data["status"] == "in_progress"

    def test_explicit_null_clears_nullable_field(self, auth_client, user, make_task):
        task_id = make_task(user.id, description="Remove me", tags=["a"])

        data = auth_client.patch(
            f"/api/tasks/{task_id}", json={"description": None, "tags": None}
        ).get_json()

        assert data["description"] is None
        assert data["tags"] is None

    def test_null_title_rejected(self, auth_client, user, make_task):
        task_id = make_task(user.id)

        response = auth_client.patch(f"/api/tasks/{task_id}", json={"title": None})

        assert response.status_code == 400
        assert response.get_json()["field"] == "title"

    def test_owner_cannot_be_reassigned(self, auth_client, user, other_user, make_task, in_db):
        task_id = make_task(user.id)

        response = auth_client.patch(f"/api/tasks/{task_id}", json={"user_id": other_user.id})

        assert response.status_code == 200
        assert load_task(in_db, task_id)["user_id"] == user.id

    def test_update_foreign_task_is_forbidden(self, auth_client, other_user, make_task, in_db):
        task_id = make_task(other_user.id, title="Theirs")

        response = auth_client.patch(f"/api/tasks/{task_id}", json={"title": "Hijacked"})

        assert response.status_code == 403
        assert load_task(in_db, task_id)["title"] == "Theirs"

    def test_ownership_checked_before_validation(self, auth_client, other_user, make_task):
        task_id = make_task(other_user.id)

        response = auth_client.patch(f"/api/tasks/{task_id}", json={"priority": "urgent"})

        assert response.status_code == 403

    def test_update_missing_task(self, auth_client):
        response = auth_client.patch("/api/tasks/424242", json={"title": "x"})

        assert response.status_code == 404


class TestDeleteTask:
    def test_delete_own_task(self, auth_client, user, make_task, in_db):
        task_id = make_task(user.id)

        response = auth_client.delete(f"/api/tasks/{task_id}")

        assert response.status_code == 204
        assert response.data == b""
        assert load_task(in_db, task_id) is None
        assert auth_client.get(f"/api/tasks/{task_id}").status_code == 404

    def test_delete_foreign_task_is_forbidden(self, auth_client, other_user, make_task, in_db):
        task_id = make_task(other_user.id)

        response = auth_client.delete(f"/api/tasks/{task_id}")

        assert response.status_code == 403
        assert load_task(in_db, task_id) is not None

    def test_delete_missing_task(self, auth_client):
        assert auth_client.delete("/api/tasks/424242").status_code == 404

    def test_delete_unauthenticated(self, client, user, make_task, in_db):
        task_id = make_task(user.id)

        assert client.delete(f"/api/tasks/{task_id}").status_code == 401
        assert load_task(in_db, task_id) is not None


def test_update_loads_task_once(auth_client, user, make_task):
    task_id = make_task(user.id)

    with patch.object(TaskService, "get", autospec=True, side_effect=TaskService.get) as get:
        response = auth_client.patch(f"/api/tasks/{task_id}", json={"title": "Renamed"})

    assert response.status_code == 200
    assert response.get_json()["title"] == "Renamed"
    assert get.call_count == 1


def test_service_update_is_scoped_to_owner(user, other_user, make_task, in_db):
    task_id = make_task(other_user.id, title="Theirs")

    def _update(session):
        service = TaskService(session)
        with pytest.raises(Forbidden):
            service.update(session.get(User, user.id), task_id, {"title": "Hijacked"})
        return service.update(session.get(User, other_user.id), task_id, {"title": "Renamed"}).title

    assert in_db(_update) == "Renamed"
    assert load_task(in_db, task_id)["title"] == "Renamed"
