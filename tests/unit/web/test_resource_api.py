"""Tests for the project, task, checklist, time, area, note, file and push endpoints."""

from fastapi.testclient import TestClient

from agnys.core.modules.file.utils import MAX_UPLOAD_SIZE
from agnys.web.cookies import AUTH_COOKIE
from tests.helpers import create_project, register


class TestProjectEndpoints:
    """Tests for /api/projects."""

    def test_create_and_list(self, client: TestClient):
        """Test that created projects are listed for their owner."""
        register(client)
        project = create_project(client, "Website")
        assert project["color"] == "#22c55e"

        response = client.get("/api/projects/list")
        assert response.status_code == 200
        assert [p["name"] for p in response.json()["projects"]] == ["Website"]

    def test_field_update_success(self, client: TestClient):
        """Test that a field update returns the stored value and invalidated paths."""
        register(client)
        project = create_project(client)

        response = client.post(f"/api/projects/{project['id']}/fields", json={"field": "name", "value": " New "})

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "value": "New",
            "error": None,
            "type": None,
            "invalidated": ["/dashboard", f"/projects/{project['id']}"],
        }

    def test_field_update_empty_name(self, client: TestClient):
        """Test that an empty name answers 400 with the action result."""
        register(client)
        project = create_project(client)

        response = client.post(f"/api/projects/{project['id']}/fields", json={"field": "name", "value": ""})

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "Project name cannot be empty."

    def test_unknown_field_rejected(self, client: TestClient):
        """Test that only the known field variants are accepted."""
        register(client)
        project = create_project(client)

        response = client.post(f"/api/projects/{project['id']}/fields", json={"field": "user_id", "value": "x"})

        assert response.status_code == 400
        assert response.json()["type"] == "validation_error"
        assert project["name"] == client.get("/api/projects/list").json()["projects"][0]["name"]

    def test_missing_name_is_400(self, client: TestClient):
        """Test that creating a project without a name is a validation error naming the field."""
        register(client)

        response = client.post("/api/projects/create", json={"description": "No name"})

        assert response.status_code == 400
        assert response.json() == {"message": "name: Field required", "type": "validation_error"}
        assert client.get("/api/projects/list").json()["projects"] == []

    def test_foreign_project_is_404(self, client: TestClient):
        """Test that another user's project cannot be edited or viewed."""
        register(client)
        project = create_project(client)
        client.cookies.clear()
        register(client, email="bob@example.com")

        response = client.post(f"/api/projects/{project['id']}/fields", json={"field": "name", "value": "Mine"})
        assert response.status_code == 404
        assert response.json()["type"] == "not_found"
        assert client.get(f"/projects/{project['id']}").status_code == 404

    def test_project_page(self, client: TestClient):
        """Test that the project page bundles tasks, notes and files."""
        register(client)
        project = create_project(client)
        client.post("/api/tasks/create", json={"title": "Copy", "project_id": project["id"]})
        client.post("/api/notes/create", json={"project_id": project["id"], "content": "Kickoff notes"})

        response = client.get(f"/projects/{project['id']}")

        assert response.status_code == 200
        body = response.json()
        assert body["project"]["name"] == "Website"
        assert [t["title"] for t in body["tasks"]] == ["Copy"]
        assert [n["content"] for n in body["notes"]] == ["Kickoff notes"]
        assert body["files"] == []

    def test_dashboard_counts_open_tasks(self, client: TestClient):
        """Test that the dashboard shows each project's open task count."""
        register(client)
        project = create_project(client)
        client.post("/api/tasks/create", json={"title": "One", "project_id": project["id"]})
        client.post("/api/tasks/create", json={"title": "Two", "project_id": project["id"]})

        body = client.get("/dashboard").json()

        assert body["projects"][0]["open_tasks"] == 2


class TestTaskAndNoteEndpoints:
    """Tests for /api/tasks and /api/notes."""

    def test_task_lifecycle(self, client: TestClient):
        """Test that a task is created, edited and deleted."""
        register(client)
        project = create_project(client)
        task = client.post("/api/tasks/create", json={"title": "Copy", "project_id": project["id"]}).json()["task"]

        updated = client.post(f"/api/tasks/{task['id']}/fields", json={"field": "priority", "value": "high"})
        assert updated.json()["value"] == "high"

        assert client.delete(f"/api/tasks/{task['id']}").json() == {"success": True}
        assert client.delete(f"/api/tasks/{task['id']}").status_code == 404

    def test_note_details_require_title_and_content(self, client: TestClient):
        """Test that note edits need both a title and content."""
        register(client)
        project = create_project(client)
        note = client.post("/api/notes/create", json={"project_id": project["id"], "content": "Body"}).json()["note"]

        response = client.post(f"/api/notes/{note['id']}/details", json={"title": "", "content": "Body"})

        assert response.status_code == 400
        assert response.json()["error"] == "Title and content cannot be empty."

    def test_notes_paginated(self, client: TestClient):
        """Test that notes come back as a page."""
        register(client)
        project = create_project(client)
        for content in ("one", "two", "three"):
            client.post("/api/notes/create", json={"project_id": project["id"], "content": content})

        page = client.get("/api/notes", params={"project_id": project["id"], "limit": 2}).json()

        assert page["total"] == 3
        assert len(page["items"]) == 2


class TestFileEndpoints:
    """Tests for uploads, listing and deletion."""

    def test_upload_list_delete(self, client: TestClient, blob_storage):
        """Test the full file lifecycle through the API."""
        register(client)
        project = create_project(client)

        uploaded = client.post(
            "/api/upload",
            files={"file": ("notes.txt", b"hello", "text/plain")},
            data={"projectId": project["id"]},
        )
        assert uploaded.status_code == 200
        body = uploaded.json()
        assert (body["filename"], body["size"], body["type"]) == ("notes.txt", 5, "text/plain")

        files = client.get("/api/files", params={"project_id": project["id"]}).json()["files"]
        assert [f["url"] for f in files] == [body["url"]]

        response = client.request("DELETE", "/api/files/delete", json={"fileId": files[0]["id"], "url": body["url"]})
        assert response.json() == {"success": True}
        assert blob_storage.deletes == [body["url"]]

    def test_oversized_upload_is_400(self, client: TestClient, blob_storage):
        """Test that uploads above 10 MB are refused before storage."""
        register(client)
        response = client.post("/api/upload", files={"file": ("big.bin", b"x" * (11 * 1024 * 1024))})

        assert response.status_code == 400
        assert response.json()["message"] == "File size exceeds 10MB limit"
        assert blob_storage.puts == []

    def test_oversized_upload_read_is_capped(self, client: TestClient, app, monkeypatch):
        """Test that the handler reads at most one byte past the limit."""
        received: list[int] = []
        upload_file = app.upload_file

        async def recording_upload(auth_token, filename, content, *args):
            received.append(len(content))
            return await upload_file(auth_token, filename, content, *args)

        monkeypatch.setattr(app, "upload_file", recording_upload)
        register(client)

        response = client.post("/api/upload", files={"file": ("big.bin", b"x" * (12 * 1024 * 1024))})

        assert response.status_code == 400
        assert received == [MAX_UPLOAD_SIZE + 1]

    def test_foreign_file_delete_is_404(self, client: TestClient, blob_storage, database):
        """Test that another user's file survives a delete attempt."""
        register(client)
        body = client.post("/api/upload", files={"file": ("a.txt", b"hi", "text/plain")}).json()
        file_id = client.get("/api/files").json()["files"][0]["id"]
        client.cookies.clear()
        register(client, email="bob@example.com")

        response = client.request("DELETE", "/api/files/delete", json={"fileId": file_id, "url": body["url"]})

        assert response.status_code == 404
        assert response.json()["message"] == "File not found or unauthorized"
        assert len(database.get_collection("files").docs) == 1
        assert blob_storage.deletes == []

    def test_upload_without_file_is_400(self, client: TestClient, blob_storage):
        """Test that a form without a file part is refused as a validation error."""
        register(client)
        project = create_project(client)

        response = client.post("/api/upload", data={"projectId": project["id"]})

        assert response.status_code == 400
        assert response.json() == {"message": "file: Field required", "type": "validation_error"}
        assert blob_storage.puts == []

    def test_delete_without_file_id_is_400(self, client: TestClient, blob_storage, database):
        """Test that file deletion requires both fileId and url."""
        register(client)
        body = client.post("/api/upload", files={"file": ("a.txt", b"hi", "text/plain")}).json()

        response = client.request("DELETE", "/api/files/delete", json={"url": body["url"]})

        assert response.status_code == 400
        assert response.json() == {"message": "fileId: Field required", "type": "validation_error"}
        assert len(database.get_collection("files").docs) == 1
        assert blob_storage.deletes == []

    def test_upload_requires_session(self, client: TestClient):
        """Test that anonymous uploads are refused."""
        response = client.post("/api/upload", files={"file": ("a.txt", b"hi", "text/plain")})
        assert response.status_code == 401


class TestChecklistAndTimeEndpoints:
    """Tests for task checklists and time tracking."""

    def create_task(self, client: TestClient) -> tuple[dict, dict]:
        project = create_project(client)
        task = client.post("/api/tasks/create", json={"title": "Copy", "project_id": project["id"]}).json()["task"]
        return project, task

    def test_checklist_lifecycle(self, client: TestClient):
        """Test that items are added, checked off and shown on the project page."""
        register(client)
        project, task = self.create_task(client)

        item = client.post(f"/api/tasks/{task['id']}/checklist", json={"content": "Draft"}).json()["item"]
        checked = client.post(f"/api/checklist/{item['id']}/completed", json={"completed": True}).json()["item"]
        assert checked["is_completed"] is True

        body = client.get(f"/projects/{project['id']}").json()
        assert [i["content"] for i in body["checklist_items"]] == ["Draft"]

        assert client.delete(f"/api/checklist/{item['id']}").json() == {"success": True}
        assert client.get(f"/api/tasks/{task['id']}/checklist").json() == {"items": []}

    def test_empty_checklist_item_is_400(self, client: TestClient):
        """Test that a blank item answers 400."""
        register(client)
        _, task = self.create_task(client)

        response = client.post(f"/api/tasks/{task['id']}/checklist", json={"content": " "})

        assert response.status_code == 400
        assert response.json() == {"message": "Checklist item cannot be empty.", "type": "validation_error"}

    def test_timer_and_report(self, client: TestClient):
        """Test that a stopped timer and a manual entry show up in the range report and summary."""
        register(client)
        project, task = self.create_task(client)

        entry = client.post("/api/time-entries/start", json={"task_id": task["id"]}).json()["entry"]
        stopped = client.post(f"/api/time-entries/{entry['id']}/stop").json()["entry"]
        assert stopped["duration_minutes"] == 0
        client.post("/api/time-entries/manual", json={"task_id": task["id"], "duration_minutes": 25})

        report = client.get(
            "/api/time-entries", params={"startDate": "2000-01-01T00:00:00Z", "endDate": "2100-01-01T00:00:00Z"}
        ).json()
        assert sorted(e["duration_minutes"] for e in report) == [0, 25]
        assert {e["task_title"] for e in report} == {"Copy"}

        summary = client.get(f"/projects/{project['id']}").json()["time_summary"]
        assert summary == {"total_minutes": 25, "last_7_days_minutes": 25}

    def test_report_without_dates_is_400(self, client: TestClient):
        """Test that the range report needs both dates."""
        register(client)

        response = client.get("/api/time-entries", params={"startDate": "2025-01-01T00:00:00Z"})

        assert response.status_code == 400
        assert response.json() == {"message": "endDate: Field required", "type": "validation_error"}

    def test_foreign_task_time_is_404(self, client: TestClient, database):
        """Test that another user cannot start a timer on the task or read its entries."""
        register(client)
        _, task = self.create_task(client)
        client.cookies.clear()
        register(client, email="bob@example.com")

        assert client.post("/api/time-entries/start", json={"task_id": task["id"]}).status_code == 404
        assert client.get(f"/api/tasks/{task['id']}/time-entries").status_code == 404
        assert database.get_collection("time_entries").docs == []


class TestAreaEndpoints:
    """Tests for /api/areas."""

    def test_create_and_list(self, client: TestClient):
        """Test that created areas are listed and shown on the dashboard."""
        register(client)
        created = client.post("/api/areas/create", json={"name": "Work", "vision_statement": "Ship"})
        assert created.status_code == 200
        assert created.json()["area"]["name"] == "Work"

        assert [a["name"] for a in client.get("/api/areas/list").json()["areas"]] == ["Work"]
        assert [a["name"] for a in client.get("/dashboard").json()["areas"]] == ["Work"]

    def test_blank_name_is_400(self, client: TestClient):
        """Test that an area needs a name."""
        register(client)
        response = client.post("/api/areas/create", json={"name": ""})
        assert response.status_code == 400
        assert response.json() == {"message": "Area name is required", "type": "validation_error"}


class TestPushEndpoints:
    """Tests for /api/push."""

    def test_public_key_is_public(self, client: TestClient):
        """Test that the VAPID key is served without a session."""
        response = client.get("/api/push/vapid-public-key")
        assert response.status_code == 200
        assert response.json() == {"publicKey": "test-vapid-public-key"}

    def test_subscribe_and_send(self, client: TestClient, push_transport):
        """Test that a registered device receives the caller's notification."""
        register(client)
        subscription = {"endpoint": "https://push.example.com/1", "keys": {"p256dh": "k", "auth": "a"}}
        assert client.post("/api/push/subscribe", json={"subscription": subscription}).status_code == 200

        report = client.post("/api/push/send", json={"title": "Hi", "body": "There"}).json()

        assert (report["success"], report["sent"], report["removed"]) == (True, 1, 0)
        assert push_transport.sent[0][1].title == "Hi"


class TestErrors:
    """Tests for the error translation layer."""

    def test_upstream_failure_is_opaque(self, client: TestClient, database):
        """Test that persistence failures answer 500 without internal details."""
        register(client)
        database.get_collection("projects").fail = True

        response = client.post("/api/projects/create", json={"name": "Website"})

        assert response.status_code == 500
        assert response.json() == {"message": "An upstream service failed.", "type": "upstream_error"}

    def test_health(self, client: TestClient):
        """Test the unauthenticated health check."""
        client.cookies.set(AUTH_COOKIE, "whatever")
        assert client.get("/health").json() == {"status": "healthy"}
