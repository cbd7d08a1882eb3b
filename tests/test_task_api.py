from conftest import login


def _task_body(**overrides):
    body = {
        "area": "  Boiler room ",
        "workType": "Plumbing",
        "description": "Fixed leaking valve",
        "additionalComments": "",
        "createdAt": "2026-03-01T08:00:00.000Z",
        "finishedAt": "not a date",
        "signature": "Tom Tech",
        "beforePhoto": "",
        "afterPhoto": None,
    }
    body.update(overrides)
    return body


def _auth(token):
    return {"Authorization": f"Bearer {token}"}


def test_health_reports_ok(client):
    resp = client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json()["data"]["status"] == "ok"


def test_public_roster_lists_admins_first(client):
    resp = client.get("/api/public/technicians")
    assert resp.status_code == 200
    roster = resp.json()["data"]
    assert [t["id"] for t in roster] == ["admin-1", "tech-1"]
    assert "hashed_password" not in roster[0]


def test_login_failures_use_error_envelope(client):
    bad = client.post("/api/auth/login", json={"technicianId": "tech-1", "password": "wrong", "shift": "Matutino"})
    blank = client.post("/api/auth/login", json={"technicianId": "  ", "password": ""})

    assert bad.status_code == 401
    assert bad.json()["error"]["code"] == "INVALID_CREDENTIALS"
    assert blank.status_code == 400
    assert blank.json()["error"]["code"] == "VALIDATION_ERROR"


def test_login_returns_user_with_shift(client):
    resp = client.post("/api/auth/login", json={"technicianId": "tech-1", "password": "techpass", "shift": "Nocturno"})
    data = resp.json()["data"]
    assert data["token"]
    assert data["user"] == {"id": "tech-1", "name": "Tom Tech", "role": "tech", "shift": "Nocturno"}


def test_tasks_require_bearer_token(client):
    missing = client.get("/api/tasks")
    garbage = client.get("/api/tasks", headers=_auth("not-a-jwt"))

    assert missing.status_code == 401
    assert missing.json()["error"]["code"] == "UNAUTHORIZED"
    assert garbage.status_code == 401


def test_upsert_creates_then_updates_task(client):
    token = login(client, "tech-1", "techpass", shift="Nocturno")

    created = client.put("/api/tasks/job-1", json=_task_body(), headers=_auth(token))
    assert created.status_code == 200
    job = created.json()["data"]
    assert job["id"] == "job-1"
    assert job["area"] == "Boiler room"
    assert job["technicianName"] == "Tom Tech"
    assert job["shift"] == "Nocturno"
    assert job["beforePhoto"] is None
    assert job["deleted"] is False
    assert job["finishedAt"]

    admin = login(client, "admin-1", "adminpass")
    updated = client.put("/api/tasks/job-1", json=_task_body(description="Replaced valve"), headers=_auth(admin))
    assert updated.json()["data"]["description"] == "Replaced valve"
    assert updated.json()["data"]["technicianName"] == "Tom Tech"

    listing = client.get("/api/tasks", headers=_auth(token)).json()["data"]
    assert [t["id"] for t in listing] == ["job-1"]


def test_upsert_rejects_missing_fields(client):
    token = login(client, "tech-1", "techpass")
    resp = client.put("/api/tasks/job-1", json=_task_body(area=" ", signature=""), headers=_auth(token))

    assert resp.status_code == 400
    error = resp.json()["error"]
    assert error["code"] == "VALIDATION_ERROR"
    fields = [item["field"] for item in error["details"]["validation_errors"]]
    assert fields == ["area", "signature"]


def test_delete_through_upsert_is_admin_only(client):
    tech = login(client, "tech-1", "techpass")
    admin = login(client, "admin-1", "adminpass")
    client.put("/api/tasks/job-1", json=_task_body(), headers=_auth(tech))

    forbidden = client.put("/api/tasks/job-1", json=_task_body(deleted=True), headers=_auth(tech))
    unknown = client.put("/api/tasks/ghost", json=_task_body(deleted=True), headers=_auth(admin))
    deleted = client.put("/api/tasks/job-1", json=_task_body(deleted="true"), headers=_auth(admin))

    assert forbidden.status_code == 403
    assert forbidden.json()["error"]["code"] == "FORBIDDEN"
    assert unknown.status_code == 404
    assert deleted.status_code == 200
    assert deleted.json()["data"]["deleted"] is True


def test_delete_endpoint_soft_deletes(client):
    tech = login(client, "tech-1", "techpass")
    admin = login(client, "admin-1", "adminpass")
    client.put("/api/tasks/job-1", json=_task_body(), headers=_auth(tech))

    assert client.delete("/api/tasks/job-1", headers=_auth(tech)).status_code == 403
    assert client.delete("/api/tasks/ghost", headers=_auth(admin)).status_code == 404

    resp = client.delete("/api/tasks/job-1", headers=_auth(admin))
    assert resp.json() == {"data": {"id": "job-1", "deleted": True}}

    assert client.get("/api/tasks", headers=_auth(tech)).json()["data"] == []
    with_deleted = client.get("/api/tasks?includeDeleted=true", headers=_auth(tech)).json()["data"]
    assert [(t["id"], t["deleted"]) for t in with_deleted] == [("job-1", True)]


def test_listing_orders_by_finish_time(client):
    token = login(client, "tech-1", "techpass")
    client.put("/api/tasks/older", json=_task_body(finishedAt="2026-03-01T09:00:00Z"), headers=_auth(token))
    client.put("/api/tasks/newer", json=_task_body(finishedAt="2026-03-05T09:00:00Z"), headers=_auth(token))

    listing = client.get("/api/tasks", headers=_auth(token)).json()["data"]
    assert [t["id"] for t in listing] == ["newer", "older"]


def test_pdf_export_is_admin_only(client):
    tech = login(client, "tech-1", "techpass")
    admin = login(client, "admin-1", "adminpass")
    client.put("/api/tasks/job-1", json=_task_body(), headers=_auth(tech))

    assert client.get("/api/tasks/job-1/pdf", headers=_auth(tech)).status_code == 403
    assert client.get("/api/tasks/ghost/pdf", headers=_auth(admin)).status_code == 404

    resp = client.get("/api/tasks/job-1/pdf", headers=_auth(admin))
    assert resp.status_code == 200
    assert resp.headers["content-type"] == "application/pdf"
    assert "Report_job-1.pdf" in resp.headers["content-disposition"]
    assert resp.content.startswith(b"%PDF")
