from conftest import login


def test_hostile_task_id_is_stored_verbatim(client):
    token = login(client, "tech-1", "techpass")
    headers = {"Authorization": f"Bearer {token}"}
    hostile = "1'; DROP TABLE tasks;--"
    body = {"area": "Lobby", "workType": "Paint", "description": "Touch up", "signature": "T"}

    resp = client.put(f"/api/tasks/{hostile}", json=body, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["id"] == hostile

    listing = client.get("/api/tasks", headers=headers)
    assert listing.status_code == 200
    assert [t["id"] for t in listing.json()["data"]] == [hostile]


def test_include_deleted_must_be_boolean(client):
    token = login(client, "tech-1", "techpass")
    resp = client.get("/api/tasks?includeDeleted=1 OR 1=1", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "VALIDATION_ERROR"
