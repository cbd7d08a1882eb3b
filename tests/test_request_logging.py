import logging

from fastapi.testclient import TestClient


def test_correlation_id_header_present_on_404():
    from main import app

    client = TestClient(app)

    resp = client.get("/this-path-does-not-exist")
    assert resp.status_code == 404
    assert "X-Correlation-ID" in resp.headers
    assert resp.json()["error"]["code"] == "NOT_FOUND"

    client.close()


def test_incoming_correlation_id_is_echoed_and_logged(caplog):
    from main import app

    client = TestClient(app)
    with caplog.at_level(logging.INFO, logger="worklog.requests"):
        resp = client.get("/api/tasks", headers={"X-Correlation-ID": "abc-123"})

    assert resp.status_code == 401
    assert resp.headers["X-Correlation-ID"] == "abc-123"
    records = [r for r in caplog.records if r.name == "worklog.requests"]
    assert records
    assert records[-1].correlation_id == "abc-123"
    assert records[-1].status_code == 401
    assert records[-1].auth_type == "none"

    client.close()


def test_outbound_calls_are_logged(caplog):
    import httpx

    from worklog.remote.rest import BackendClient

    def handler(request):
        return httpx.Response(200, json={"data": []})

    backend = BackendClient(base_url="http://backend.test/api", transport=httpx.MockTransport(handler), correlation_id="cid-9")
    with caplog.at_level(logging.INFO, logger="worklog.outbound"):
        backend.fetch_technicians()

    [record] = [r for r in caplog.records if r.name == "worklog.outbound"]
    assert record.provider == "backend"
    assert record.operation == "GET"
    assert record.correlation_id == "cid-9"
    assert record.error_code is None
