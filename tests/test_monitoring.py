from fastapi.testclient import TestClient

from ctrlaltvibe.core.config import settings
from ctrlaltvibe.services.sitemap import sitemap_service
from tests.helpers.asserts import api_call, data_of


def test_health(client: TestClient, app_state):
    body = client.get("/health").json()
    assert body["status"] == "healthy"
    assert body["checks"] == {"database": "ok", "cache": "ok"}
    assert any(m.name == "health.database" for m in app_state.performance_monitor.recent())

def test_metrics_require_api_key(client: TestClient, monkeypatch):
    monkeypatch.setattr(settings, "MONITORING_API_KEY", "letmein")
    assert client.get("/metrics").status_code == 401
    assert client.get("/metrics", headers={"X-API-Key": "wrong"}).status_code == 401

def test_metrics_report_requests_cache_and_sockets(client: TestClient, monkeypatch):
    monkeypatch.setattr(settings, "MONITORING_API_KEY", "letmein")
    api_call(client, "GET", "/api/tags")
    api_call(client, "GET", "/api/tags")

    with client.websocket_connect("/ws") as ws:
        ws.send_json({"type": "auth", "userId": 1})
        assert ws.receive_json()["type"] == "auth_success"
        body = client.get("/metrics", headers={"X-API-Key": "letmein"}).json()

    assert body["cache"]["hits"] >= 1
    assert body["realtime"]["connections"] == 1
    assert any(m["name"].endswith("/api/tags") for m in body["recent"])

def test_responses_carry_request_id_and_cache_status(client: TestClient):
    first = client.get("/api/tags")
    second = client.get("/api/tags")
    assert first.headers["X-Request-ID"]
    assert first.headers["X-Cache"] == "MISS"
    assert second.headers["X-Cache"] == "HIT"

def test_sitemap_lists_public_projects_only(client: TestClient, user_factory, project_factory):
    author = user_factory()
    public = project_factory(author)
    private = project_factory(author, is_private=True)

    response = client.get("/sitemap.xml")

    assert response.headers["content-type"].startswith("application/xml")
    assert f"/projects/{public.id}</loc>" in response.text
    assert f"/projects/{private.id}</loc>" not in response.text

def test_sitemap_write(db_session, user_factory, project_factory, tmp_path):
    project = project_factory(user_factory())
    target = sitemap_service.write(db_session, path=str(tmp_path / "public" / "sitemap.xml"))
    assert target.exists()
    assert f"/projects/{project.id}</loc>" in target.read_text(encoding="utf-8")

def test_realtime_config(client: TestClient):
    body = data_of(api_call(client, "GET", "/api/realtime/config"))
    assert body["websocket_path"] == settings.WEBSOCKET_PATH
    assert body["poll_interval_seconds"] == settings.NOTIFICATION_POLL_INTERVAL_SECONDS
