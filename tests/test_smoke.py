from fastapi.testclient import TestClient

from main import app

client = TestClient(app)


def test_health_endpoint():
    r = client.get("/api/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok", "env": "test"}


def test_health_reports_custom_environment_name(make_app):
    r = TestClient(make_app(NODE_ENV="staging")).get("/api/health")
    assert r.status_code == 200
    assert r.json()["env"] == "staging"


def test_security_headers_present(client):
    r = client.get("/api/health")
    assert r.headers["X-Content-Type-Options"] == "nosniff"
    assert r.headers["X-Frame-Options"] == "SAMEORIGIN"
    assert r.headers["Referrer-Policy"] == "no-referrer"
    assert "default-src 'self'" in r.headers["Content-Security-Policy"]
    # HSTS only in production
    assert "Strict-Transport-Security" not in r.headers


def test_hsts_in_production(make_app):
    r = TestClient(make_app(NODE_ENV="production")).get("/api/health")
    assert r.headers["Strict-Transport-Security"].startswith("max-age=")


def test_large_responses_are_gzipped(make_app):
    app = make_app()

    @app.get("/api/big")
    async def big():
        return {"data": "x" * 5000}

    r = TestClient(app).get("/api/big", headers={"Accept-Encoding": "gzip"})
    assert r.status_code == 200
    assert r.headers.get("content-encoding") == "gzip"
    assert r.json()["data"] == "x" * 5000


def test_small_responses_are_not_gzipped(client):
    r = client.get("/api/health", headers={"Accept-Encoding": "gzip"})
    assert "content-encoding" not in r.headers


def test_request_logging_skipped_in_test_mode(client):
    r = client.get("/api/health")
    assert "X-Request-ID" not in r.headers


def test_request_logging_outside_test_mode(make_app, caplog):
    caplog.set_level("INFO", logger="app.access")
    r = TestClient(make_app(NODE_ENV="development")).get(
        "/api/health", headers={"X-Request-ID": "req-123"}
    )
    assert r.headers["X-Request-ID"] == "req-123"
    messages = [rec.getMessage() for rec in caplog.records if rec.name == "app.access"]
    assert "request.start" in messages
    assert "request.end" in messages


def test_route_groups_are_mounted(client):
    paths = {route.path for route in client.app.routes}
    for prefix in ("/api/auth", "/api/quizzes", "/api/results", "/api/admin", "/api/teacher"):
        assert any(p.startswith(prefix) for p in paths), prefix


def test_unknown_path_returns_json_message(client):
    r = client.get("/api/nope")
    assert r.status_code == 404
    assert r.json() == {"message": "Not Found"}
