import logging

import pytest
from fastapi.testclient import TestClient

from quiz_api.core.errors import CORSRejected
from quiz_api.core.middleware_cors import check_origin
from quiz_api.core.settings import DEFAULT_CORS_ORIGINS, DeploymentMode

ALLOWED = "http://localhost:5173"
EVIL = "http://evil.example"


@pytest.fixture
def prod_client(make_app):
    return TestClient(make_app(NODE_ENV="production"))


@pytest.fixture
def dev_client(make_app):
    return TestClient(make_app(NODE_ENV="development"))


def test_no_origin_allowed_in_every_mode(prod_client, dev_client):
    for c in (prod_client, dev_client):
        r = c.get("/api/health")
        assert r.status_code == 200
        assert "Access-Control-Allow-Origin" not in r.headers


def test_whitelisted_origin_gets_credentialed_headers(prod_client):
    r = prod_client.get("/api/health", headers={"Origin": ALLOWED})
    assert r.status_code == 200
    assert r.headers["Access-Control-Allow-Origin"] == ALLOWED
    assert r.headers["Access-Control-Allow-Credentials"] == "true"
    assert "Origin" in r.headers["Vary"]


def test_every_default_origin_is_allowed_in_production(prod_client):
    for origin in DEFAULT_CORS_ORIGINS:
        r = prod_client.get("/api/health", headers={"Origin": origin})
        assert r.status_code == 200, origin


def test_unknown_origin_rejected_in_production(prod_client, caplog):
    caplog.set_level(logging.WARNING, logger="app.cors")
    r = prod_client.get("/api/health", headers={"Origin": EVIL})
    assert r.status_code == 500
    assert r.json() == {"message": "Not allowed by CORS"}
    assert "Access-Control-Allow-Origin" not in r.headers
    assert any("CORS blocked origin" in rec.getMessage() for rec in caplog.records)


def test_unknown_origin_allowed_with_warning_in_development(dev_client, caplog):
    caplog.set_level(logging.WARNING, logger="app.cors")
    r = dev_client.get("/api/health", headers={"Origin": EVIL})
    assert r.status_code == 200
    assert r.json()["status"] == "ok"
    assert r.headers["Access-Control-Allow-Origin"] == EVIL
    assert any(
        "not in whitelist" in rec.getMessage() and rec.levelno == logging.WARNING
        for rec in caplog.records
    )


def test_extra_origin_from_configuration(make_app):
    c = TestClient(make_app(NODE_ENV="production", CORS_ORIGIN="https://quiz.example.com"))
    r = c.get("/api/health", headers={"Origin": "https://quiz.example.com"})
    assert r.status_code == 200
    assert r.headers["Access-Control-Allow-Origin"] == "https://quiz.example.com"


def test_preflight(prod_client):
    r = prod_client.options(
        "/api/quizzes",
        headers={
            "Origin": ALLOWED,
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "Content-Type, Authorization",
        },
    )
    assert r.status_code == 204
    assert r.headers["Access-Control-Allow-Origin"] == ALLOWED
    assert r.headers["Access-Control-Allow-Methods"] == "GET,POST,PUT,DELETE,OPTIONS"
    assert r.headers["Access-Control-Allow-Headers"] == "Content-Type,Authorization"
    assert r.headers["Access-Control-Allow-Credentials"] == "true"


def test_preflight_from_unknown_origin_rejected_in_production(prod_client):
    r = prod_client.options(
        "/api/quizzes", headers={"Origin": EVIL, "Access-Control-Request-Method": "GET"}
    )
    assert r.status_code == 500
    assert r.json()["message"] == "Not allowed by CORS"


@pytest.mark.parametrize(
    "origin, mode, expected",
    [
        (None, DeploymentMode.PRODUCTION, True),
        ("", DeploymentMode.PRODUCTION, True),
        (ALLOWED, DeploymentMode.PRODUCTION, True),
        (EVIL, DeploymentMode.DEVELOPMENT, True),
        (EVIL, DeploymentMode.TEST, True),
    ],
)
def test_check_origin_allows(origin, mode, expected):
    assert check_origin(origin, frozenset(DEFAULT_CORS_ORIGINS), mode) is expected


def test_check_origin_raises_in_production():
    with pytest.raises(CORSRejected) as info:
        check_origin(EVIL, frozenset(DEFAULT_CORS_ORIGINS), DeploymentMode.PRODUCTION)
    assert info.value.origin == EVIL
    assert info.value.status is None


@pytest.mark.parametrize("env", ["Production", " production", "PRODUCTION"])
def test_production_name_is_matched_exactly(make_app, make_settings, env):
    assert make_settings(NODE_ENV=env).mode is DeploymentMode.DEVELOPMENT
    r = TestClient(make_app(NODE_ENV=env)).get("/api/health", headers={"Origin": EVIL})
    assert r.status_code == 200
    assert r.headers["Access-Control-Allow-Origin"] == EVIL
