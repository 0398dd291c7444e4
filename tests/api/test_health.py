"""Health probes and error envelope, served through httpx ASGITransport.

Invariants:
    - Liveness always 200
    - Readiness 503 without a healthy database manager
"""

import pytest
from httpx import ASGITransport, AsyncClient

import authapi.infrastructure.database as db_module
from authapi.config import Settings, get_settings
from authapi.core.errors import DatabaseConnectionError
from authapi.main import create_app


class _FakeManager:
    def __init__(self, healthy):
        self.healthy = healthy

    async def health_check(self):
        return self.healthy


@pytest.fixture
def app(valid_env):
    return create_app(Settings.from_environment(valid_env))


@pytest.fixture
async def client(app):
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c


async def test_liveness(client):
    res = await client.get("/api/v1/healthcheck")
    assert res.status_code == 200
    assert res.json()["status"] == "healthy"


async def test_readiness_without_database(client, monkeypatch):
    monkeypatch.setattr(db_module, "db_manager", None)
    res = await client.get("/api/v1/healthcheck/ready")
    assert res.status_code == 503
    assert res.json()["reason"] == "database_unavailable"


async def test_readiness_with_unhealthy_database(client, monkeypatch):
    monkeypatch.setattr(db_module, "db_manager", _FakeManager(False))
    res = await client.get("/api/v1/healthcheck/ready")
    assert res.status_code == 503


async def test_readiness_with_healthy_database(client, monkeypatch):
    monkeypatch.setattr(db_module, "db_manager", _FakeManager(True))
    res = await client.get("/api/v1/healthcheck/ready")
    assert res.status_code == 200
    assert res.json()["checks"]["database"] == "healthy"


async def test_app_error_rendered_as_envelope(app, client):
    @app.get("/boom")
    async def boom():
        raise DatabaseConnectionError("socket closed")

    res = await client.get("/boom")
    assert res.status_code == 503
    body = res.json()["error"]
    assert body["code"] == "DATABASE_CONNECTION_ERROR"
    assert "socket closed" not in body["message"]


async def test_cors_origin_from_settings(client):
    res = await client.options(
        "/api/v1/healthcheck",
        headers={
            "Origin": "http://localhost:5173",
            "Access-Control-Request-Method": "GET",
        },
    )
    assert res.headers["access-control-allow-origin"] == "http://localhost:5173"


async def test_unhandled_exception_hides_internals(app):
    @app.get("/crash")
    async def crash():
        raise RuntimeError("secret internal detail")

    async with AsyncClient(
        transport=ASGITransport(app=app, raise_app_exceptions=False),
        base_url="http://test",
    ) as c:
        res = await c.get("/crash")

    assert res.status_code == 500
    body = res.json()["error"]
    assert body["code"] == "INTERNAL_ERROR"
    assert "secret internal detail" not in res.text


def test_create_app_defaults_to_cached_settings(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("CORS_ORIGIN", "https://a.example,https://b.example")
    get_settings.cache_clear()
    try:
        app = create_app()
        assert get_settings().cors_origin == ["https://a.example", "https://b.example"]
        assert get_settings() is get_settings()
        [cors] = [m for m in app.user_middleware if "CORS" in m.cls.__name__]
        assert cors.kwargs["allow_origins"] == ["https://a.example", "https://b.example"]
    finally:
        get_settings.cache_clear()
