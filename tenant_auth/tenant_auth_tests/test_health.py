"""Tests for health and readiness endpoints."""


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_tenant_health(client):
    response = client.get("/t1/health")
    assert response.status_code == 200
    assert response.json()["tenant"] == "t1"
    # liveness does not open the tenant store
    assert client.app.state.tenants.tenants() == []


def test_tenant_ready_opens_store(client):
    response = client.get("/t1/ready")
    assert response.status_code == 200
    assert response.json()["status"] == "ready"
    assert response.json()["database"] == "connected"
    assert client.app.state.tenants.tenants() == ["t1"]


def test_tenant_ready_reports_unreachable_store(client, monkeypatch):
    from tenant_auth.auth_service.db import TenantStore

    client.get("/t1/ready")
    monkeypatch.setattr(TenantStore, "ping", lambda self: False)
    response = client.get("/t1/ready")
    assert response.status_code == 503
    assert response.json()["status"] == "not_ready"


def test_tenant_ready_bad_tenant(client):
    response = client.get("/bad.tenant/ready")
    assert response.status_code == 400


def test_shutdown_closes_tenant_stores(app, register_data):
    from fastapi.testclient import TestClient

    with TestClient(app) as c:
        c.post("/t1/register", json=register_data)
        c.post("/t2/register", json=register_data)
        assert app.state.tenants.tenants() == ["t1", "t2"]
    assert app.state.tenants.tenants() == []


def test_root(client):
    assert client.get("/").json()["status"] == "running"


def test_registry_is_shared_with_service(app):
    assert app.state.auth_service.registry is app.state.tenants


def test_tenant_ready_when_store_cannot_be_opened(settings, tmp_path):
    from fastapi.testclient import TestClient
    from tenant_auth.auth_service.main import create_app

    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")
    settings = settings.model_copy(
        update={"TENANT_DATABASE_URL_TEMPLATE": f"sqlite:///{blocker}/{{tenant}}.db"}
    )
    with TestClient(create_app(settings)) as c:
        response = c.get("/t1/ready")
        assert response.status_code == 503
        assert response.json()["status"] == "not_ready"
        assert response.json()["database"] == "disconnected"
        assert c.app.state.tenants.tenants() == []
