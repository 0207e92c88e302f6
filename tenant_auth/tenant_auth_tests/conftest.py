import pytest
from fastapi.testclient import TestClient

from tenant_auth.auth_service.config import Settings
from tenant_auth.auth_service.main import create_app

TEST_SECRET = "test-signing-secret-0123456789abcdef0123456789abcdef"
TEST_ADMIN_KEY = "test-admin-key"


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        TENANT_DATABASE_URL_TEMPLATE=f"sqlite:///{tmp_path}/tenants/{{tenant}}.db",
        JWT_SECRET=TEST_SECRET,
        JWT_SECRET_FILE=str(tmp_path / "no-such-secret"),
        ADMIN_KEY=TEST_ADMIN_KEY,
        LOG_DIR=str(tmp_path / "logs"),
    )


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def register_data():
    return {
        "name": "Ana",
        "email": "ana@x.si",
        "password": "pw",
        "role": "user",
    }
