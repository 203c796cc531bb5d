"""
Fixtures for HTTP-level tests.

The application runs its full lifespan against a fresh local store seeded
with the demo accounts (admin@platform.com, business@company.com,
employee@company.com, all with password ``password``).
"""

import pytest
from fastapi.testclient import TestClient

from jobmanager.core.config import get_config
from jobmanager.core.dependencies import reset_dependency_caches
from jobmanager.services.auth.demo_data import DEMO_PASSWORD

ADMIN_EMAIL = "admin@platform.com"
MANAGER_EMAIL = "business@company.com"
EMPLOYEE_EMAIL = "employee@company.com"


@pytest.fixture
def api_client(tmp_path, monkeypatch):
    monkeypatch.setenv("LOCAL_STORE_PATH", str(tmp_path / "api_store.json"))
    monkeypatch.setenv("SEED_DEMO_DATA", "true")
    monkeypatch.setenv("DATA_BACKENDS", "local")
    get_config.cache_clear()
    reset_dependency_caches()

    from jobmanager.main import app

    with TestClient(app) as client:
        yield client

    reset_dependency_caches()
    get_config.cache_clear()


def _login(client: TestClient, email: str) -> dict:
    response = client.post("/api/auth/login", json={"email": email, "password": DEMO_PASSWORD})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture
def admin_headers(api_client):
    return _login(api_client, ADMIN_EMAIL)


@pytest.fixture
def manager_headers(api_client):
    return _login(api_client, MANAGER_EMAIL)


@pytest.fixture
def employee_headers(api_client):
    return _login(api_client, EMPLOYEE_EMAIL)
