"""
Pytest fixtures for keyhub tests.

Every test gets its own data directory, a freshly bootstrapped app and a
TestClient; ``auth_headers`` logs in with the seeded admin account.
"""

import pytest
from fastapi.testclient import TestClient

from keyhub.core.config import Settings
from keyhub.core.storage import JsonDocumentStore
from keyhub.main import create_app
from keyhub.services.credential_store import CredentialStore
from keyhub.services.key_ledger import KeyLedger
from keyhub.services.software_catalog import SoftwareCatalog

ADMIN_USERNAME = "admin"
ADMIN_PASSWORD = "password"


@pytest.fixture
def settings(tmp_path):
    return Settings(
        DATA_DIR=str(tmp_path / "data"),
        JWT_SECRET_KEY="test-secret",
        ADMIN_USERNAME=ADMIN_USERNAME,
        ADMIN_PASSWORD=ADMIN_PASSWORD,
        BASE_PATH="",
        MAX_KEYS_PER_BATCH=50,
    )


@pytest.fixture
def storage(settings):
    store = JsonDocumentStore(settings.DATA_DIR)
    store.initialize()
    return store


@pytest.fixture
def credential_store(storage, settings):
    store = CredentialStore(storage, settings)
    store.bootstrap()
    return store


@pytest.fixture
def ledger(storage, settings):
    return KeyLedger(storage, settings)


@pytest.fixture
def catalog(storage, ledger):
    return SoftwareCatalog(storage, ledger)


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def auth_headers(client):
    resp = client.post("/api/login", json={"username": ADMIN_USERNAME, "password": ADMIN_PASSWORD})
    assert resp.status_code == 200, resp.text
    return {"Authorization": f"Bearer {resp.json()['token']}"}


@pytest.fixture
def create_software(client, auth_headers):
    """Factory creating software through the API and returning its JSON."""

    def _create(name="Tool", file_type="single", urls=None):
        resp = client.post(
            "/api/software",
            json={"name": name, "fileType": file_type, "downloadUrls": urls or ["https://x/a.zip"]},
            headers=auth_headers,
        )
        assert resp.status_code == 200, resp.text
        return resp.json()

    return _create
