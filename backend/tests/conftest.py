import os

os.environ.setdefault("LOG_DIR", "")

import pytest
from fastapi.testclient import TestClient

from accounts.main import app
from accounts.services.identity_store import IdentityStore
from accounts.utils.config import settings

ADMIN_TOKEN = "admin_test_token"
CRM_TOKEN = "crm_test_token"


def make_descriptor(*values, size=128):
    """128-d descriptor with the given leading values and zeros after."""
    descriptor = [0.0] * size
    for i, value in enumerate(values):
        descriptor[i] = value
    return descriptor


@pytest.fixture
def store(tmp_path):
    return IdentityStore(str(tmp_path / "identities.json"))


@pytest.fixture
def client(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "IDENTITY_STORE_PATH", str(tmp_path / "api_identities.json"))
    monkeypatch.setattr(settings, "ADMIN_API_TOKEN", ADMIN_TOKEN)
    monkeypatch.setattr(settings, "CRM_API_TOKEN", CRM_TOKEN)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def admin_headers():
    return {"Authorization": f"Bearer {ADMIN_TOKEN}"}


@pytest.fixture
def crm_headers():
    return {"Authorization": f"Bearer {CRM_TOKEN}"}
