# Shared fixtures
# SQLite store and local bucket under tmp_path, an app wired to them, and an
# authenticated admin header.

import os

# Set env vars BEFORE importing admin modules
os.environ.setdefault("ADMIN_USERNAME", "testadmin")
os.environ.setdefault("ADMIN_PASSWORD", "testpass123")
os.environ.setdefault("ADMIN_SECRET_KEY", "test-secret-key-for-testing-only")

import pytest
from starlette.testclient import TestClient

from app.limits import limiter
from app.main import create_app
from app.services.contact import SimulatedContactSender
from db.models import SqliteStore
from db.storage import LocalBucket

limiter.enabled = False


@pytest.fixture
def config():
    return {
        "security": {"cors_origins": ["*"]},
        "contact": {"simulated_delay_seconds": 0},
    }


@pytest.fixture
def store(tmp_path):
    return SqliteStore(tmp_path / "portfolio.db")


@pytest.fixture
def bucket(tmp_path):
    return LocalBucket(tmp_path / "media")


@pytest.fixture
def profile_row(store):
    return store.insert("profiles", {
        "name": "Jeanne Dupont",
        "title": "Architecte d'intérieur",
        "email": "jeanne@example.com",
        "logo_type": "text",
    })


@pytest.fixture
def contact_sender():
    return SimulatedContactSender(delay_seconds=0)


@pytest.fixture
def app(config, store, bucket, contact_sender):
    return create_app(config, store=store, bucket=bucket, contact_sender=contact_sender)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def auth_header(client):
    """Login and return Authorization header."""
    resp = client.post("/admin/api/login", json={
        "username": "testadmin",
        "password": "testpass123",
    })
    assert resp.status_code == 200
    token = resp.json()["access_token"]
    return {"Authorization": f"Bearer {token}"}
