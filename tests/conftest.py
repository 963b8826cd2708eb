"""
Shared test fixtures.

Provides: in-memory SQLite database, FastAPI TestClient with dependency
overrides, a recording notifier, user fixtures and a controllable clock.
"""
import os

# Settings are read at import time
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("PUBLIC_BASE_URL", "https://connect.test")

from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from meetrelay.api.deps import get_notifier, get_storage
from meetrelay.constants import UserRole
from meetrelay.database import Base, SessionLocal, engine, get_db
from meetrelay.main import app
from meetrelay.models import User
from meetrelay.services.sessions import SessionManager
from meetrelay.services.signaling import SignalingService
from meetrelay.services.storage import UploadResult
from meetrelay.utils import timeutils


class RecordingNotifier:
    """Notifier double that keeps every dispatched notification."""

    def __init__(self):
        self.calls = []

    async def notify(self, title: str, content: str) -> bool:
        self.calls.append((title, content))
        return True

    def titles(self):
        return [title for title, _ in self.calls]


class FakeStorage:
    """In-memory stand-in for the blob storage adapter."""

    def __init__(self):
        self.objects = {}
        self.fail_uploads = False

    async def upload_bytes(self, content: bytes, storage_path: str, content_type: str) -> UploadResult:
        if self.fail_uploads:
            return UploadResult(success=False, error="storage unavailable")
        self.objects[storage_path] = (content, content_type)
        return UploadResult(success=True, url=f"https://storage.test/{storage_path}")

    async def delete_file(self, storage_path: str) -> bool:
        return self.objects.pop(storage_path, None) is not None


@pytest.fixture
def db():
    """Fresh schema per test on the shared in-memory connection."""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def client(db, notifier, storage):
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_notifier] = lambda: notifier
    app.dependency_overrides[get_storage] = lambda: storage
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def manager(db, notifier):
    return SessionManager(db, notifier)


@pytest.fixture
def signaling(db, manager):
    return SignalingService(db, manager)


def _make_user(db, email: str, name: str, role: str = UserRole.USER) -> User:
    user = User(email=email, name=name, role=role)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def host(db):
    return _make_user(db, "host@example.com", "Host")


@pytest.fixture
def other_host(db):
    return _make_user(db, "other@example.com", "Other Host")


@pytest.fixture
def admin(db):
    return _make_user(db, "admin@example.com", "Admin", role=UserRole.ADMIN)


@pytest.fixture
def host_headers(host):
    return {"X-User-ID": str(host.id)}


@pytest.fixture
def other_headers(other_host):
    return {"X-User-ID": str(other_host.id)}


@pytest.fixture
def created_session(client, host_headers):
    """A fresh 60 minute session created through the API."""
    response = client.post("/api/sessions", json={"expiresInMinutes": 60}, headers=host_headers)
    assert response.status_code == 200
    return response.json()


@pytest.fixture
def advance_clock(monkeypatch):
    """Move the service clock forward by the given number of minutes."""
    real_now = timeutils.utc_now

    def advance(minutes: int):
        frozen = real_now() + timedelta(minutes=minutes)
        monkeypatch.setattr(timeutils, "utc_now", lambda: frozen)
        return frozen

    return advance
