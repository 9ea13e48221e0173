"""Shared fixtures: a throwaway SQLite database configured before the app is imported."""

import os
import tempfile

_TMP_DIR = tempfile.mkdtemp(prefix="variant_tracker_tests_")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP_DIR, 'test.db')}"
os.environ.setdefault("ENVIRONMENT", "test")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from variant_tracker.config import settings  # noqa: E402
from variant_tracker.main import app  # noqa: E402
from variant_tracker.models.database import Base, SessionLocal, engine  # noqa: E402


@pytest.fixture
def db_tables():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session(db_tables):
    with SessionLocal() as session:
        yield session


@pytest.fixture
def storage_dir(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "STORAGE_DIR", str(tmp_path / "storage"))
    return tmp_path / "storage"


@pytest.fixture
def client(db_tables, storage_dir):
    yield TestClient(app)
    app.dependency_overrides.clear()


class RecordingStore:
    """In-memory audit store that keeps what it was given."""

    def __init__(self):
        self.records = []

    def append(self, record):
        self.records.append(record)


class FailingStore:
    """Audit store whose writes always blow up."""

    def __init__(self):
        self.calls = 0

    def append(self, record):
        self.calls += 1
        raise RuntimeError("audit database unavailable")


@pytest.fixture
def recording_store():
    return RecordingStore()


@pytest.fixture
def failing_store():
    return FailingStore()
