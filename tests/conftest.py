import os
import tempfile
from datetime import datetime, timezone

import pytest

# Point every side effect at a scratch directory before the app is imported
_TEST_ROOT = tempfile.mkdtemp(prefix="classroom-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TEST_ROOT, 'test.db')}"
os.environ["STORAGE_ROOT"] = os.path.join(_TEST_ROOT, "storage")
os.environ["LOG_DIR"] = os.path.join(_TEST_ROOT, "logs")
os.environ["DEFAULT_ADMIN_EMAIL"] = "admin@example.com"
os.environ["DEFAULT_ADMIN_PASSWORD"] = "admin-password"

from fastapi.testclient import TestClient  # noqa: E402

from classroom.core.config.settings import get_settings  # noqa: E402
from classroom.crud.profiles import create_profile  # noqa: E402
from classroom.db.base import Base  # noqa: E402
from classroom.db.session import SessionLocal, engine  # noqa: E402
from classroom.dependencies.auth import get_clock  # noqa: E402
from classroom.main import app  # noqa: E402
from classroom.models.profile import RoleType  # noqa: E402
from classroom.services.capabilities import Viewer  # noqa: E402
from classroom.services.file_storage import ObjectStorage  # noqa: E402

API = get_settings().API_V1_PREFIX


class Clock:
    """Mutable stand-in for the request clock."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture(autouse=True)
def fresh_schema():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def storage(tmp_path):
    return ObjectStorage(root=str(tmp_path / "objects"), public_url="/storage")


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def clock():
    fixed = Clock(datetime(2024, 1, 1, tzinfo=timezone.utc))
    app.dependency_overrides[get_clock] = fixed
    return fixed


@pytest.fixture
def make_profile(db):
    def _make(email: str, role: RoleType = RoleType.STUDENT, full_name: str = None):
        profile = create_profile(
            db,
            email=email,
            full_name=full_name or email.split("@")[0].title(),
            password="password123",
            role=role,
        )
        return profile, Viewer.from_profile(profile)
    return _make


def register(client, email: str, role: str = "student", full_name: str = None) -> dict:
    response = client.post(
        f"{API}/auth/register",
        json={
            "email": email,
            "full_name": full_name or email.split("@")[0].title(),
            "password": "password123",
            "role": role,
        },
    )
    assert response.status_code == 201, response.text
    return login(client, email, "password123")


def login(client, email: str, password: str) -> dict:
    response = client.post(f"{API}/auth/login", data={"username": email, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture
def teacher_headers(client):
    return register(client, "teacher@example.com", "teacher", "Tina Teacher")


@pytest.fixture
def student_headers(client):
    return register(client, "student@example.com", "student", "Sam Student")


@pytest.fixture
def admin_headers(client):
    return login(client, "admin@example.com", "admin-password")
