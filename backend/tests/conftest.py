import io
import os
import tempfile

# Settings are read once at import time.
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("LOG_FILE", os.path.join(tempfile.gettempdir(), "fadtrack-tests.log"))
os.environ.setdefault("ENVIRONMENT", "test")

import pytest
from fastapi.testclient import TestClient
from PIL import Image
from sqlalchemy.pool import StaticPool

from fadtrack.core.database import Database
from fadtrack.core.storage import FileStorage
from fadtrack.schemas.user import UserCreate, UserRole
from fadtrack.services.rate_limiter import rate_limiter
from fadtrack.services.user_service import user_service


def make_database() -> Database:
    return Database("sqlite://", poolclass=StaticPool, connect_args={"check_same_thread": False})


def jpeg_bytes(width: int = 640, height: int = 480, color: str = "red") -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (width, height), color).save(buf, format="JPEG")
    return buf.getvalue()


def png_bytes(width: int = 400, height: int = 200) -> bytes:
    buf = io.BytesIO()
    Image.new("RGBA", (width, height), (0, 128, 255, 255)).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def database():
    database = make_database().open()
    database.create_all()
    yield database
    database.close()


@pytest.fixture
def db(database):
    session = database.session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def storage(tmp_path):
    storage = FileStorage(tmp_path / "TPS", "/uploads/TPS")
    storage.ensure_root()
    return storage


@pytest.fixture
def make_user(db):
    def _make(username="alice", password="secret1", role=UserRole.USER):
        return user_service.create_user(db, UserCreate(username=username, password=password, role=role))

    return _make


@pytest.fixture
def client(tmp_path):
    from fadtrack.main import create_app

    rate_limiter.reset()
    app = create_app(
        database=make_database(),
        storage=FileStorage(tmp_path / "TPS", "/uploads/TPS"),
        init_mode="create_all",
    )
    with TestClient(app) as test_client:
        yield test_client
    rate_limiter.reset()


@pytest.fixture
def admin_headers(client):
    response = client.post("/api/v1/auth/login", json={"username": "admin", "password": "admin123"})
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['access_token']}"}
