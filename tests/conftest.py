"""Shared fixtures: in-memory database, isolated uploads and API helpers."""

import os
import tempfile

# Must be set before config is imported anywhere
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["JWT_SECRET_KEY"] = "test-secret-key"
os.environ["APP_ENV"] = "test"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="pengaduan-uploads-")
os.environ.pop("ADMIN_REGISTRATION_TOKEN", None)

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app import app
from core.database import get_db
from core.dependencies import get_photo_storage
from models import Base
from schemas.user import Identity
from utils.complaint_manager import ComplaintManager
from utils.photo_storage import PhotoStorage
from utils.user_manager import UserManager

DEFAULT_PASSWORD = "rahasia123"


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def photo_storage(tmp_path):
    return PhotoStorage(tmp_path / "uploads")


@pytest.fixture
def user_manager(db_session):
    return UserManager(db_session)


@pytest.fixture
def complaint_manager(db_session, photo_storage):
    return ComplaintManager(db_session, photo_storage)


@pytest.fixture
def make_user(user_manager):
    """Create a user directly and return its Identity."""

    def _make(email, role="citizen", password=DEFAULT_PASSWORD, **extra):
        user = user_manager.register(email=email, password=password, role=role, **extra)
        return Identity(id=user.id, email=user.email, role=user.role)

    return _make


@pytest.fixture
def client(session_factory, photo_storage):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_photo_storage] = lambda: photo_storage
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def register(client):
    """Register through the API and return the user record."""

    def _register(email, password=DEFAULT_PASSWORD, role=None, name="Warga Uji", **extra):
        payload = {"email": email, "password": password, "name": name, **extra}
        if role:
            payload["role"] = role
        response = client.post("/api/users/register", json=payload)
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _register


@pytest.fixture
def login(client):
    """Log in through the API and return Authorization headers."""

    def _login(email, password=DEFAULT_PASSWORD):
        response = client.post("/api/users/login", json={"email": email, "password": password})
        assert response.status_code == 200, response.text
        return {"Authorization": f"Bearer {response.json()['data']['token']}"}

    return _login


@pytest.fixture
def citizen(register, login):
    user = register("warga@example.com")
    return user, login("warga@example.com")


@pytest.fixture
def other_citizen(register, login):
    user = register("tetangga@example.com", name="Tetangga")
    return user, login("tetangga@example.com")


@pytest.fixture
def admin(register, login):
    user = register("admin@example.com", role="admin", name="Petugas")
    return user, login("admin@example.com")


@pytest.fixture
def complaint_payload():
    return {
        "title": "Jalan berlubang",
        "reporterName": "Budi",
        "reporterPhone": "081234567890",
        "address": "Jl. Merdeka No. 1",
        "category": "infrastruktur",
        "body": "Ada lubang besar di depan sekolah.",
    }
