"""Pytest fixtures shared by unit and integration tests.

Provides reusable test fixtures for:
- Database session on an in-memory SQLite database, fresh per test
- A moto-backed S3 blob store with the bucket already created
- Users with each role (admin, institution user) and their JWT tokens
- Test clients for guests, users and admins with dependencies overridden

Usage:
    def test_admin_endpoint(admin_client):
        response = admin_client.get("/api/pending")
        assert response.status_code == 200
"""

import io
import os
import sys
from pathlib import Path
from typing import Generator

# Set environment variables BEFORE any imports so Settings picks them up
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("JWT_SECRET", "test-jwt-secret-key-256-bits-minimum-length-required-for-security")
os.environ.setdefault("PASSWORD_PEPPER", "test-pepper-secret-key-32-chars-long")
os.environ["S3_ENDPOINT_URL"] = ""
os.environ["S3_BUCKET_NAME"] = "test-educircular-bucket"
os.environ["S3_REGION"] = "us-east-1"
os.environ["LOG_JSON"] = "false"
os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")
os.environ.setdefault("AWS_DEFAULT_REGION", "us-east-1")

backend_src = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(backend_src))

import boto3
import pytest
from fastapi.testclient import TestClient
from moto import mock_aws
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from educircular.auth.jwt import create_access_token
from educircular.auth.password import hash_password
from educircular.database import get_db as database_get_db
from educircular.dependencies import get_blob_store, get_optional_blob_store
from educircular.infrastructure.storage import S3BlobStore
from educircular.models import Base, User

TEST_BUCKET = "test-educircular-bucket"
TEST_REGION = "us-east-1"
TEST_ACCESS_KEY = "testing"
TEST_SECRET_KEY = "testing"

USER_PASSWORD = "InstituteP@ss123"
ADMIN_PASSWORD = "AdminP@ss123"

# Single shared connection so every session sees the same in-memory database
test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


def _make_pdf(size_bytes: int = 10240) -> bytes:
    header = b"%PDF-1.4\n"
    trailer = b"\n%%EOF\n"
    return header + b"0" * (size_bytes - len(header) - len(trailer)) + trailer


def _pdf_part(name: str = "notice.pdf", size_bytes: int = 10240, content: bytes = None, content_type: str = "application/pdf"):
    data = content if content is not None else _make_pdf(size_bytes)
    return {"file": (name, io.BytesIO(data), content_type)}


def _circular_form(**overrides) -> dict:
    form = {
        "title": "Holiday Notice",
        "description": "School remains closed on Friday",
        "category": "Education",
    }
    form.update(overrides)
    return form


@pytest.fixture
def make_pdf():
    """Factory for PDF-looking payloads of an exact size."""
    return _make_pdf


@pytest.fixture
def pdf_part():
    """Factory for the multipart file part of an upload."""
    return _pdf_part


@pytest.fixture
def circular_form():
    """Factory for the descriptive form fields of an upload."""
    return _circular_form


@pytest.fixture(scope="function")
def db_session() -> Generator[Session, None, None]:
    """Create a fresh database session for each test.

    Creates all tables before the test and drops them after.
    """
    Base.metadata.create_all(bind=test_engine)

    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def s3_client():
    """Mock S3 with the test bucket created."""
    with mock_aws():
        client = boto3.client(
            "s3",
            region_name=TEST_REGION,
            aws_access_key_id=TEST_ACCESS_KEY,
            aws_secret_access_key=TEST_SECRET_KEY,
        )
        client.create_bucket(Bucket=TEST_BUCKET)
        yield client


@pytest.fixture
def blob_store(s3_client) -> S3BlobStore:
    """Initialized S3BlobStore backed by moto."""
    store = S3BlobStore(
        endpoint_url=None,
        access_key=TEST_ACCESS_KEY,
        secret_key=TEST_SECRET_KEY,
        bucket_name=TEST_BUCKET,
        region=TEST_REGION,
    )
    store.initialize()
    return store


def _create_user(db_session: Session, email: str, role: str, password: str, **fields) -> User:
    user = User(
        email=email,
        password_hash=hash_password(password),
        role=role,
        **fields,
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture(scope="function")
def admin_user(db_session: Session) -> User:
    return _create_user(
        db_session, "admin@test.edu", "admin", ADMIN_PASSWORD,
        institution_name="EduCircular Administration",
    )


@pytest.fixture(scope="function")
def regular_user(db_session: Session) -> User:
    """Institution account (role user)."""
    return _create_user(
        db_session, "office@springfield.edu", "user", USER_PASSWORD,
        institution_name="Springfield High School",
        contact_person="Edna Krabappel",
        city="Springfield",
    )


@pytest.fixture(scope="function")
def other_user(db_session: Session) -> User:
    return _create_user(
        db_session, "office@shelbyville.edu", "user", USER_PASSWORD,
        institution_name="Shelbyville Academy",
    )


def token_for(user: User) -> str:
    return create_access_token(user_id=user.id, role=user.role, email=user.email)


@pytest.fixture(scope="function")
def app(db_session: Session, blob_store: S3BlobStore):
    """FastAPI app wired to the test database and the moto blob store."""
    from educircular.main import app as fastapi_app

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    fastapi_app.dependency_overrides[database_get_db] = override_get_db
    fastapi_app.dependency_overrides[get_blob_store] = lambda: blob_store
    fastapi_app.dependency_overrides[get_optional_blob_store] = lambda: blob_store

    yield fastapi_app

    fastapi_app.dependency_overrides.clear()


def _client(app, user: User = None) -> TestClient:
    client = TestClient(app)
    if user is not None:
        client.headers.update({"Authorization": f"Bearer {token_for(user)}"})
    return client


@pytest.fixture(scope="function")
def client(app) -> TestClient:
    """Unauthenticated (guest) test client."""
    return _client(app)


@pytest.fixture(scope="function")
def user_client(app, regular_user: User) -> TestClient:
    return _client(app, regular_user)


@pytest.fixture(scope="function")
def other_user_client(app, other_user: User) -> TestClient:
    return _client(app, other_user)


@pytest.fixture(scope="function")
def admin_client(app, admin_user: User) -> TestClient:
    return _client(app, admin_user)
