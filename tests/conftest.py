"""Pytest configuration and fixtures."""

import os
from datetime import UTC, datetime

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

# Use test database - PostgreSQL in Docker, SQLite locally
if os.getenv("DATABASE_URL"):
    # Running in Docker - use PostgreSQL test database
    SQLALCHEMY_DATABASE_URL = os.getenv("DATABASE_URL").replace("/kyc_admin", "/kyc_admin_test")
else:
    # Running locally - use SQLite
    SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"

TEST_PRIVATE_KEY = rsa.generate_private_key(public_exponent=65537, key_size=2048)
TEST_PRIVATE_KEY_PEM = TEST_PRIVATE_KEY.private_bytes(
    encoding=serialization.Encoding.PEM,
    format=serialization.PrivateFormat.PKCS8,
    encryption_algorithm=serialization.NoEncryption(),
).decode("ascii")

# Settings are read once at import time, so the environment must be ready first
os.environ["DATABASE_URL"] = SQLALCHEMY_DATABASE_URL
os.environ["ENVIRONMENT"] = "test"
os.environ["SUPABASE_URL"] = "https://storage.test"
os.environ["SUPABASE_SERVICE_ROLE_KEY"] = "service-role-key"
os.environ["FIREBASE_PROJECT_ID"] = "test-project"
os.environ["FIREBASE_CLIENT_EMAIL"] = "svc@test-project.iam.gserviceaccount.com"
os.environ["FIREBASE_PRIVATE_KEY"] = TEST_PRIVATE_KEY_PEM.replace("\n", "\\n")

from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from kyc_admin import models  # noqa: E402, F401
from kyc_admin.database import Base, get_db  # noqa: E402
from kyc_admin.main import app  # noqa: E402
from kyc_admin.models import KycSubmission, UserFcmToken, UserProfile  # noqa: E402
from kyc_admin.services.fcm_auth import ServiceIdentity  # noqa: E402

connect_args = {"check_same_thread": False} if "sqlite" in SQLALCHEMY_DATABASE_URL else {}
engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args=connect_args)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="session", autouse=True)
def setup_test_database():
    """Create test database schema once at the start of the test session."""
    if "postgresql" in SQLALCHEMY_DATABASE_URL:
        from sqlalchemy_utils import create_database, database_exists

        if not database_exists(SQLALCHEMY_DATABASE_URL):
            create_database(SQLALCHEMY_DATABASE_URL)

    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture(scope="function", autouse=True)
def db():
    """Create a fresh database session for each test with cleanup."""
    session = TestingSessionLocal()

    yield session

    # Clean up all data after test
    session.rollback()
    for table in reversed(Base.metadata.sorted_tables):
        session.execute(table.delete())
    session.commit()
    session.close()


@pytest.fixture(scope="function")
def client(db):
    """Create a test client with database override."""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def session_local():
    """Session factory bound to the test database."""
    return TestingSessionLocal


@pytest.fixture
def private_key():
    """The RSA key the test service identity signs with."""
    return TEST_PRIVATE_KEY


@pytest.fixture
def service_identity():
    """Service identity built from the test key."""
    return ServiceIdentity(
        project_id="test-project",
        client_email="svc@test-project.iam.gserviceaccount.com",
        private_key=TEST_PRIVATE_KEY_PEM,
    )


@pytest.fixture
def rider(db):
    """Create a rider profile."""
    profile = UserProfile(fullname="Awa Diallo", pseudo="awa", phone="+221770000000")
    db.add(profile)
    db.commit()
    return profile


@pytest.fixture
def make_submission(db, rider):
    """Factory for KYC submissions belonging to the rider."""

    def _make(status: str = "pending", submitted_at: datetime | None = None) -> KycSubmission:
        submission = KycSubmission(
            user_id=rider.id,
            status=status,
            id_front_path=f"{rider.id}/id_front.jpg",
            id_back_path=f"{rider.id}/id_back.jpg",
            selfie_path=f"{rider.id}/selfie.jpg",
            submitted_at=submitted_at or datetime.now(UTC),
        )
        db.add(submission)
        db.commit()
        return submission

    return _make


@pytest.fixture
def make_device_token(db):
    """Factory for registered device tokens."""

    def _make(user_id: str, token: str, revoked: bool = False) -> UserFcmToken:
        device = UserFcmToken(
            user_id=user_id,
            token=token,
            platform="android",
            revoked_at=datetime.now(UTC) if revoked else None,
        )
        db.add(device)
        db.commit()
        return device

    return _make
