import os

import pytest
from fastapi.testclient import TestClient

# Set testing environment before the application is imported
os.environ["TESTING"] = "1"
os.environ["TEST_DATABASE_URL"] = "sqlite:///./test.db"
os.environ.setdefault("RATE_LIMIT_MAX_REQUESTS", "1000")

from carehub.main import app
from carehub.core.database import Base, SessionLocal, engine, redis_client
from carehub.core.security import UserRole, create_token_pair, get_password_hash
from carehub.models import User, Patient, Doctor, Laboratory, Pharmacy, Nurse
from carehub.models.provider import ApprovalStatus

DEFAULT_PASSWORD = "TestPassword123"

PROFILE_DEFAULTS = {
    UserRole.PATIENT: (Patient, {"first_name": "Test", "last_name": "Patient"}),
    UserRole.DOCTOR: (Doctor, {
        "first_name": "Asha",
        "last_name": "Rao",
        "specialization": "Cardiology",
    }),
    UserRole.LABORATORY: (Laboratory, {"lab_name": "City Diagnostics"}),
    UserRole.PHARMACY: (Pharmacy, {"pharmacy_name": "Wellness Pharmacy"}),
    UserRole.NURSE: (Nurse, {"first_name": "Meera", "last_name": "Nair"}),
}

@pytest.fixture(scope="function")
def test_db():
    # Create tables
    Base.metadata.create_all(bind=engine)
    redis_client.flushdb()
    yield
    redis_client.flushdb()
    Base.metadata.drop_all(bind=engine)

@pytest.fixture
def client(test_db):
    with TestClient(app, base_url="http://testserver") as test_client:
        yield test_client

@pytest.fixture
def db_session(test_db):
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

@pytest.fixture
def create_user(db_session):
    """Factory inserting an account with its profile directly in the database."""
    counter = {"value": 0}

    def _create_user(role=UserRole.PATIENT, email=None, status=ApprovalStatus.APPROVED, **profile_fields):
        counter["value"] += 1
        role = UserRole(role)
        email = email or f"{role.value}{counter['value']}@example.com"

        user = User(
            email=email,
            password_hash=get_password_hash(DEFAULT_PASSWORD),
            role=role,
            is_active=True,
            is_verified=True,
        )
        db_session.add(user)
        db_session.flush()

        if role != UserRole.ADMIN:
            model, defaults = PROFILE_DEFAULTS[role]
            values = dict(defaults)
            if role in (UserRole.DOCTOR, UserRole.LABORATORY, UserRole.PHARMACY):
                values["license_number"] = f"LIC-{role.value}-{counter['value']}"
            if role != UserRole.PATIENT:
                values["status"] = status
            values.update(profile_fields)
            db_session.add(model(user_id=user.id, **values))

        db_session.commit()
        db_session.refresh(user)
        return user

    return _create_user

@pytest.fixture
def auth_headers():
    """Bearer headers for a user, issued without going through login."""
    def _auth_headers(user):
        tokens = create_token_pair(user.id, user.email, user.role)
        return {"Authorization": f"Bearer {tokens.access_token}"}

    return _auth_headers
