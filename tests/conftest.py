import os
from datetime import datetime, timedelta

# Set testing environment before the application is imported
os.environ["TESTING"] = "1"
os.environ.setdefault("TEST_DATABASE_URL", "sqlite:///./test.db")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.main import app
from app.core.database import Base, get_db
from app.core.security import get_password_hash, utcnow
from app.models.admin import Admin
from app.models.appointment import Appointment, AppointmentStatus
from app.models.doctor import Doctor
from app.models.patient import Patient
from app.services.token_service import TokenService

PASSWORD = "Secret123"
# Hashed once; bcrypt is deliberately slow
PASSWORD_HASH = get_password_hash(PASSWORD)


def future_at(hour: int, minute: int = 0, days: int = 1) -> datetime:
    """A naive UTC datetime ``days`` from today at ``hour:minute``."""
    day = (utcnow() + timedelta(days=days)).date()
    return datetime(day.year, day.month, day.day, hour, minute)


@pytest.fixture
def engine(tmp_path):
    # File-backed so several connections can share it across threads
    engine = create_engine(
        f"sqlite:///{tmp_path / 'test.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()

@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)

@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()

@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app, base_url="http://testserver") as test_client:
        yield test_client
    app.dependency_overrides.clear()


def _persist(db, instance):
    db.add(instance)
    db.commit()
    db.refresh(instance)
    return instance

@pytest.fixture
def admin(db):
    return _persist(db, Admin(username="admin", password_hash=PASSWORD_HASH))

@pytest.fixture
def doctor(db):
    return _persist(db, Doctor(
        name="Alice Smith",
        specialty="Cardiology",
        email="alice@clinic.com",
        phone="5550000001",
        password_hash=PASSWORD_HASH,
        available_times=["09:00", "10:00", "11:00"],
    ))

@pytest.fixture
def other_doctor(db):
    return _persist(db, Doctor(
        name="Bob Jones",
        specialty="Dermatology",
        email="bob@clinic.com",
        phone="5550000002",
        password_hash=PASSWORD_HASH,
        available_times=["02:00 PM", "3:00 PM"],
    ))

@pytest.fixture
def patient(db):
    return _persist(db, Patient(
        name="John Doe",
        email="john@example.com",
        phone="5551234567",
        address="1 Main Street",
        password_hash=PASSWORD_HASH,
    ))

@pytest.fixture
def other_patient(db):
    return _persist(db, Patient(
        name="Jane Roe",
        email="jane@example.com",
        phone="5557654321",
        address="2 Side Street",
        password_hash=PASSWORD_HASH,
    ))

@pytest.fixture
def make_appointment(db):
    """Insert an appointment directly, bypassing the booking checks."""
    def _make(doctor, patient, when, status=AppointmentStatus.SCHEDULED):
        return _persist(db, Appointment(
            doctor_id=doctor.id,
            patient_id=patient.id,
            appointment_time=when,
            status=status.value,
        ))
    return _make

@pytest.fixture
def token_for(db):
    def _token(identifier: str, **kwargs) -> str:
        return TokenService(db).issue_token(identifier, **kwargs)
    return _token

@pytest.fixture
def auth_headers(token_for):
    def _headers(identifier: str) -> dict:
        return {"Authorization": f"Bearer {token_for(identifier)}"}
    return _headers
