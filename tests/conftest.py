"""
Test configuration and fixtures.

The application is pointed at a throwaway SQLite database before any
healthnet module is imported; the schema is recreated for every test.
"""

import os
import tempfile
from datetime import date

_TEST_DIR = tempfile.mkdtemp(prefix="healthnet-tests-")
os.environ["DATABASE_URL"] = "sqlite:///" + os.path.join(_TEST_DIR, "test.db")
os.environ["UPLOAD_DIR"] = os.path.join(_TEST_DIR, "uploads")
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["BACKEND_URL"] = "http://testserver"
os.environ["FRONTEND_URL"] = "http://frontend.test"

import pytest
from fastapi.testclient import TestClient

from healthnet.database import SessionLocal, engine
from healthnet.main import app
from healthnet.models.all_models import Base, DoctorType
from healthnet.services import assignments as assignment_service
from healthnet.services.facilities import create_facility
from healthnet.services.users import create_admin, create_doctor, create_patient
from healthnet.utils.auth import create_access_token

PASSWORD = "Passw0rd123"


@pytest.fixture(autouse=True)
def reset_database():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    """Test client fixture."""
    return TestClient(app)


@pytest.fixture
def password():
    """Plain-text password every fixture account is created with."""
    return PASSWORD


@pytest.fixture
def facility(db):
    return create_facility(db, {"name": "Queen Elizabeth Central Hospital", "city_town": "Blantyre"})


@pytest.fixture
def admin(db, facility):
    return create_admin(db, {
        "name": "Ada Admin",
        "email": "admin@healthnet.mw",
        "password": PASSWORD,
        "phone": "0999000001",
        "facility_id": facility.hospital_id,
    })


@pytest.fixture
def make_doctor(db, facility):
    counter = {"n": 0}

    def _make(doctor_type=DoctorType.MEDICAL_DOCTOR, name=None):
        counter["n"] += 1
        return create_doctor(db, {
            "name": name or f"Doctor {counter['n']}",
            "email": f"doctor{counter['n']}@healthnet.mw",
            "password": PASSWORD,
            "phone": f"088800000{counter['n']}",
            "license_number": f"LIC-{counter['n']:04d}",
            "type": doctor_type,
            "facility_id": facility.hospital_id,
        })

    return _make


@pytest.fixture
def make_patient(db, facility):
    counter = {"n": 0}

    def _make(name=None, **extra):
        counter["n"] += 1
        data = {
            "name": name or f"Patient {counter['n']}",
            "email": f"patient{counter['n']}@healthnet.mw",
            "password": PASSWORD,
            "phone": f"077700000{counter['n']}",
            "dob": date(1990, 1, counter["n"]),
            "facility_id": facility.hospital_id,
        }
        data.update(extra)
        return create_patient(db, data)

    return _make


@pytest.fixture
def medical_doctor(make_doctor):
    return make_doctor(DoctorType.MEDICAL_DOCTOR, name="Dr. Grace Banda")


@pytest.fixture
def lab_technician(make_doctor):
    return make_doctor(DoctorType.LAB_TECHNICIAN, name="Lab Tech Moyo")


@pytest.fixture
def patient(make_patient):
    return make_patient(name="John Phiri", blood_type="O+", disability="Hearing impairment")


@pytest.fixture
def assign(db, admin):
    """Actively assign a doctor user to a patient user."""
    def _assign(doctor_user, patient_user):
        return assignment_service.create_assignment(
            db, admin, doctor_user.doctor_profile.doctor_id, patient_user.patient_profile.patient_id
        )

    return _assign


@pytest.fixture
def auth_headers(db):
    """Bearer headers for a user, bound to their current token version."""
    def _headers(user):
        db.refresh(user)
        return {"Authorization": f"Bearer {create_access_token(user)}"}

    return _headers
