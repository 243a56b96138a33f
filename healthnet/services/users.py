"""
Accounts, role profiles and sessions.

Every user owns exactly one role profile. Profiles are only ever created
through `create_admin`, `create_doctor` and `create_patient`, which write
the user and its profile in the same commit and give both the same
business id.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.orm import Session

from healthnet.exceptions import AuthenticationFailed, Conflict, NotFound, PermissionDenied, ValidationFailed
from healthnet.models.all_models import (
    AdminProfile, DoctorProfile, EmergencyInfo, Facility, InsuranceStatus, PatientProfile,
    ProfileStatus, User, UserRole, utc_now
)
from healthnet.utils import ids
from healthnet.utils.auth import create_access_token, hash_password, verify_password

logger = logging.getLogger(__name__)

ROLE_PREFIXES = {
    UserRole.ADMIN: ids.ADMIN,
    UserRole.DOCTOR: ids.DOCTOR,
    UserRole.PATIENT: ids.PATIENT,
}

USER_PROFILE_FIELDS = ("name", "email", "phone", "gender", "dob", "address", "nationality", "place_of_birth")

# ================================
# LOOKUPS
# ================================

def get_user(db: Session, user_id: str) -> User:
    user = db.query(User).filter(User.user_id == user_id).first()
    if user is None:
        raise NotFound("User not found")
    return user


def get_patient(db: Session, patient_id: str) -> PatientProfile:
    patient = db.query(PatientProfile).filter(PatientProfile.patient_id == patient_id).first()
    if patient is None:
        raise NotFound("Patient not found")
    return patient


def get_doctor(db: Session, doctor_id: str) -> DoctorProfile:
    doctor = db.query(DoctorProfile).filter(DoctorProfile.doctor_id == doctor_id).first()
    if doctor is None:
        raise NotFound("Doctor not found")
    return doctor


def get_facility(db: Session, facility_id: str) -> Facility:
    facility = db.query(Facility).filter(Facility.hospital_id == facility_id).first()
    if facility is None:
        raise NotFound("Facility not found")
    return facility


def _ensure_email_available(db: Session, email: str, exclude: Optional[User] = None) -> None:
    query = db.query(User).filter(User.email == email)
    if exclude is not None:
        query = query.filter(User.id != exclude.id)
    if query.first() is not None:
        raise Conflict("A user with this email already exists")


def _new_user(db: Session, role: UserRole, data: Dict[str, Any]) -> User:
    email = data["email"].strip().lower()
    _ensure_email_available(db, email)

    user = User(
        user_id=ids.generate_unique_id(db, User.user_id, ROLE_PREFIXES[role]),
        name=data["name"].strip(),
        email=email,
        phone=data.get("phone"),
        password=hash_password(data["password"]),
        role=role,
        gender=data.get("gender"),
        dob=data.get("dob"),
        address=data.get("address"),
        nationality=data.get("nationality"),
        place_of_birth=data.get("place_of_birth"),
    )
    db.add(user)
    return user

# ================================
# ACCOUNT CREATION
# ================================

def create_admin(db: Session, data: Dict[str, Any]) -> User:
    if data.get("facility_id"):
        get_facility(db, data["facility_id"])

    user = _new_user(db, UserRole.ADMIN, data)
    user.admin_profile = AdminProfile(admin_id=user.user_id, facility_id=data.get("facility_id"))
    db.commit()
    db.refresh(user)
    logger.info("Created admin %s", user.user_id)
    return user


def create_patient(db: Session, data: Dict[str, Any], created_by: Optional[str] = None) -> User:
    if data.get("facility_id"):
        get_facility(db, data["facility_id"])

    user = _new_user(db, UserRole.PATIENT, data)
    insurance_status = data.get("insurance_status") or InsuranceStatus.UNINSURED
    patient = PatientProfile(
        patient_id=user.user_id,
        blood_type=data.get("blood_type"),
        disability=data.get("disability"),
        national_id=data.get("national_id"),
        insurance_status=insurance_status,
        facility_id=data.get("facility_id"),
        created_by=created_by,
        status=ProfileStatus.ACTIVE,
    )
    patient.emergency_info = EmergencyInfo(
        patient_name=user.name,
        patient_dob=user.dob,
        blood_type=patient.blood_type,
        disability_info=patient.disability,
        insurance_status=insurance_status,
    )
    user.patient_profile = patient
    db.commit()
    db.refresh(user)
    logger.info("Created patient %s", user.user_id)
    return user


def create_doctor(db: Session, data: Dict[str, Any], created_by: Optional[str] = None) -> User:
    for field in ("license_number", "type", "facility_id"):
        if not data.get(field):
            raise ValidationFailed(f"{field} is required")
    get_facility(db, data["facility_id"])

    user = _new_user(db, UserRole.DOCTOR, data)
    user.doctor_profile = DoctorProfile(
        doctor_id=user.user_id,
        license_number=data["license_number"],
        type=data["type"],
        specialization=data.get("specialization"),
        national_id=data.get("national_id"),
        facility_id=data["facility_id"],
        created_by=created_by,
        status=ProfileStatus.ACTIVE,
    )
    db.commit()
    db.refresh(user)
    logger.info("Created doctor %s (%s)", user.user_id, user.doctor_profile.type.value)
    return user

# ================================
# LISTINGS
# ================================

def list_patients(db: Session, search: Optional[str] = None, status: Optional[ProfileStatus] = None) -> List[PatientProfile]:
    query = db.query(PatientProfile).join(User, PatientProfile.user_id == User.id)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(User.name.ilike(pattern), User.email.ilike(pattern), PatientProfile.patient_id.ilike(pattern)))
    if status:
        query = query.filter(PatientProfile.status == status)
    return query.order_by(PatientProfile.created_at.desc()).all()


def list_doctors(db: Session, search: Optional[str] = None, doctor_type=None) -> List[DoctorProfile]:
    query = db.query(DoctorProfile).join(User, DoctorProfile.user_id == User.id)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(User.name.ilike(pattern), User.email.ilike(pattern), DoctorProfile.doctor_id.ilike(pattern)))
    if doctor_type:
        query = query.filter(DoctorProfile.type == doctor_type)
    return query.order_by(DoctorProfile.created_at.desc()).all()

# ================================
# ACCOUNT MAINTENANCE
# ================================

def update_user_profile(db: Session, user_id: str, data: Dict[str, Any]) -> User:
    user = get_user(db, user_id)
    changes = {key: value for key, value in data.items() if key in USER_PROFILE_FIELDS and value is not None}

    if "email" in changes:
        changes["email"] = changes["email"].strip().lower()
        _ensure_email_available(db, changes["email"], exclude=user)

    for field, value in changes.items():
        setattr(user, field, value)

    # Keep the emergency card in step with the account it describes
    if user.role == UserRole.PATIENT and user.patient_profile and user.patient_profile.emergency_info:
        info = user.patient_profile.emergency_info
        info.patient_name = user.name
        info.patient_dob = user.dob

    db.commit()
    db.refresh(user)
    return user


def set_user_status(db: Session, user_id: str, status: ProfileStatus) -> User:
    user = get_user(db, user_id)
    if user.role == UserRole.ADMIN:
        raise ValidationFailed("Admin accounts cannot be suspended")
    user.profile.status = status
    db.commit()
    db.refresh(user)
    logger.info("Set status of %s to %s", user.user_id, status.value)
    return user


def reset_user_password(db: Session, user_id: str, new_password: str) -> User:
    """Admin password reset; every session the user holds stops working."""
    user = get_user(db, user_id)
    user.password = hash_password(new_password)
    user.token_version += 1
    db.commit()
    db.refresh(user)
    return user


def update_doctor_facility(db: Session, doctor_id: str, facility_id: str) -> DoctorProfile:
    doctor = get_doctor(db, doctor_id)
    get_facility(db, facility_id)
    doctor.facility_id = facility_id
    db.commit()
    db.refresh(doctor)
    return doctor


def update_patient_contact(db: Session, user: User, data: Dict[str, Any]) -> User:
    """Patients may change their own email, phone and address only."""
    allowed = {key: data[key] for key in ("email", "phone", "address") if data.get(key) is not None}
    return update_user_profile(db, user.user_id, allowed)

# ================================
# SESSIONS
# ================================

def login(db: Session, identifier: str, password: str) -> Tuple[User, str]:
    """
    Authenticate by business id or email and start a new session.

    Logging in bumps `token_version`, so tokens issued earlier stop working.
    """
    identifier = identifier.strip()
    user = db.query(User).filter(
        (User.user_id == identifier.upper()) |
        (User.email == identifier.lower())
    ).first()

    if user is None or not verify_password(password, user.password):
        raise AuthenticationFailed("Invalid user ID/email or password")

    if user.is_suspended:
        raise PermissionDenied("Your account has been suspended. Please contact the administrator.")

    user.token_version += 1
    user.last_login_at = utc_now()
    db.commit()
    db.refresh(user)
    logger.info("User %s logged in", user.user_id)
    return user, create_access_token(user)


def logout(db: Session, user: User) -> None:
    user.token_version += 1
    db.commit()
    logger.info("User %s logged out", user.user_id)


def change_password(db: Session, user: User, current_password: str, new_password: str) -> None:
    if not verify_password(current_password, user.password):
        raise ValidationFailed("Current password is incorrect")
    user.password = hash_password(new_password)
    user.token_version += 1
    db.commit()
