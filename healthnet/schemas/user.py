# healthnet/schemas/user.py

from pydantic import BaseModel
from datetime import date, datetime
from typing import Optional

from healthnet.models.all_models import (
    UserRole, Gender, DoctorType, ProfileStatus, InsuranceStatus, FacilityType, User
)

# ================================
# RESPONSE SCHEMAS
# ================================

class FacilityResponse(BaseModel):
    hospital_id: str
    name: str
    type: FacilityType
    city_town: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None

    class Config:
        from_attributes = True

class UserSummary(BaseModel):
    user_id: str
    name: str
    email: str
    phone: Optional[str] = None

    class Config:
        from_attributes = True

class UserResponse(UserSummary):
    role: UserRole
    gender: Optional[Gender] = None
    dob: Optional[date] = None
    address: Optional[str] = None
    nationality: Optional[str] = None
    place_of_birth: Optional[str] = None
    last_login_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

class AdminProfileResponse(BaseModel):
    admin_id: str
    facility_id: Optional[str] = None
    facility: Optional[FacilityResponse] = None

    class Config:
        from_attributes = True

class DoctorSummary(BaseModel):
    doctor_id: str
    type: DoctorType
    specialization: Optional[str] = None
    user: UserSummary

    class Config:
        from_attributes = True

class DoctorProfileResponse(BaseModel):
    doctor_id: str
    license_number: str
    type: DoctorType
    specialization: Optional[str] = None
    national_id: Optional[str] = None
    facility_id: Optional[str] = None
    facility: Optional[FacilityResponse] = None
    status: ProfileStatus
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class DoctorResponse(DoctorProfileResponse):
    user: UserResponse

class PatientSummary(BaseModel):
    patient_id: str
    status: ProfileStatus
    user: UserSummary

    class Config:
        from_attributes = True

class PatientProfileResponse(BaseModel):
    patient_id: str
    blood_type: Optional[str] = None
    disability: Optional[str] = None
    national_id: Optional[str] = None
    insurance_status: InsuranceStatus
    facility_id: Optional[str] = None
    status: ProfileStatus
    blood_type_visible: bool
    disability_visible: bool
    allergies_visible: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class PatientResponse(PatientProfileResponse):
    user: UserResponse

PROFILE_SCHEMAS = {
    UserRole.ADMIN: AdminProfileResponse,
    UserRole.DOCTOR: DoctorProfileResponse,
    UserRole.PATIENT: PatientProfileResponse,
}

def serialize_account(user: User) -> dict:
    """User fields plus the role profile, shaped by the user's role."""
    data = UserResponse.model_validate(user).model_dump()
    profile = user.profile
    data["profile"] = PROFILE_SCHEMAS[user.role].model_validate(profile).model_dump() if profile is not None else None
    return data
