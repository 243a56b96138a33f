# healthnet/routes/admin/schemas.py

from pydantic import BaseModel, EmailStr, Field, field_validator
from datetime import date
from typing import Optional

from healthnet.models.all_models import Gender, DoctorType, ProfileStatus, InsuranceStatus, FacilityType
from healthnet.routes.auth.schemas import validate_password_strength

# ================================
# ACCOUNT SCHEMAS
# ================================

class AccountBase(BaseModel):
    name: str = Field(..., min_length=2, max_length=255)
    email: EmailStr
    phone: str = Field(..., min_length=7, max_length=20)
    password: str
    gender: Optional[Gender] = None
    dob: Optional[date] = None
    address: Optional[str] = None
    nationality: Optional[str] = None
    place_of_birth: Optional[str] = None
    national_id: Optional[str] = None
    facility_id: Optional[str] = None

    @field_validator('password')
    def validate_password(cls, v):
        return validate_password_strength(v)

class PatientCreate(AccountBase):
    blood_type: Optional[str] = Field(None, max_length=5)
    disability: Optional[str] = None
    insurance_status: InsuranceStatus = InsuranceStatus.UNINSURED

class DoctorCreate(AccountBase):
    license_number: str = Field(..., min_length=1)
    type: DoctorType
    specialization: Optional[str] = None
    facility_id: str = Field(..., min_length=1)

class UserProfileUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=255)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, min_length=7, max_length=20)
    gender: Optional[Gender] = None
    dob: Optional[date] = None
    address: Optional[str] = None
    nationality: Optional[str] = None
    place_of_birth: Optional[str] = None

class UserStatusUpdate(BaseModel):
    status: ProfileStatus

class PasswordReset(BaseModel):
    password: str

    @field_validator('password')
    def validate_password(cls, v):
        return validate_password_strength(v)

class DoctorFacilityUpdate(BaseModel):
    facility_id: str = Field(..., min_length=1)

# ================================
# ASSIGNMENT & FACILITY SCHEMAS
# ================================

class AssignmentCreate(BaseModel):
    doctor_id: str
    patient_id: str
    notes: Optional[str] = None

class FacilityCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=255)
    type: FacilityType = FacilityType.HOSPITAL
    city_town: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[EmailStr] = None
    address: Optional[str] = None
