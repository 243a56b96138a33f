# healthnet/routes/patient/schemas.py

from pydantic import BaseModel, EmailStr, Field
from typing import Optional

from healthnet.models.all_models import AllergySeverity

class VisibilityUpdate(BaseModel):
    visible: bool

class MedicalInfoVisibilityUpdate(BaseModel):
    # blood_type | disability | allergies
    field: str
    visible: bool

class PatientAllergyCreate(BaseModel):
    allergy: str = Field(..., min_length=1, max_length=255)
    severity: Optional[AllergySeverity] = None

class EmergencyInfoUpdate(BaseModel):
    blood_type: Optional[str] = Field(None, max_length=5)
    known_allergies: Optional[str] = None
    chronic_conditions: Optional[str] = None
    current_medications: Optional[str] = None
    disability_info: Optional[str] = None
    emergency_contact_name: Optional[str] = None
    emergency_contact_phone: Optional[str] = Field(None, max_length=20)
    emergency_contact_relationship: Optional[str] = None

class PatientProfileUpdate(BaseModel):
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, min_length=7, max_length=20)
    address: Optional[str] = None
