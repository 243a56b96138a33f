# healthnet/routes/doctor/schemas.py

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional

from healthnet.models.all_models import DiagnosisStatus, AllergySeverity

# ================================
# DIAGNOSIS SCHEMAS
# ================================

class DiagnosisCreate(BaseModel):
    symptoms: Optional[str] = None
    disease_name: Optional[str] = Field(None, max_length=255)
    diagnosed_disease: Optional[str] = Field(None, max_length=255)
    medications: Optional[str] = None
    suggestions: Optional[str] = None
    conclusion: Optional[str] = None
    status: Optional[DiagnosisStatus] = None

class DiagnosisUpdate(DiagnosisCreate):
    pass

# ================================
# APPOINTMENT SCHEMAS
# ================================

class AppointmentCreate(BaseModel):
    patient_id: str
    when: datetime
    duration: Optional[int] = Field(None, ge=5, le=480)
    reason: Optional[str] = None
    notes: Optional[str] = None
    facility_id: Optional[str] = None

class AppointmentReschedule(BaseModel):
    when: datetime

# ================================
# PATIENT DATA SCHEMAS
# ================================

class AllergyCreate(BaseModel):
    allergies: str = Field(..., min_length=1, max_length=255)
    severity: Optional[AllergySeverity] = None

class MedicalInfoUpdate(BaseModel):
    blood_type: Optional[str] = Field(None, max_length=5)
    disability: Optional[str] = None
