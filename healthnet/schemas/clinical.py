# healthnet/schemas/clinical.py

from pydantic import BaseModel
from datetime import date, datetime
from typing import Any, Optional, List
from uuid import UUID

from healthnet.models.all_models import (
    DiagnosisStatus, AppointmentStatus, AllergySeverity, InsuranceStatus, NotificationType
)
from healthnet.schemas.user import DoctorSummary, PatientSummary, FacilityResponse

# ================================
# ASSIGNMENTS
# ================================

class AssignmentResponse(BaseModel):
    assignment_id: str
    doctor_id: str
    patient_id: str
    assigned_by: Optional[str] = None
    notes: Optional[str] = None
    assigned_at: Optional[datetime] = None
    end_date: Optional[datetime] = None
    is_active: bool
    doctor: Optional[DoctorSummary] = None
    patient: Optional[PatientSummary] = None

    class Config:
        from_attributes = True

# ================================
# CLINICAL RECORDS
# ================================

class DiagnosisResponse(BaseModel):
    diagnosis_id: str
    patient_id: str
    doctor_id: str
    facility_id: Optional[str] = None
    symptoms: str
    diagnosed_disease: Optional[str] = None
    disease_name: str
    medications: Optional[str] = None
    suggestions: Optional[str] = None
    conclusion: Optional[str] = None
    status: DiagnosisStatus
    emergency_visible: bool
    completed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    doctor: Optional[DoctorSummary] = None

    class Config:
        from_attributes = True

class LabResultResponse(BaseModel):
    lab_id: str
    patient_id: str
    doctor_id: str
    facility_id: Optional[str] = None
    type: str
    test_name: Optional[str] = None
    result_summary: Optional[str] = None
    findings: Optional[str] = None
    notes: Optional[str] = None
    is_abnormal: bool
    file_name: Optional[str] = None
    file_url: Optional[str] = None
    file_size: Optional[int] = None
    mime_type: Optional[str] = None
    test_date: Optional[datetime] = None
    emergency_visible: bool
    created_at: Optional[datetime] = None
    doctor: Optional[DoctorSummary] = None

    class Config:
        from_attributes = True

class AppointmentResponse(BaseModel):
    appointment_id: str
    doctor_id: str
    patient_id: str
    facility_id: Optional[str] = None
    when: datetime
    duration: int
    reason: Optional[str] = None
    notes: Optional[str] = None
    status: AppointmentStatus
    completed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    doctor: Optional[DoctorSummary] = None
    patient: Optional[PatientSummary] = None
    facility: Optional[FacilityResponse] = None

    class Config:
        from_attributes = True

class AllergyResponse(BaseModel):
    id: UUID
    patient_id: str
    allergies: str
    severity: AllergySeverity
    emergency_visible: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class EmergencyInfoResponse(BaseModel):
    patient_name: Optional[str] = None
    patient_dob: Optional[date] = None
    blood_type: Optional[str] = None
    known_allergies: Optional[str] = None
    chronic_conditions: Optional[str] = None
    current_medications: Optional[str] = None
    disability_info: Optional[str] = None
    emergency_contact_name: Optional[str] = None
    emergency_contact_phone: Optional[str] = None
    emergency_contact_relationship: Optional[str] = None
    insurance_status: Optional[InsuranceStatus] = None
    last_updated: Optional[datetime] = None

    class Config:
        from_attributes = True

# ================================
# EMERGENCY ACCESS
# ================================

class QRCodeResponse(BaseModel):
    qr_id: str
    token: str
    qr_code_url: Optional[str] = None
    expire_time: datetime
    scan_count: int
    max_scans: int
    accessible_fields: Optional[List[str]] = None
    is_active: bool
    last_used: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class QRCodeGenerated(BaseModel):
    qr_id: str
    token: str
    qr_code_url: Optional[str] = None
    expire_time: datetime

    class Config:
        from_attributes = True

# ================================
# NOTIFICATIONS & AUDIT
# ================================

class NotificationResponse(BaseModel):
    id: UUID
    type: NotificationType
    title: str
    message: str
    is_read: bool
    read_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class AuditLogResponse(BaseModel):
    id: UUID
    user_id: Optional[str] = None
    action_type: str
    entity_type: str
    entity_id: Optional[str] = None
    old_values: Optional[Any] = None
    new_values: Optional[Any] = None
    description: Optional[str] = None
    ip_address: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
