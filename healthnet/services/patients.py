"""Patient self-service views that are not owned by a record service."""

from typing import List

from sqlalchemy.orm import Session

from healthnet.exceptions import NotFound, ValidationFailed
from healthnet.models.all_models import Assignment, DoctorProfile, PatientProfile

# Request field -> visibility flag on the patient profile
MEDICAL_INFO_VISIBILITY = {
    "blood_type": "blood_type_visible",
    "disability": "disability_visible",
    "allergies": "allergies_visible",
}


def list_assigned_doctors(db: Session, patient: PatientProfile) -> List[DoctorProfile]:
    return (
        db.query(DoctorProfile)
        .join(Assignment, Assignment.doctor_id == DoctorProfile.doctor_id)
        .filter(Assignment.patient_id == patient.patient_id, Assignment.end_date.is_(None))
        .order_by(Assignment.assigned_at.desc())
        .all()
    )


def get_assigned_doctor(db: Session, patient: PatientProfile, doctor_id: str) -> DoctorProfile:
    doctor = (
        db.query(DoctorProfile)
        .join(Assignment, Assignment.doctor_id == DoctorProfile.doctor_id)
        .filter(
            DoctorProfile.doctor_id == doctor_id,
            Assignment.patient_id == patient.patient_id,
            Assignment.end_date.is_(None)
        )
        .first()
    )
    if doctor is None:
        raise NotFound("Doctor not found or not assigned to you")
    return doctor


def set_medical_info_visibility(db: Session, patient: PatientProfile, field: str, visible: bool) -> PatientProfile:
    flag = MEDICAL_INFO_VISIBILITY.get(field)
    if flag is None:
        raise ValidationFailed("Invalid medical info field")
    setattr(patient, flag, visible)
    db.commit()
    db.refresh(patient)
    return patient
