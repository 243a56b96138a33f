"""
Diagnoses: PENDING -> COMPLETED.

Only medical doctors write diagnoses, and only for patients they are
actively assigned to. A completed diagnosis is final.
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import BackgroundTasks
from sqlalchemy.orm import Session

from healthnet.exceptions import InvalidState, NotFound, PermissionDenied, ValidationFailed
from healthnet.models.all_models import (
    Diagnosis, DiagnosisStatus, DoctorProfile, DoctorType, NotificationType, utc_now
)
from healthnet.services import notifications
from healthnet.services.assignments import assigned_patient_ids, check_assignment
from healthnet.services.users import get_patient
from healthnet.utils import ids

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("symptoms", "diagnosed_disease", "disease_name", "medications", "suggestions", "conclusion")


def _require_medical_doctor(doctor: DoctorProfile, action: str) -> None:
    if doctor.type != DoctorType.MEDICAL_DOCTOR:
        raise PermissionDenied(f"Only Medical Doctors can {action} diagnoses")


def create_diagnosis(
    db: Session,
    doctor: DoctorProfile,
    patient_id: str,
    data: Dict[str, Any],
    background_tasks: Optional[BackgroundTasks] = None,
) -> Diagnosis:
    _require_medical_doctor(doctor, "create")
    check_assignment(db, doctor.doctor_id, patient_id)
    patient = get_patient(db, patient_id)

    disease_name = data.get("disease_name") or data.get("diagnosed_disease")
    if not disease_name or not data.get("symptoms"):
        raise ValidationFailed("disease_name and symptoms are required")

    status = data.get("status") or DiagnosisStatus.PENDING
    diagnosis = Diagnosis(
        diagnosis_id=ids.generate_unique_id(db, Diagnosis.diagnosis_id, ids.DIAGNOSIS),
        patient_id=patient_id,
        doctor_id=doctor.doctor_id,
        facility_id=doctor.facility_id,
        symptoms=data["symptoms"],
        diagnosed_disease=data.get("diagnosed_disease"),
        disease_name=disease_name,
        medications=data.get("medications"),
        suggestions=data.get("suggestions"),
        conclusion=data.get("conclusion"),
        status=status,
        completed_at=utc_now() if status == DiagnosisStatus.COMPLETED else None,
    )
    db.add(diagnosis)
    db.commit()
    db.refresh(diagnosis)
    logger.info("Doctor %s created diagnosis %s for patient %s", doctor.doctor_id, diagnosis.diagnosis_id, patient_id)

    notifications.dispatch(
        background_tasks, notifications.notify_assigned_doctors,
        patient_id, NotificationType.DIAGNOSIS, "New Diagnosis Created",
        f"A new diagnosis ({diagnosis.disease_name}) has been created for patient {patient.user.name}.",
        DoctorType.LAB_TECHNICIAN,
    )
    notifications.dispatch(
        background_tasks, notifications.notify_user,
        patient.user_id, NotificationType.DIAGNOSIS, "New Clinical Diagnosis",
        f"A new diagnosis has been recorded in your medical profile by {doctor.user.name}.",
    )
    return diagnosis


def _get_diagnosis(db: Session, diagnosis_id: str) -> Diagnosis:
    diagnosis = db.query(Diagnosis).filter(Diagnosis.diagnosis_id == diagnosis_id).first()
    if diagnosis is None:
        raise NotFound("Diagnosis not found")
    return diagnosis


def get_diagnosis_for_doctor(db: Session, doctor: DoctorProfile, diagnosis_id: str) -> Diagnosis:
    diagnosis = _get_diagnosis(db, diagnosis_id)
    check_assignment(db, doctor.doctor_id, diagnosis.patient_id)
    return diagnosis


def update_diagnosis(db: Session, doctor: DoctorProfile, diagnosis_id: str, data: Dict[str, Any]) -> Diagnosis:
    _require_medical_doctor(doctor, "update")
    diagnosis = _get_diagnosis(db, diagnosis_id)
    if diagnosis.status != DiagnosisStatus.PENDING:
        raise InvalidState("Can only edit diagnoses with PENDING status")
    check_assignment(db, doctor.doctor_id, diagnosis.patient_id)

    for field in EDITABLE_FIELDS:
        if data.get(field) is not None:
            setattr(diagnosis, field, data[field])
    if not data.get("disease_name") and data.get("diagnosed_disease"):
        diagnosis.disease_name = data["diagnosed_disease"]

    if data.get("status") == DiagnosisStatus.COMPLETED:
        diagnosis.status = DiagnosisStatus.COMPLETED
        diagnosis.completed_at = utc_now()

    db.commit()
    db.refresh(diagnosis)
    return diagnosis


def complete_diagnosis(db: Session, doctor: DoctorProfile, diagnosis_id: str) -> Diagnosis:
    _require_medical_doctor(doctor, "complete")
    diagnosis = _get_diagnosis(db, diagnosis_id)
    if diagnosis.status == DiagnosisStatus.COMPLETED:
        raise InvalidState("Diagnosis is already completed")
    check_assignment(db, doctor.doctor_id, diagnosis.patient_id)

    diagnosis.status = DiagnosisStatus.COMPLETED
    diagnosis.completed_at = utc_now()
    db.commit()
    db.refresh(diagnosis)
    logger.info("Diagnosis %s completed by %s", diagnosis_id, doctor.doctor_id)
    return diagnosis


def list_patient_diagnoses(db: Session, patient_id: str) -> List[Diagnosis]:
    return db.query(Diagnosis).filter(Diagnosis.patient_id == patient_id).order_by(Diagnosis.created_at.desc()).all()


def list_diagnoses_for_doctor(db: Session, doctor: DoctorProfile) -> List[Diagnosis]:
    """Diagnoses of every patient the doctor is currently assigned to."""
    patient_ids = assigned_patient_ids(db, doctor.doctor_id)
    if not patient_ids:
        return []
    return db.query(Diagnosis).filter(Diagnosis.patient_id.in_(patient_ids)).order_by(Diagnosis.created_at.desc()).all()


def get_patient_diagnosis(db: Session, patient_id: str, diagnosis_id: str) -> Diagnosis:
    diagnosis = db.query(Diagnosis).filter(
        Diagnosis.diagnosis_id == diagnosis_id,
        Diagnosis.patient_id == patient_id
    ).first()
    if diagnosis is None:
        raise NotFound("Diagnosis not found")
    return diagnosis


def set_diagnosis_visibility(db: Session, patient_id: str, diagnosis_id: str, visible: bool) -> Diagnosis:
    diagnosis = get_patient_diagnosis(db, patient_id, diagnosis_id)
    diagnosis.emergency_visible = visible
    db.commit()
    db.refresh(diagnosis)
    return diagnosis
