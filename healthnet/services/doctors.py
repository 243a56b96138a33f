"""Doctor workspace: the patients a doctor is assigned to and their records."""

import logging
from typing import Any, Dict, List, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from healthnet.exceptions import ValidationFailed
from healthnet.models.all_models import Assignment, Diagnosis, DoctorProfile, PatientProfile
from healthnet.services.assignments import check_assignment
from healthnet.services.diagnoses import list_patient_diagnoses
from healthnet.services.lab_results import list_patient_lab_results
from healthnet.services.users import get_patient

logger = logging.getLogger(__name__)

MEDICAL_INFO_FIELDS = ("blood_type", "disability")


def get_assigned_patients(db: Session, doctor: DoctorProfile) -> List[Tuple[Assignment, int]]:
    """Active assignments of the doctor, each with the patient's diagnosis count."""
    diagnosis_counts = (
        db.query(Diagnosis.patient_id, func.count(Diagnosis.id).label("count"))
        .group_by(Diagnosis.patient_id)
        .subquery()
    )
    rows = (
        db.query(Assignment, func.coalesce(diagnosis_counts.c.count, 0))
        .outerjoin(diagnosis_counts, diagnosis_counts.c.patient_id == Assignment.patient_id)
        .filter(Assignment.doctor_id == doctor.doctor_id, Assignment.end_date.is_(None))
        .order_by(Assignment.assigned_at.desc())
        .all()
    )
    return [(assignment, count) for assignment, count in rows]


def get_patient_for_doctor(db: Session, doctor: DoctorProfile, patient_id: str) -> PatientProfile:
    check_assignment(db, doctor.doctor_id, patient_id)
    return get_patient(db, patient_id)


def get_patient_records(db: Session, doctor: DoctorProfile, patient_id: str) -> Dict[str, Any]:
    patient = get_patient_for_doctor(db, doctor, patient_id)
    return {
        "patient": patient,
        "diagnoses": list_patient_diagnoses(db, patient_id),
        "lab_results": list_patient_lab_results(db, patient_id),
    }


def update_patient_medical_info(db: Session, doctor: DoctorProfile, patient_id: str, data: Dict[str, Any]) -> PatientProfile:
    patient = get_patient_for_doctor(db, doctor, patient_id)
    changes = {key: data[key] for key in MEDICAL_INFO_FIELDS if data.get(key) is not None}
    if not changes:
        raise ValidationFailed("Provide blood_type or disability")

    for field, value in changes.items():
        setattr(patient, field, value)
    if patient.emergency_info is not None:
        if "blood_type" in changes:
            patient.emergency_info.blood_type = changes["blood_type"]
        if "disability" in changes:
            patient.emergency_info.disability_info = changes["disability"]

    db.commit()
    db.refresh(patient)
    logger.info("Doctor %s updated medical info of patient %s", doctor.doctor_id, patient_id)
    return patient
