"""
Allergy records.

Names are de-duplicated per patient case-insensitively. Every allergy
name is mirrored into `EmergencyInfo.known_allergies`, the comma-joined
string shown on the emergency card.
"""

import logging
import uuid
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from healthnet.exceptions import NotFound, ValidationFailed
from healthnet.models.all_models import Allergy, AllergySeverity, EmergencyInfo, PatientProfile, utc_now

logger = logging.getLogger(__name__)

SEPARATOR = ", "


def normalize_name(name: str) -> str:
    return " ".join(name.split()).lower()


def split_known_allergies(value: Optional[str]) -> List[str]:
    return [part.strip() for part in (value or "").split(",") if part.strip()]


def lock_patient(db: Session, patient_id: str) -> PatientProfile:
    patient = db.query(PatientProfile).filter(PatientProfile.patient_id == patient_id).with_for_update().first()
    if patient is None:
        raise NotFound("Patient not found")
    return patient


def ensure_emergency_info(patient: PatientProfile) -> EmergencyInfo:
    info = patient.emergency_info
    if info is None:
        info = EmergencyInfo(
            patient_name=patient.user.name,
            patient_dob=patient.user.dob,
            blood_type=patient.blood_type,
            disability_info=patient.disability,
            insurance_status=patient.insurance_status,
        )
        patient.emergency_info = info
    return info


def mirror_into_known_allergies(info: EmergencyInfo, name: str) -> None:
    names = split_known_allergies(info.known_allergies)
    if normalize_name(name) not in {normalize_name(existing) for existing in names}:
        names.append(" ".join(name.split()))
        info.known_allergies = SEPARATOR.join(names)


def remove_from_known_allergies(info: EmergencyInfo, name: str) -> None:
    key = normalize_name(name)
    names = [existing for existing in split_known_allergies(info.known_allergies) if normalize_name(existing) != key]
    info.known_allergies = SEPARATOR.join(names) or None


def upsert_allergy_row(db: Session, patient_id: str, name: str, severity: Optional[AllergySeverity]) -> Allergy:
    """Insert or update the allergy row without committing."""
    key = normalize_name(name)
    allergy = db.query(Allergy).filter(Allergy.patient_id == patient_id, Allergy.name_key == key).first()
    if allergy is not None:
        if severity is not None:
            allergy.severity = severity
        allergy.updated_at = utc_now()
        return allergy

    allergy = Allergy(
        patient_id=patient_id,
        allergies=" ".join(name.split()),
        name_key=key,
        severity=severity or AllergySeverity.MILD,
    )
    db.add(allergy)
    return allergy


def add_allergy(db: Session, patient_id: str, name: str, severity: Optional[AllergySeverity] = None) -> Allergy:
    """
    Record an allergy for the patient, updating the existing row when the
    name is already known in any casing.

    The patient row is locked for the duration of the transaction so two
    concurrent adds of the same name serialise; the unique constraint on
    (patient_id, name_key) catches anything that still slips through and
    the add is retried once as an update.
    """
    if not name or not name.strip():
        raise ValidationFailed("Allergy name is required")

    for attempt in range(2):
        patient = lock_patient(db, patient_id)
        allergy = upsert_allergy_row(db, patient_id, name, severity)
        mirror_into_known_allergies(ensure_emergency_info(patient), name)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            if attempt:
                raise
            logger.warning("Concurrent allergy insert for patient %s, retrying as update", patient_id)
            continue
        db.refresh(allergy)
        return allergy


def list_allergies(db: Session, patient_id: str) -> List[Allergy]:
    return db.query(Allergy).filter(Allergy.patient_id == patient_id).order_by(Allergy.created_at.asc()).all()


def _get_own_allergy(db: Session, patient_id: str, allergy_id: uuid.UUID) -> Allergy:
    allergy = db.query(Allergy).filter(Allergy.id == allergy_id, Allergy.patient_id == patient_id).first()
    if allergy is None:
        raise NotFound("Allergy not found")
    return allergy


def delete_allergy(db: Session, patient_id: str, allergy_id: uuid.UUID) -> None:
    patient = lock_patient(db, patient_id)
    allergy = _get_own_allergy(db, patient_id, allergy_id)
    remove_from_known_allergies(ensure_emergency_info(patient), allergy.allergies)
    db.delete(allergy)
    db.commit()


def set_allergy_visibility(db: Session, patient_id: str, allergy_id: uuid.UUID, visible: bool) -> Allergy:
    allergy = _get_own_allergy(db, patient_id, allergy_id)
    allergy.emergency_visible = visible
    db.commit()
    db.refresh(allergy)
    return allergy
