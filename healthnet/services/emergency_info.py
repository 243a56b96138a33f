"""Patient-maintained emergency card."""

import logging
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from healthnet.models.all_models import Allergy, EmergencyInfo, PatientProfile
from healthnet.services.allergies import (
    ensure_emergency_info, lock_patient, mirror_into_known_allergies, normalize_name, split_known_allergies, upsert_allergy_row
)

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = (
    "blood_type", "known_allergies", "chronic_conditions", "current_medications", "disability_info",
    "emergency_contact_name", "emergency_contact_phone", "emergency_contact_relationship",
)


def emergency_info_to_dict(info: Optional[EmergencyInfo]) -> Optional[Dict[str, Any]]:
    if info is None:
        return None
    return {
        "patient_name": info.patient_name,
        "patient_dob": info.patient_dob,
        "blood_type": info.blood_type,
        "known_allergies": info.known_allergies,
        "chronic_conditions": info.chronic_conditions,
        "current_medications": info.current_medications,
        "disability_info": info.disability_info,
        "emergency_contact_name": info.emergency_contact_name,
        "emergency_contact_phone": info.emergency_contact_phone,
        "emergency_contact_relationship": info.emergency_contact_relationship,
        "insurance_status": info.insurance_status,
        "last_updated": info.last_updated,
    }


def _import_known_allergies(db: Session, patient: PatientProfile, value: Optional[str]) -> int:
    """Create Allergy rows for names present in the free-text field but missing as rows."""
    existing = {
        row.name_key for row in db.query(Allergy.name_key).filter(Allergy.patient_id == patient.patient_id).all()
    }
    created = 0
    for name in split_known_allergies(value):
        key = normalize_name(name)
        if key in existing:
            continue
        upsert_allergy_row(db, patient.patient_id, name, None)
        existing.add(key)
        created += 1
    return created


def get_emergency_info(db: Session, patient: PatientProfile) -> EmergencyInfo:
    """
    Return the patient's emergency card, creating it on first read.

    Blood type and disability are taken from the patient profile, which
    is authoritative for both. Allergy names that only exist in the legacy
    free-text field are imported as Allergy rows.
    """
    patient = lock_patient(db, patient.patient_id)
    info = ensure_emergency_info(patient)
    info.blood_type = patient.blood_type
    info.disability_info = patient.disability

    imported = _import_known_allergies(db, patient, info.known_allergies)
    if imported:
        logger.info("Imported %d legacy allergy name(s) for patient %s", imported, patient.patient_id)

    db.commit()
    db.refresh(info)
    return info


def update_emergency_info(db: Session, patient: PatientProfile, data: Dict[str, Any]) -> EmergencyInfo:
    patient = lock_patient(db, patient.patient_id)
    info = ensure_emergency_info(patient)
    changes = {key: value for key, value in data.items() if key in EDITABLE_FIELDS and value is not None}

    allergies_text = changes.pop("known_allergies", None)
    for field, value in changes.items():
        setattr(info, field, value)

    if allergies_text is not None:
        _import_known_allergies(db, patient, allergies_text)
        for name in split_known_allergies(allergies_text):
            mirror_into_known_allergies(info, name)

    # The profile and the card must agree on these two
    if "blood_type" in changes:
        patient.blood_type = changes["blood_type"]
    if "disability_info" in changes:
        patient.disability = changes["disability_info"]

    db.commit()
    db.refresh(info)
    return info
