"""
Public emergency search by patient id.

This path is independent from QR scanning: it needs no token, returns a
narrower projection and hides blood type and disability unless the
patient made them visible.
"""

import logging
from typing import Any, Dict

from sqlalchemy.orm import Session

from healthnet.exceptions import NotFound, PermissionDenied
from healthnet.models.all_models import Allergy, Diagnosis, LabResult, PatientProfile, ProfileStatus
from healthnet.services.emergency_info import emergency_info_to_dict

logger = logging.getLogger(__name__)

RESTRICTED = "Restricted"


def search_emergency_data(db: Session, patient_id: str) -> Dict[str, Any]:
    patient = db.query(PatientProfile).filter(PatientProfile.patient_id == patient_id).first()
    if patient is None:
        raise NotFound("Patient registry ID not found")
    if patient.status == ProfileStatus.INACTIVE:
        raise PermissionDenied("Patient record is currently restricted")

    diagnoses = db.query(Diagnosis).filter(
        Diagnosis.patient_id == patient_id,
        Diagnosis.emergency_visible.is_(True)
    ).order_by(Diagnosis.created_at.desc()).all()

    lab_results = db.query(LabResult).filter(
        LabResult.patient_id == patient_id,
        LabResult.emergency_visible.is_(True)
    ).order_by(LabResult.test_date.desc()).all()

    emergency_info = emergency_info_to_dict(patient.emergency_info)
    if emergency_info is not None:
        # The card repeats fields that carry their own visibility flags
        if not patient.blood_type_visible:
            emergency_info["blood_type"] = RESTRICTED
        if not patient.disability_visible:
            emergency_info["disability_info"] = RESTRICTED
        if patient.allergies_visible:
            visible = db.query(Allergy).filter(
                Allergy.patient_id == patient_id,
                Allergy.emergency_visible.is_(True)
            ).order_by(Allergy.created_at.asc()).all()
            emergency_info["known_allergies"] = ", ".join(a.allergies for a in visible) or None
        else:
            emergency_info["known_allergies"] = RESTRICTED

    logger.info("Emergency search for patient %s", patient_id)
    return {
        "patient": {
            "name": patient.user.name,
            "gender": patient.user.gender,
            "dob": patient.user.dob,
        },
        "emergency_info": emergency_info,
        "blood_type": patient.blood_type if patient.blood_type_visible else RESTRICTED,
        "disability": patient.disability if patient.disability_visible else RESTRICTED,
        "diagnoses": [
            {"disease_name": d.disease_name, "created_at": d.created_at, "status": d.status}
            for d in diagnoses
        ],
        "lab_results": [
            {"type": r.type, "test_date": r.test_date, "is_abnormal": r.is_abnormal}
            for r in lab_results
        ],
    }
