"""
Emergency-access QR codes.

A patient has at most one active QR code. Generating a new code
deactivates the previous ones in the same transaction, under a row lock
on the patient so concurrent generations serialise. Scanning is public,
validates the token and appends an entry to the scan log before any
patient data is returned.
"""

import base64
import io
import logging
import secrets
from datetime import timedelta
from typing import Any, Dict, List, Optional

import qrcode
from sqlalchemy.orm import Session

from healthnet.config import settings
from healthnet.exceptions import Gone, NotFound
from healthnet.models.all_models import FirstResponder, PatientProfile, QRCode, User, utc_now
from healthnet.services.emergency_info import emergency_info_to_dict
from healthnet.utils import ids

logger = logging.getLogger(__name__)

ACCESSIBLE_FIELDS = ["emergency_info"]


def build_scan_url(token: str) -> str:
    """The stable URL encoded in the QR image; it resolves through the public redirect."""
    return f"{settings.BACKEND_URL.rstrip('/')}/api/qr/v/t/{token}"


def render_qr_data_url(content: str) -> str:
    qr = qrcode.QRCode(error_correction=qrcode.constants.ERROR_CORRECT_M, box_size=10, border=4)
    qr.add_data(content)
    qr.make(fit=True)
    image = qr.make_image(fill_color="black", back_color="white")

    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return "data:image/png;base64," + base64.b64encode(buffer.getvalue()).decode("ascii")


def generate_qr_code(db: Session, patient_id: str) -> QRCode:
    patient = db.query(PatientProfile).filter(PatientProfile.patient_id == patient_id).with_for_update().first()
    if patient is None:
        raise NotFound("Patient not found")

    deactivated = db.query(QRCode).filter(
        QRCode.patient_id == patient_id,
        QRCode.is_active.is_(True)
    ).update({QRCode.is_active: False}, synchronize_session=False)

    token = secrets.token_hex(32)
    now = utc_now()
    qr_code = QRCode(
        qr_id=ids.generate_unique_id(db, QRCode.qr_id, ids.QR_CODE),
        patient_id=patient_id,
        token=token,
        qr_code_url=render_qr_data_url(build_scan_url(token)),
        expire_time=now + timedelta(days=settings.QR_TOKEN_TTL_DAYS),
        scan_count=0,
        max_scans=settings.QR_MAX_SCANS,
        accessible_fields=list(ACCESSIBLE_FIELDS),
        is_active=True,
        created_at=now,
    )
    db.add(qr_code)
    db.commit()
    db.refresh(qr_code)
    logger.info("Generated QR code %s for patient %s (%d deactivated)", qr_code.qr_id, patient_id, deactivated)
    return qr_code


def _validate_for_scan(qr_code: Optional[QRCode]) -> QRCode:
    if qr_code is None:
        raise NotFound("Invalid QR code")
    if not qr_code.is_active:
        raise Gone("QR code is inactive")
    if utc_now() > qr_code.expire_time:
        raise Gone("QR code has expired")
    if qr_code.scan_count >= qr_code.max_scans:
        raise Gone("QR code scan limit reached")
    return qr_code


def scan_qr_code(
    db: Session,
    token: str,
    scanned_by: Optional[User] = None,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
    expected_patient_id: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Validate a token, log the scan and return the emergency projection.

    `expected_patient_id` is set by the patient-id redirect route: the
    token has to belong to that patient.
    """
    qr_code = db.query(QRCode).filter(QRCode.token == token).first()
    if qr_code is not None and expected_patient_id is not None and qr_code.patient_id != expected_patient_id:
        qr_code = None
    qr_code = _validate_for_scan(qr_code)

    patient = qr_code.patient
    db.add(FirstResponder(
        qr_id=qr_code.qr_id,
        scanned_by_id=scanned_by.user_id if scanned_by is not None else None,
        patient_scanned_id=patient.patient_id,
        ip_address=ip_address,
        user_agent=user_agent,
        token_used=token,
        accessed_data={"fields": qr_code.accessible_fields or list(ACCESSIBLE_FIELDS)},
    ))
    # Increment in SQL so concurrent scans are not lost
    db.query(QRCode).filter(QRCode.id == qr_code.id).update(
        {QRCode.scan_count: QRCode.scan_count + 1, QRCode.last_used: utc_now()},
        synchronize_session=False
    )
    db.commit()
    logger.info("QR code %s scanned for patient %s", qr_code.qr_id, patient.patient_id)

    user = patient.user
    return {
        "token": token,
        "patient_id": patient.patient_id,
        "patient": {
            "user_id": user.user_id,
            "name": user.name,
            "phone": user.phone,
            "gender": user.gender,
            "dob": user.dob,
            "address": user.address,
        },
        "emergency_info": emergency_info_to_dict(patient.emergency_info),
    }


def get_my_qr_codes(db: Session, patient_id: str) -> List[QRCode]:
    """Only the most recent code is exposed to the patient."""
    latest = db.query(QRCode).filter(QRCode.patient_id == patient_id).order_by(QRCode.created_at.desc()).first()
    return [latest] if latest is not None else []


def get_scan_history(db: Session, patient_id: str) -> List[Dict[str, Any]]:
    scans = db.query(FirstResponder).filter(
        FirstResponder.patient_scanned_id == patient_id
    ).order_by(FirstResponder.scanned_at.desc()).all()

    history = []
    for scan in scans:
        scanner = scan.scanned_by
        history.append({
            "qr_id": scan.qr_id,
            "scanned_at": scan.scanned_at,
            "ip_address": scan.ip_address,
            "user_agent": scan.user_agent,
            "accessed_data": scan.accessed_data,
            "scanned_by": {
                "user_id": scanner.user_id,
                "name": scanner.name,
                "role": scanner.role,
            } if scanner is not None else None,
        })
    return history
