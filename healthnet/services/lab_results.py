"""Lab results, written by lab technicians for patients they are assigned to."""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import BackgroundTasks, UploadFile
from sqlalchemy.orm import Session

from healthnet.exceptions import NotFound, PermissionDenied, ValidationFailed
from healthnet.models.all_models import (
    DoctorProfile, DoctorType, LabResult, LabResultStatus, NotificationType, User, UserRole
)
from healthnet.services import audit, notifications, storage
from healthnet.services.assignments import assigned_patient_ids, check_assignment, get_active_assignment
from healthnet.services.users import get_patient
from healthnet.utils import ids
from healthnet.utils.dates import to_naive_utc

logger = logging.getLogger(__name__)

UPLOAD_FOLDER = "lab-results"
REQUIRED_FIELDS = ("test_name", "result_value", "status", "type")


def create_lab_result(
    db: Session,
    doctor: DoctorProfile,
    patient_id: str,
    data: Dict[str, Any],
    upload: Optional[UploadFile] = None,
    background_tasks: Optional[BackgroundTasks] = None,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> LabResult:
    if doctor.type != DoctorType.LAB_TECHNICIAN:
        raise PermissionDenied("Only Lab Technicians can upload lab results")
    check_assignment(db, doctor.doctor_id, patient_id)
    patient = get_patient(db, patient_id)

    missing = [field for field in REQUIRED_FIELDS if not data.get(field)]
    if missing:
        raise ValidationFailed("test_name, result_value, status, and type are required", errors={"missing": missing})

    try:
        raw_status = data["status"]
        result_status = raw_status if isinstance(raw_status, LabResultStatus) else LabResultStatus(str(raw_status).strip().upper())
    except ValueError:
        raise ValidationFailed("status must be one of: " + ", ".join(s.value for s in LabResultStatus))

    file_meta: Dict[str, Any] = {}
    if upload is not None and upload.filename:
        file_meta = storage.save_upload(upload, UPLOAD_FOLDER)

    test_date: Optional[datetime] = to_naive_utc(data.get("test_date"))
    lab_result = LabResult(
        lab_id=ids.generate_unique_id(db, LabResult.lab_id, ids.LAB_RESULT),
        patient_id=patient_id,
        doctor_id=doctor.doctor_id,
        facility_id=doctor.facility_id,
        type=data["type"],
        test_name=data["test_name"],
        result_summary=data["result_value"],
        findings=data.get("findings"),
        notes=data.get("notes"),
        is_abnormal=result_status == LabResultStatus.ABNORMAL,
        file_name=file_meta.get("file_name"),
        file_path=file_meta.get("file_path"),
        file_url=file_meta.get("file_url"),
        file_size=file_meta.get("file_size"),
        mime_type=file_meta.get("mime_type"),
    )
    if test_date is not None:
        lab_result.test_date = test_date

    db.add(lab_result)
    try:
        db.commit()
    except Exception:
        db.rollback()
        storage.delete_file(file_meta.get("file_path"))
        raise
    db.refresh(lab_result)
    logger.info("Lab technician %s created lab result %s for patient %s", doctor.doctor_id, lab_result.lab_id, patient_id)

    if file_meta:
        notifications.dispatch(
            background_tasks, storage.register_file,
            file_meta, "LAB_RESULT", lab_result.lab_id, doctor.doctor_id,
        )
    notifications.dispatch(
        background_tasks, audit.log_action,
        doctor.doctor_id, "CREATE", "LAB_RESULT", lab_result.lab_id,
        new_values={"patient_id": patient_id, "type": lab_result.type, "test_name": lab_result.test_name},
        description=f"Lab result {lab_result.lab_id} created",
        ip_address=ip_address, user_agent=user_agent,
    )
    notifications.dispatch(
        background_tasks, notifications.notify_assigned_doctors,
        patient_id, NotificationType.LAB_RESULT, "New Lab Result Uploaded",
        f"New lab results ({lab_result.test_name or lab_result.type}) are available for patient {patient.user.name}.",
        DoctorType.MEDICAL_DOCTOR,
    )
    notifications.dispatch(
        background_tasks, notifications.notify_user,
        patient.user_id, NotificationType.LAB_RESULT, "New Lab Results Available",
        f"New lab results ({lab_result.type}) have been uploaded by {doctor.user.name}.",
    )
    return lab_result


def _get_lab_result(db: Session, lab_id: str) -> LabResult:
    lab_result = db.query(LabResult).filter(LabResult.lab_id == lab_id).first()
    if lab_result is None:
        raise NotFound("Lab result not found")
    return lab_result


def get_lab_result_for_doctor(db: Session, doctor: DoctorProfile, lab_id: str) -> LabResult:
    lab_result = _get_lab_result(db, lab_id)
    check_assignment(db, doctor.doctor_id, lab_result.patient_id)
    return lab_result


def list_patient_lab_results(db: Session, patient_id: str) -> List[LabResult]:
    return db.query(LabResult).filter(LabResult.patient_id == patient_id).order_by(LabResult.test_date.desc()).all()


def list_lab_results_for_doctor(db: Session, doctor: DoctorProfile) -> List[LabResult]:
    patient_ids = assigned_patient_ids(db, doctor.doctor_id)
    if not patient_ids:
        return []
    return db.query(LabResult).filter(LabResult.patient_id.in_(patient_ids)).order_by(LabResult.test_date.desc()).all()


def get_patient_lab_result(db: Session, patient_id: str, lab_id: str) -> LabResult:
    lab_result = db.query(LabResult).filter(LabResult.lab_id == lab_id, LabResult.patient_id == patient_id).first()
    if lab_result is None:
        raise NotFound("Lab result not found")
    return lab_result


def set_lab_result_visibility(db: Session, patient_id: str, lab_id: str, visible: bool) -> LabResult:
    lab_result = get_patient_lab_result(db, patient_id, lab_id)
    lab_result.emergency_visible = visible
    db.commit()
    db.refresh(lab_result)
    return lab_result


def can_access_lab_result(db: Session, user: User, lab_result: LabResult) -> bool:
    if user.role == UserRole.ADMIN:
        return True
    if user.role == UserRole.PATIENT:
        return user.patient_profile is not None and user.patient_profile.patient_id == lab_result.patient_id
    doctor = user.doctor_profile
    if doctor is None:
        return False
    if doctor.doctor_id == lab_result.doctor_id:
        return True
    return get_active_assignment(db, doctor.doctor_id, lab_result.patient_id) is not None


def get_download_url(db: Session, user: User, lab_id: str) -> str:
    lab_result = _get_lab_result(db, lab_id)
    if not can_access_lab_result(db, user, lab_result):
        raise PermissionDenied("You do not have access to this file")
    if not lab_result.file_url:
        raise NotFound("No file attached to this lab result")
    return storage.absolute_url(lab_result.file_url)
