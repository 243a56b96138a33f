"""
Doctor-patient assignments.

An assignment is active while its `end_date` is NULL. `check_assignment`
is the gate every doctor-facing operation on patient data goes through.
"""

import logging
from typing import List, Optional

from fastapi import BackgroundTasks
from sqlalchemy.orm import Session

from healthnet.exceptions import Conflict, NotFound, PermissionDenied
from healthnet.models.all_models import Assignment, NotificationType, User, utc_now
from healthnet.services import notifications
from healthnet.services.users import get_doctor, get_patient
from healthnet.utils import ids

logger = logging.getLogger(__name__)


def get_active_assignment(db: Session, doctor_id: str, patient_id: str) -> Optional[Assignment]:
    return db.query(Assignment).filter(
        Assignment.doctor_id == doctor_id,
        Assignment.patient_id == patient_id,
        Assignment.end_date.is_(None)
    ).first()


def check_assignment(db: Session, doctor_id: str, patient_id: str) -> Assignment:
    assignment = get_active_assignment(db, doctor_id, patient_id)
    if assignment is None:
        raise PermissionDenied("You are not assigned to this patient")
    return assignment


def assigned_patient_ids(db: Session, doctor_id: str) -> List[str]:
    rows = db.query(Assignment.patient_id).filter(
        Assignment.doctor_id == doctor_id,
        Assignment.end_date.is_(None)
    ).distinct().all()
    return [row.patient_id for row in rows]


def assigned_doctor_ids(db: Session, patient_id: str) -> List[str]:
    rows = db.query(Assignment.doctor_id).filter(
        Assignment.patient_id == patient_id,
        Assignment.end_date.is_(None)
    ).distinct().all()
    return [row.doctor_id for row in rows]


def create_assignment(
    db: Session,
    admin: User,
    doctor_id: str,
    patient_id: str,
    notes: Optional[str] = None,
    background_tasks: Optional[BackgroundTasks] = None,
) -> Assignment:
    doctor = get_doctor(db, doctor_id)
    patient = get_patient(db, patient_id)

    if get_active_assignment(db, doctor_id, patient_id) is not None:
        raise Conflict("Doctor is already assigned to this patient")

    assignment = Assignment(
        assignment_id=ids.generate_unique_id(db, Assignment.assignment_id, ids.ASSIGNMENT),
        doctor_id=doctor_id,
        patient_id=patient_id,
        assigned_by=admin.admin_profile.admin_id if admin.admin_profile else None,
        notes=notes,
    )
    db.add(assignment)
    db.commit()
    db.refresh(assignment)
    logger.info("Assigned doctor %s to patient %s (%s)", doctor_id, patient_id, assignment.assignment_id)

    notifications.dispatch(
        background_tasks, notifications.notify_user,
        doctor.user_id, NotificationType.ASSIGNMENT, "New Patient Assigned",
        f"You have been assigned to patient {patient.user.name}."
    )
    notifications.dispatch(
        background_tasks, notifications.notify_user,
        patient.user_id, NotificationType.ASSIGNMENT, "New Doctor Assigned",
        f"{doctor.user.name} has been assigned as your doctor."
    )
    return assignment


def end_assignment(db: Session, assignment_id: str) -> Assignment:
    """Soft delete: the row stays for history, the gate stops honouring it."""
    assignment = db.query(Assignment).filter(Assignment.assignment_id == assignment_id).first()
    if assignment is None:
        raise NotFound("Assignment not found")
    if assignment.end_date is None:
        assignment.end_date = utc_now()
        db.commit()
        db.refresh(assignment)
        logger.info("Ended assignment %s", assignment_id)
    return assignment


def list_assignments(
    db: Session,
    active_only: bool = False,
    doctor_id: Optional[str] = None,
    patient_id: Optional[str] = None,
) -> List[Assignment]:
    query = db.query(Assignment)
    if active_only:
        query = query.filter(Assignment.end_date.is_(None))
    if doctor_id:
        query = query.filter(Assignment.doctor_id == doctor_id)
    if patient_id:
        query = query.filter(Assignment.patient_id == patient_id)
    return query.order_by(Assignment.assigned_at.desc()).all()
