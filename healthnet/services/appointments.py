"""
Appointments: SCHEDULED -> RESCHEDULED -> ... -> COMPLETED.

Any assigned doctor may book; only the booking doctor may reschedule or
complete. Times are compared in naive UTC.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import BackgroundTasks
from sqlalchemy.orm import Session

from healthnet.exceptions import InvalidState, NotFound, PermissionDenied, ValidationFailed
from healthnet.models.all_models import (
    Appointment, AppointmentStatus, Assignment, DoctorProfile, NotificationType, utc_now
)
from healthnet.services import notifications
from healthnet.services.assignments import check_assignment
from healthnet.services.users import get_facility, get_patient
from healthnet.utils import ids
from healthnet.utils.dates import format_local, to_naive_utc

logger = logging.getLogger(__name__)

DEFAULT_DURATION = 30


def create_appointment(
    db: Session,
    doctor: DoctorProfile,
    data: Dict[str, Any],
    background_tasks: Optional[BackgroundTasks] = None,
) -> Appointment:
    patient_id = data.get("patient_id")
    when: Optional[datetime] = to_naive_utc(data.get("when"))
    if not patient_id or when is None:
        raise ValidationFailed("patient_id and when are required")

    check_assignment(db, doctor.doctor_id, patient_id)
    get_patient(db, patient_id)
    facility_id = data.get("facility_id") or doctor.facility_id
    if facility_id:
        get_facility(db, facility_id)

    appointment = Appointment(
        appointment_id=ids.generate_unique_id(db, Appointment.appointment_id, ids.APPOINTMENT),
        doctor_id=doctor.doctor_id,
        patient_id=patient_id,
        facility_id=facility_id,
        when=when,
        duration=data.get("duration") or DEFAULT_DURATION,
        reason=data.get("reason"),
        notes=data.get("notes"),
        status=AppointmentStatus.SCHEDULED,
    )
    db.add(appointment)
    db.commit()
    db.refresh(appointment)
    logger.info("Doctor %s booked appointment %s", doctor.doctor_id, appointment.appointment_id)

    notifications.dispatch(
        background_tasks, notifications.notify_user,
        appointment.patient.user_id, NotificationType.APPOINTMENT, "New Appointment Scheduled",
        f"An appointment has been scheduled with {doctor.user.name} for {format_local(appointment.when)}.",
    )
    return appointment


def _get_appointment(db: Session, appointment_id: str) -> Appointment:
    appointment = db.query(Appointment).filter(Appointment.appointment_id == appointment_id).first()
    if appointment is None:
        raise NotFound("Appointment not found")
    return appointment


def reschedule_appointment(
    db: Session,
    doctor: DoctorProfile,
    appointment_id: str,
    new_when: datetime,
    background_tasks: Optional[BackgroundTasks] = None,
) -> Appointment:
    appointment = _get_appointment(db, appointment_id)
    if appointment.doctor_id != doctor.doctor_id:
        raise PermissionDenied("You can only reschedule your own appointments")
    if appointment.status == AppointmentStatus.COMPLETED:
        raise InvalidState("Cannot reschedule a completed appointment")
    if appointment.when < utc_now():
        raise InvalidState("Cannot reschedule past appointments")

    new_when = to_naive_utc(new_when)
    if new_when <= utc_now():
        raise InvalidState("New appointment time must be in the future")

    appointment.when = new_when
    appointment.status = AppointmentStatus.RESCHEDULED
    db.commit()
    db.refresh(appointment)
    logger.info("Appointment %s rescheduled to %s", appointment_id, appointment.when.isoformat())

    notifications.dispatch(
        background_tasks, notifications.notify_user,
        appointment.patient.user_id, NotificationType.APPOINTMENT, "Appointment Rescheduled",
        f"Your appointment with {doctor.user.name} has been moved to {format_local(appointment.when)}.",
    )
    return appointment


def complete_appointment(
    db: Session,
    doctor: DoctorProfile,
    appointment_id: str,
    background_tasks: Optional[BackgroundTasks] = None,
) -> Appointment:
    appointment = _get_appointment(db, appointment_id)
    if appointment.doctor_id != doctor.doctor_id:
        raise PermissionDenied("You can only complete your own appointments")
    if appointment.status == AppointmentStatus.COMPLETED:
        raise InvalidState("Appointment is already completed")
    if appointment.when > utc_now():
        raise InvalidState("Cannot complete an appointment before its date/time")

    appointment.status = AppointmentStatus.COMPLETED
    appointment.completed_at = utc_now()
    db.commit()
    db.refresh(appointment)

    notifications.dispatch(
        background_tasks, notifications.notify_user,
        appointment.patient.user_id, NotificationType.APPOINTMENT, "Appointment Completed",
        f"Your appointment with {doctor.user.name} on {format_local(appointment.when)} has been marked as completed.",
    )
    return appointment


def get_appointment_for_doctor(db: Session, doctor: DoctorProfile, appointment_id: str) -> Appointment:
    appointment = _get_appointment(db, appointment_id)
    if appointment.doctor_id != doctor.doctor_id:
        check_assignment(db, doctor.doctor_id, appointment.patient_id)
    return appointment


def list_doctor_appointments(db: Session, doctor: DoctorProfile) -> List[Appointment]:
    """The doctor's own appointments, limited to patients they are still assigned to."""
    return (
        db.query(Appointment)
        .join(Assignment, (Assignment.doctor_id == Appointment.doctor_id) & (Assignment.patient_id == Appointment.patient_id))
        .filter(Appointment.doctor_id == doctor.doctor_id, Assignment.end_date.is_(None))
        .order_by(Appointment.when.asc())
        .distinct()
        .all()
    )


def list_patient_appointments_for_doctor(db: Session, doctor: DoctorProfile, patient_id: str) -> List[Appointment]:
    check_assignment(db, doctor.doctor_id, patient_id)
    return db.query(Appointment).filter(Appointment.patient_id == patient_id).order_by(Appointment.when.asc()).all()


def list_patient_appointments(db: Session, patient_id: str) -> List[Appointment]:
    """The patient's appointments with doctors who are still assigned to them."""
    return (
        db.query(Appointment)
        .join(Assignment, (Assignment.doctor_id == Appointment.doctor_id) & (Assignment.patient_id == Appointment.patient_id))
        .filter(Appointment.patient_id == patient_id, Assignment.end_date.is_(None))
        .order_by(Appointment.when.asc())
        .distinct()
        .all()
    )


def get_patient_appointment(db: Session, patient_id: str, appointment_id: str) -> Appointment:
    appointment = db.query(Appointment).filter(
        Appointment.appointment_id == appointment_id,
        Appointment.patient_id == patient_id
    ).first()
    if appointment is None:
        raise NotFound("Appointment not found")
    return appointment
