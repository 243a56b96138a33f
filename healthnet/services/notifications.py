"""
In-app notifications.

Fan-out helpers (`notify_user`, `notify_assigned_doctors`) are best effort:
they open their own session, run after the triggering write has committed
and never propagate failures to the caller.
"""

import logging
import uuid
from typing import List, Optional

from fastapi import BackgroundTasks
from sqlalchemy.orm import Session

from healthnet.database import get_db_context
from healthnet.exceptions import NotFound
from healthnet.models.all_models import (
    Assignment, DoctorProfile, DoctorType, Notification, NotificationType, User, utc_now
)

logger = logging.getLogger(__name__)

NOTIFICATION_LIST_LIMIT = 50


def dispatch(background_tasks: Optional[BackgroundTasks], func, *args, **kwargs) -> None:
    """Schedule a best-effort side effect after the response, or run it now when there is no request."""
    if background_tasks is not None:
        background_tasks.add_task(func, *args, **kwargs)
    else:
        func(*args, **kwargs)


def create_notification(db: Session, user_pk: uuid.UUID, type: NotificationType, title: str, message: str) -> Notification:
    notification = Notification(user_id=user_pk, type=type, title=title, message=message)
    db.add(notification)
    db.commit()
    db.refresh(notification)
    return notification


def notify_user(user_pk: uuid.UUID, type: NotificationType, title: str, message: str) -> None:
    try:
        with get_db_context() as db:
            create_notification(db, user_pk, type, title, message)
    except Exception:
        logger.exception("Failed to create %s notification for user %s", type.value, user_pk)


def notify_assigned_doctors(
    patient_id: str,
    type: NotificationType,
    title: str,
    message: str,
    doctor_type: Optional[DoctorType] = None,
) -> None:
    """Notify every doctor actively assigned to the patient, optionally only one subtype."""
    try:
        with get_db_context() as db:
            query = (
                db.query(DoctorProfile.user_id)
                .join(Assignment, Assignment.doctor_id == DoctorProfile.doctor_id)
                .filter(Assignment.patient_id == patient_id, Assignment.end_date.is_(None))
            )
            if doctor_type is not None:
                query = query.filter(DoctorProfile.type == doctor_type)

            recipients = {row.user_id for row in query.all()}
            for user_pk in recipients:
                db.add(Notification(user_id=user_pk, type=type, title=title, message=message))
            db.commit()
            logger.info("Sent %s notification to %d doctor(s) of patient %s", type.value, len(recipients), patient_id)
    except Exception:
        logger.exception("Failed to notify doctors assigned to patient %s", patient_id)


def list_notifications(db: Session, user: User, limit: int = NOTIFICATION_LIST_LIMIT) -> List[Notification]:
    return (
        db.query(Notification)
        .filter(Notification.user_id == user.id)
        .order_by(Notification.created_at.desc())
        .limit(limit)
        .all()
    )


def unread_count(db: Session, user: User) -> int:
    return db.query(Notification).filter(Notification.user_id == user.id, Notification.is_read.is_(False)).count()


def mark_read(db: Session, user: User, notification_id: uuid.UUID) -> Notification:
    notification = db.query(Notification).filter(
        Notification.id == notification_id,
        Notification.user_id == user.id
    ).first()
    if notification is None:
        raise NotFound("Notification not found")

    if not notification.is_read:
        notification.is_read = True
        notification.read_at = utc_now()
        db.commit()
        db.refresh(notification)
    return notification


def mark_all_read(db: Session, user: User) -> int:
    updated = db.query(Notification).filter(
        Notification.user_id == user.id,
        Notification.is_read.is_(False)
    ).update({Notification.is_read: True, Notification.read_at: utc_now()}, synchronize_session=False)
    db.commit()
    return updated
