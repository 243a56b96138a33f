from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from uuid import UUID

from healthnet.database import get_db
from healthnet.models.all_models import User
from healthnet.schemas.clinical import NotificationResponse
from healthnet.services import notifications as notification_service
from healthnet.utils.auth import get_current_user
from healthnet.utils.responses import success_response

router = APIRouter(prefix="/notifications", tags=["notifications"])

@router.get("")
async def get_my_notifications(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """The 50 most recent notifications, newest first."""
    items = notification_service.list_notifications(db, current_user)
    return success_response({
        "notifications": [NotificationResponse.model_validate(n) for n in items],
        "unread_count": notification_service.unread_count(db, current_user),
    }, "Notifications retrieved successfully")

@router.patch("/read-all")
async def mark_all_notifications_read(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    updated = notification_service.mark_all_read(db, current_user)
    return success_response({"updated": updated}, "All notifications marked as read")

@router.patch("/{notification_id}/read")
async def mark_notification_read(
    notification_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    notification = notification_service.mark_read(db, current_user, notification_id)
    return success_response(NotificationResponse.model_validate(notification), "Notification marked as read")
