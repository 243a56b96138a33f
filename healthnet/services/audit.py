"""Append-only audit trail. Writes are best effort and run on their own session."""

import logging
from typing import Any, List, Optional

from fastapi.encoders import jsonable_encoder
from sqlalchemy.orm import Session

from healthnet.database import get_db_context
from healthnet.models.all_models import AuditLog

logger = logging.getLogger(__name__)


def log_action(
    user_id: Optional[str],
    action_type: str,
    entity_type: str,
    entity_id: Optional[str] = None,
    old_values: Optional[Any] = None,
    new_values: Optional[Any] = None,
    description: Optional[str] = None,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> None:
    try:
        with get_db_context() as db:
            db.add(AuditLog(
                user_id=user_id,
                action_type=action_type,
                entity_type=entity_type,
                entity_id=entity_id,
                old_values=jsonable_encoder(old_values) if old_values is not None else None,
                new_values=jsonable_encoder(new_values) if new_values is not None else None,
                description=description,
                ip_address=ip_address,
                user_agent=user_agent,
            ))
            db.commit()
    except Exception:
        logger.exception("Failed to write audit log %s %s %s", action_type, entity_type, entity_id)


def list_audit_logs(
    db: Session,
    entity_type: Optional[str] = None,
    user_id: Optional[str] = None,
    skip: int = 0,
    limit: int = 100,
) -> List[AuditLog]:
    query = db.query(AuditLog)
    if entity_type:
        query = query.filter(AuditLog.entity_type == entity_type)
    if user_id:
        query = query.filter(AuditLog.user_id == user_id)
    return query.order_by(AuditLog.created_at.desc()).offset(skip).limit(limit).all()
