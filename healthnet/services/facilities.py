"""Facilities and the public landing-page counters."""

import logging
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from healthnet.models.all_models import Facility, FacilityType, PatientProfile
from healthnet.utils import ids

logger = logging.getLogger(__name__)

# Shown on the landing page as-is
SECURITY_SCORE = 100


def list_facilities(db: Session) -> List[Facility]:
    return db.query(Facility).order_by(Facility.name.asc()).all()


def create_facility(db: Session, data: Dict[str, Any]) -> Facility:
    facility = Facility(
        hospital_id=ids.generate_unique_id(db, Facility.hospital_id, ids.FACILITY),
        name=data["name"],
        type=data.get("type") or FacilityType.HOSPITAL,
        city_town=data.get("city_town"),
        phone=data.get("phone"),
        email=data.get("email"),
        address=data.get("address"),
    )
    db.add(facility)
    db.commit()
    db.refresh(facility)
    logger.info("Created facility %s (%s)", facility.hospital_id, facility.name)
    return facility


def public_stats(db: Session) -> Dict[str, int]:
    return {
        "patients": db.query(PatientProfile).count(),
        "facilities": db.query(Facility).count(),
        "security": SECURITY_SCORE,
    }
