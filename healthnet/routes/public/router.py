from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from healthnet.database import get_db
from healthnet.services import facilities as facility_service
from healthnet.utils.responses import success_response

router = APIRouter(prefix="/public", tags=["public"])

@router.get("/stats")
async def get_landing_stats(db: Session = Depends(get_db)):
    """Counters for the landing page. No authentication."""
    return success_response(facility_service.public_stats(db), "Public stats retrieved successfully")
