from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from healthnet.database import get_db
from healthnet.models.all_models import User
from healthnet.schemas.user import FacilityResponse
from healthnet.services import facilities as facility_service
from healthnet.utils.auth import get_current_user
from healthnet.utils.responses import success_response

router = APIRouter(prefix="/facilities", tags=["facilities"])

@router.get("")
async def get_all_facilities(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    facilities = facility_service.list_facilities(db)
    return success_response([FacilityResponse.model_validate(f) for f in facilities], "Facilities retrieved successfully")
