from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from healthnet.database import get_db
from healthnet.models.all_models import User
from healthnet.services import lab_results as lab_result_service
from healthnet.utils.auth import get_current_user
from healthnet.utils.responses import success_response

router = APIRouter(prefix="/files", tags=["files"])

@router.get("/lab-results/{lab_id}/download")
async def get_lab_result_download_url(
    lab_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Download link for a lab result attachment. Allowed for admins, the
    patient, the uploading lab technician and any doctor assigned to the
    patient.
    """
    url = lab_result_service.get_download_url(db, current_user, lab_id)
    return success_response({"download_url": url}, "Download URL generated successfully")
