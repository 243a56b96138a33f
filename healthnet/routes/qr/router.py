from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session
from typing import Optional

from healthnet.config import settings
from healthnet.database import get_db
from healthnet.models.all_models import User
from healthnet.schemas.clinical import QRCodeGenerated, QRCodeResponse
from healthnet.services import emergency as emergency_service
from healthnet.services import qr as qr_service
from healthnet.utils.auth import get_optional_user, require_patient
from healthnet.utils.responses import success_response

router = APIRouter(prefix="/qr", tags=["qr"])

def client_details(request: Request):
    ip_address = request.client.host if request.client else None
    return ip_address, request.headers.get("user-agent")

def emergency_redirect(patient_id: str) -> RedirectResponse:
    return RedirectResponse(
        url=f"{settings.FRONTEND_URL.rstrip('/')}/emergency/{patient_id}",
        status_code=status.HTTP_302_FOUND
    )

# ================================
# PATIENT QR MANAGEMENT
# ================================

@router.post("/generate", status_code=status.HTTP_201_CREATED)
async def generate_qr_code(
    current_user: User = Depends(require_patient),
    db: Session = Depends(get_db)
):
    """Issue a new emergency QR code; earlier codes stop working."""
    qr_code = qr_service.generate_qr_code(db, current_user.patient_profile.patient_id)
    return success_response(QRCodeGenerated.model_validate(qr_code), "QR code generated successfully")

@router.get("/my-codes")
async def get_my_qr_codes(
    current_user: User = Depends(require_patient),
    db: Session = Depends(get_db)
):
    qr_codes = qr_service.get_my_qr_codes(db, current_user.patient_profile.patient_id)
    return success_response([QRCodeResponse.model_validate(q) for q in qr_codes], "QR codes retrieved successfully")

@router.get("/scan-history")
async def get_scan_history(
    current_user: User = Depends(require_patient),
    db: Session = Depends(get_db)
):
    history = qr_service.get_scan_history(db, current_user.patient_profile.patient_id)
    return success_response(history, "Scan history retrieved successfully")

# ================================
# PUBLIC EMERGENCY ACCESS
# ================================

@router.get("/scan/{token}")
async def scan_qr_code(
    token: str,
    request: Request,
    current_user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db)
):
    """Public. Signed-in scanners are recorded in the patient's scan history."""
    ip_address, user_agent = client_details(request)
    data = qr_service.scan_qr_code(db, token, scanned_by=current_user, ip_address=ip_address, user_agent=user_agent)
    return success_response(data, "Emergency data retrieved successfully")

@router.get("/emergency-search/{patient_id}")
async def emergency_search(
    patient_id: str,
    db: Session = Depends(get_db)
):
    data = emergency_service.search_emergency_data(db, patient_id)
    return success_response(data, "Emergency data retrieved successfully")

@router.get("/v/t/{token}", include_in_schema=False)
async def redirect_by_token(
    token: str,
    request: Request,
    current_user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db)
):
    ip_address, user_agent = client_details(request)
    data = qr_service.scan_qr_code(db, token, scanned_by=current_user, ip_address=ip_address, user_agent=user_agent)
    return emergency_redirect(data["patient_id"])

@router.get("/v/{patient_id}", include_in_schema=False)
async def redirect_by_patient(
    patient_id: str,
    request: Request,
    token: str = Query(..., min_length=1),
    current_user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db)
):
    ip_address, user_agent = client_details(request)
    qr_service.scan_qr_code(
        db, token, scanned_by=current_user, ip_address=ip_address, user_agent=user_agent,
        expected_patient_id=patient_id
    )
    return emergency_redirect(patient_id)
