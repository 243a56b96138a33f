from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from healthnet.database import get_db
from healthnet.models.all_models import User
from healthnet.routes.auth.schemas import LoginRequest, UpdatePasswordRequest
from healthnet.schemas.user import serialize_account
from healthnet.services import users as user_service
from healthnet.utils.auth import get_current_user
from healthnet.utils.responses import success_response

router = APIRouter(prefix="/auth", tags=["auth"])

@router.post("/login")
async def login(
    login_data: LoginRequest,
    db: Session = Depends(get_db)
):
    """
    Authenticate with a user ID or email. Starting a session ends all
    other sessions of the same user.
    """
    user, token = user_service.login(db, login_data.identifier, login_data.password)
    return success_response(
        {"user": serialize_account(user), "token": token, "token_type": "bearer"},
        "Login successful"
    )

@router.post("/logout")
async def logout(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Invalidate every token issued to the current user."""
    user_service.logout(db, current_user)
    return success_response(None, "Logged out successfully")

@router.get("/me")
async def get_me(current_user: User = Depends(get_current_user)):
    return success_response(serialize_account(current_user), "Profile retrieved successfully")

@router.put("/update-password")
async def update_password(
    password_data: UpdatePasswordRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Change the password; the caller has to log in again afterwards."""
    user_service.change_password(db, current_user, password_data.current_password, password_data.new_password)
    return success_response(None, "Password updated successfully. Please login again.")
