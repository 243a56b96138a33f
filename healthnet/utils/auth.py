# healthnet/utils/auth.py
import logging
import uuid
from datetime import datetime, timedelta
from typing import Dict, Optional

import bcrypt
import jwt
import pytz
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

# Local imports
from healthnet.database import get_db
from healthnet.config import settings
from healthnet.exceptions import AuthenticationFailed, PermissionDenied
from healthnet.models.all_models import User, UserRole, DoctorType

logger = logging.getLogger(__name__)

# auto_error is off so a missing header gets our own 401 instead of FastAPI's 403
security = HTTPBearer(auto_error=False)

def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    return bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt()).decode('utf-8')

def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plain password against a hashed password."""
    try:
        return bcrypt.checkpw(plain_password.encode('utf-8'), hashed_password.encode('utf-8'))
    except ValueError:
        # Malformed hash in storage
        return False

def create_access_token(user: User, expires_delta: Optional[timedelta] = None) -> str:
    """Create a JWT access token bound to the user's current token_version."""
    expire = datetime.now(pytz.utc) + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode = {
        "sub": str(user.id),
        "user_id": user.user_id,
        "role": user.role.value,
        "email": user.email,
        "version": user.token_version,
        "exp": expire,
        "type": "access",
    }
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

def verify_token(token: str, token_type: str = "access") -> Dict:
    """Verify a JWT token and return its payload."""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise AuthenticationFailed("Invalid or expired token")
    except jwt.InvalidTokenError:
        raise AuthenticationFailed("Invalid or expired token")

    if payload.get("type") != token_type:
        raise AuthenticationFailed(f"Invalid token type, expected {token_type}")
    return payload

def authenticate_token(token: str, db: Session) -> User:
    """Resolve a bearer token to its user, enforcing token_version and suspension."""
    payload = verify_token(token)

    try:
        user_pk = uuid.UUID(str(payload.get("sub")))
    except ValueError:
        raise AuthenticationFailed("Invalid authentication credentials")

    user = db.query(User).filter(User.id == user_pk).first()
    if user is None:
        raise AuthenticationFailed("User not found")

    if payload.get("version") != user.token_version:
        raise AuthenticationFailed("Session expired. Please login again.")

    if user.is_suspended:
        raise PermissionDenied("Your account has been suspended. Please contact the administrator.")

    return user

async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db)
) -> User:
    """Retrieve the current authenticated user from the JWT token."""
    if credentials is None or not credentials.credentials:
        raise AuthenticationFailed("No token provided")
    return authenticate_token(credentials.credentials, db)

async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db)
) -> Optional[User]:
    """Like get_current_user, but anonymous callers and bad tokens resolve to None."""
    if credentials is None or not credentials.credentials:
        return None
    try:
        return authenticate_token(credentials.credentials, db)
    except (AuthenticationFailed, PermissionDenied) as exc:
        logger.debug("Ignoring unusable token on optional auth route: %s", exc.message)
        return None

def require_roles(*allowed_roles: UserRole):
    """
    Dependency factory requiring one of the given roles.

    Usage:
    @router.get("/doctors-only")
    async def doctors_only_route(user: User = Depends(require_roles(UserRole.DOCTOR, UserRole.ADMIN))):
        return {"message": "Welcome doctor or admin!"}
    """
    async def dependency(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in allowed_roles:
            raise PermissionDenied(
                "Insufficient permissions. Required roles: " + ", ".join([role.value for role in allowed_roles])
            )
        return current_user

    return dependency

require_admin = require_roles(UserRole.ADMIN)
require_doctor = require_roles(UserRole.DOCTOR)
require_patient = require_roles(UserRole.PATIENT)

def require_doctor_type(doctor_type: DoctorType):
    """Dependency factory requiring a doctor of the given subtype."""
    async def dependency(current_user: User = Depends(require_doctor)) -> User:
        profile = current_user.doctor_profile
        if profile is None or profile.type != doctor_type:
            raise PermissionDenied(f"Only {doctor_type.value.replace('_', ' ').lower()}s can perform this action")
        return current_user

    return dependency

require_medical_doctor = require_doctor_type(DoctorType.MEDICAL_DOCTOR)
require_lab_technician = require_doctor_type(DoctorType.LAB_TECHNICIAN)
