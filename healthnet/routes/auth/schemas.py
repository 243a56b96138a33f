# healthnet/routes/auth/schemas.py

from pydantic import BaseModel, Field, field_validator
import re

# ================================
# REQUEST SCHEMAS
# ================================

def validate_password_strength(v: str) -> str:
    if len(v) < 8:
        raise ValueError('Password must be at least 8 characters long')
    if not re.search(r'[A-Za-z]', v):
        raise ValueError('Password must contain at least one letter')
    if not re.search(r'\d', v):
        raise ValueError('Password must contain at least one digit')
    return v

class LoginRequest(BaseModel):
    # Business id (e.g. PT-XXXXXXXXXX) or email
    identifier: str = Field(..., min_length=3)
    password: str = Field(..., min_length=1)

class UpdatePasswordRequest(BaseModel):
    current_password: str = Field(..., min_length=1)
    new_password: str

    @field_validator('new_password')
    def validate_password(cls, v):
        return validate_password_strength(v)
