# ============================================================================
# User Schemas
# ============================================================================
from pydantic import BaseModel, EmailStr, Field
from typing import Literal, Optional

from ebedmas.config import get_settings
from ebedmas.models.user import UserRole

settings = get_settings()

class RegisterRequest(BaseModel):
    email: EmailStr
    username: str = Field(..., min_length=2, max_length=100)
    password: str = Field(..., min_length=settings.MIN_PASSWORD_LENGTH)

class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)

class SetPasswordRequest(BaseModel):
    password: str = Field(..., min_length=settings.MIN_PASSWORD_LENGTH)

class ChangePasswordRequest(BaseModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=settings.MIN_PASSWORD_LENGTH)

class ProfileUpdate(BaseModel):
    username: Optional[str] = Field(None, min_length=2, max_length=100)

class CreateAdminRequest(RegisterRequest):
    pass

class RoleUpdate(BaseModel):
    role: UserRole

class AdminUpdate(BaseModel):
    email: Optional[EmailStr] = None
    username: Optional[str] = Field(None, min_length=2, max_length=100)
    password: Optional[str] = Field(None, min_length=settings.MIN_PASSWORD_LENGTH)
    role: Optional[UserRole] = None

class AdminStatusUpdate(BaseModel):
    status: Literal["active", "inactive"]
