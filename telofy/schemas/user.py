# schemas/user.py
from pydantic import BaseModel, EmailStr, Field, ConfigDict, field_validator
from typing import Optional
from datetime import datetime
from uuid import UUID

from telofy.core.timeutils import is_valid_timezone


def _check_password_strength(v: str) -> str:
    if not any(c.isupper() for c in v):
        raise ValueError('Password must contain at least one uppercase letter')
    if not any(c.islower() for c in v):
        raise ValueError('Password must contain at least one lowercase letter')
    if not any(c.isdigit() for c in v):
        raise ValueError('Password must contain at least one digit')
    return v


def _check_timezone(v: Optional[str]) -> Optional[str]:
    if v is not None and not is_valid_timezone(v):
        raise ValueError(f"Unknown timezone '{v}'")
    return v


# =====================================================================
# 1. BASE SCHEMAS
# =====================================================================

class UserBase(BaseModel):
    """Public profile fields."""
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr


# =====================================================================
# 2. CREATE / UPDATE SCHEMAS
# =====================================================================

class UserCreate(UserBase):
    """Public registration payload."""
    password: str = Field(..., min_length=8, max_length=128)
    timezone: Optional[str] = None

    @field_validator("password")
    @classmethod
    def validate_password_strength(cls, v: str) -> str:
        return _check_password_strength(v)

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: Optional[str]) -> Optional[str]:
        return _check_timezone(v)


class UserUpdate(BaseModel):
    """Profile update - all optional."""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    image: Optional[str] = Field(None, max_length=1024)
    timezone: Optional[str] = None
    onboarding_completed: Optional[bool] = None
    notification_enabled: Optional[bool] = None
    notification_advance_minutes: Optional[int] = Field(None, ge=0, le=1440)

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: Optional[str]) -> Optional[str]:
        return _check_timezone(v)


class UserUpdatePassword(BaseModel):
    """Password change - requires the current password."""
    old_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=8, max_length=128)

    @field_validator("new_password")
    @classmethod
    def validate_password_strength(cls, v: str) -> str:
        return _check_password_strength(v)


# =====================================================================
# 3. READ SCHEMAS
# =====================================================================

class UserOut(UserBase):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    image: Optional[str] = None
    email_verified: bool = False
    timezone: Optional[str] = None
    onboarding_completed: Optional[bool] = False
    notification_enabled: Optional[bool] = True
    notification_advance_minutes: Optional[int] = 5
    created_at: datetime


# =====================================================================
# 4. AUTH SCHEMAS
# =====================================================================

class LoginRequest(BaseModel):
    """User login request."""
    email: EmailStr
    password: str = Field(..., min_length=1)


class TokenResponse(BaseModel):
    """Authentication token response."""
    access_token: str
    token_type: str = "bearer"
    refresh_token: str
    user: UserOut


class RefreshTokenRequest(BaseModel):
    """Refresh token request."""
    refresh_token: str


class PasswordResetRequest(BaseModel):
    email: EmailStr


class PasswordResetConfirm(BaseModel):
    token: str
    new_password: str = Field(..., min_length=8, max_length=128)

    @field_validator("new_password")
    @classmethod
    def validate_password_strength(cls, v: str) -> str:
        return _check_password_strength(v)


# =====================================================================
# RESPONSE WRAPPERS
# =====================================================================

class SuccessResponse(BaseModel):
    """Generic success response."""
    success: bool = True
    message: str
