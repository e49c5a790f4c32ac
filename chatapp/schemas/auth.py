"""
Authentication schemas.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from chatapp.kernel.models.user import UserRole


def _check_password(v: str) -> str:
    if len(v) < 8:
        raise ValueError("Password must be at least 8 characters")
    if not any(c.isalpha() for c in v):
        raise ValueError("Password must contain at least one letter")
    if not any(c.isdigit() for c in v):
        raise ValueError("Password must contain at least one digit")
    return v


class AvatarSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    url: str = ""
    public_id: str = ""


class UserCreate(BaseModel):
    """User registration request."""

    username: str = Field(..., min_length=3, max_length=64, pattern=r"^[A-Za-z0-9_.-]+$")
    email: EmailStr
    phone_number: str = Field(..., pattern=r"^\d{10}$")
    password: str = Field(..., min_length=8, max_length=128)
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    about: Optional[str] = Field(None, max_length=1000)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        return _check_password(v)


class UserLogin(BaseModel):
    """Login with username or email."""

    identifier: str = Field(..., min_length=1)
    password: str


class UserResponse(BaseModel):
    """User profile response."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    username: str
    email: str
    phone_number: str
    role: UserRole
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    about: Optional[str] = None
    avatar: AvatarSchema
    is_email_verified: bool
    is_phone_number_verified: bool
    created_at: Optional[datetime] = None


class UserProfileUpdate(BaseModel):
    """Profile update request."""

    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    about: Optional[str] = Field(None, max_length=1000)
    avatar: Optional[AvatarSchema] = None


class TokenResponse(BaseModel):
    """Authentication token response."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserResponse


class RefreshTokenRequest(BaseModel):
    """Token refresh request."""

    refresh_token: str


class ChangePasswordRequest(BaseModel):
    """Password change request."""

    current_password: str
    new_password: str = Field(..., min_length=8, max_length=128)

    @field_validator("new_password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        return _check_password(v)


class VerificationConfirm(BaseModel):
    """Secret received by email or SMS."""

    code: str = Field(..., min_length=1, max_length=128)


class ForgotPasswordRequest(BaseModel):
    identifier: str = Field(..., min_length=1)


class ResetPasswordRequest(BaseModel):
    token: str = Field(..., min_length=1, max_length=128)
    new_password: str = Field(..., min_length=8, max_length=128)

    @field_validator("new_password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        return _check_password(v)
