"""
Identity record: the per-user entity the identity core reads and writes.

This is the storage-independent shape of a user. Stores translate it to and
from their own encoding (see chatapp.kernel.stores).
"""

import re
import uuid
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from chatapp.kernel.models.user import UserRole

PHONE_NUMBER_PATTERN = re.compile(r"^\d{10}$")


class VerificationPurpose(str, Enum):
    """What a verification secret proves ownership of."""
    EMAIL = "email"
    PHONE_NUMBER = "phone_number"


class Avatar(BaseModel):
    """Profile picture reference; empty strings when unset."""

    model_config = ConfigDict(from_attributes=True)

    url: str = ""
    public_id: str = ""


def normalize_identifier(value: str) -> str:
    """Usernames and emails are compared lowercased and trimmed."""
    return value.strip().lower()


class IdentityRecord(BaseModel):
    """Durable user identity with credentials and verification state."""

    model_config = ConfigDict(from_attributes=True, validate_assignment=True)

    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    username: str = Field(..., min_length=1, max_length=64)
    email: str = Field(..., min_length=3, max_length=255)
    phone_number: str
    password_hash: str = Field(..., min_length=1)
    role: UserRole = UserRole.USER

    first_name: Optional[str] = None
    last_name: Optional[str] = None
    about: Optional[str] = None
    avatar: Avatar = Field(default_factory=Avatar)

    is_email_verified: bool = False
    is_phone_number_verified: bool = False

    email_verification_token_hash: Optional[str] = None
    email_verification_expiry: Optional[datetime] = None
    phone_number_verification_token_hash: Optional[str] = None
    phone_number_verification_expiry: Optional[datetime] = None
    forgot_password_token_hash: Optional[str] = None
    forgot_password_expiry: Optional[datetime] = None

    refresh_token: Optional[str] = None

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    version: int = 1

    @field_validator("username", "email", mode="before")
    @classmethod
    def _lowercase(cls, v):
        if isinstance(v, str):
            return normalize_identifier(v)
        return v

    @field_validator("phone_number", mode="before")
    @classmethod
    def _phone_digits(cls, v):
        if isinstance(v, int):
            raise ValueError("phone number must be a digit string, not an integer")
        if isinstance(v, str):
            v = v.strip()
            if not PHONE_NUMBER_PATTERN.match(v):
                raise ValueError("phone number must be exactly 10 digits")
        return v

    @field_validator("first_name", "last_name", "about", mode="before")
    @classmethod
    def _trim(cls, v):
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator("avatar", mode="before")
    @classmethod
    def _default_avatar(cls, v):
        if v is None:
            return Avatar()
        return v

    def secret_fields(self, purpose: VerificationPurpose) -> tuple[str, str]:
        """Names of the (hash, expiry) fields for a verification purpose."""
        if purpose is VerificationPurpose.EMAIL:
            return "email_verification_token_hash", "email_verification_expiry"
        return "phone_number_verification_token_hash", "phone_number_verification_expiry"

    def verified_flag(self, purpose: VerificationPurpose) -> str:
        if purpose is VerificationPurpose.EMAIL:
            return "is_email_verified"
        return "is_phone_number_verified"

    def __repr__(self) -> str:
        return f"<IdentityRecord {self.username}>"
