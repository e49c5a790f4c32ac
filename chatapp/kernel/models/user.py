"""
User model for identity management.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import JSON, Boolean, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from chatapp.kernel.models.base import Base, TimestampMixin, UuidPrimaryKeyMixin


class UserRole(str, Enum):
    """User roles in the system."""
    USER = "user"
    ADMIN = "admin"


def empty_avatar() -> dict:
    return {"url": "", "public_id": ""}


class User(UuidPrimaryKeyMixin, TimestampMixin, Base):
    """User account document."""

    __tablename__ = "users"

    username: Mapped[str] = mapped_column(
        String(64),
        unique=True,
        index=True,
        nullable=False,
    )
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        index=True,
        nullable=False,
    )
    # Digit string, never an integer: leading zeros are significant
    phone_number: Mapped[str] = mapped_column(
        String(10),
        unique=True,
        nullable=False,
    )
    password_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    role: Mapped[str] = mapped_column(
        String(20),
        default=UserRole.USER.value,
        nullable=False,
    )
    first_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    last_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    about: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    avatar: Mapped[dict] = mapped_column(
        JSON,
        default=empty_avatar,
        nullable=False,
    )

    is_email_verified: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_phone_number_verified: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    email_verification_token_hash: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    email_verification_expiry: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    phone_number_verification_token_hash: Mapped[Optional[str]] = mapped_column(
        String(64), nullable=True
    )
    phone_number_verification_expiry: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    forgot_password_token_hash: Mapped[Optional[str]] = mapped_column(
        String(64), index=True, nullable=True
    )
    forgot_password_expiry: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    refresh_token: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Bumped on every write; guards read-compare-write sequences
    version: Mapped[int] = mapped_column(Integer, default=1, nullable=False)

    def __repr__(self) -> str:
        return f"<User {self.username}>"
