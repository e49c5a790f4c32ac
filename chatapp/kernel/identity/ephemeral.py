"""
Single-use verification secrets.

Generates opaque tokens (email verification, password reset) and numeric
one-time codes (phone verification). Only the SHA-256 digest and the expiry
are meant to be stored; the plaintext goes to the user out of band.
"""

import hashlib
import hmac
import secrets
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

from chatapp.kernel.identity.config import IdentityConfig

TOKEN_BYTES = 20  # 40 hex characters
OTP_DIGITS = 6


@dataclass(frozen=True)
class EphemeralSecret:
    """A freshly generated secret. ``plaintext`` is handed out once."""

    plaintext: str
    hash: str
    expires_at: datetime

    def __repr__(self) -> str:
        return f"EphemeralSecret(hash={self.hash[:8]}..., expires_at={self.expires_at.isoformat()})"


def hash_secret(plaintext: str) -> str:
    """
    SHA-256 hex digest of a secret.

    Deterministic: password reset locates the user by this digest.
    """
    return hashlib.sha256(plaintext.encode("utf-8")).hexdigest()


class EphemeralSecretGenerator:
    """Issues verification tokens and OTPs with their digest and expiry."""

    def __init__(
        self,
        config: IdentityConfig,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.config = config
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    def generate_token(self) -> EphemeralSecret:
        """Random hex token valid for the verification token lifetime."""
        plaintext = secrets.token_hex(TOKEN_BYTES)
        return EphemeralSecret(
            plaintext=plaintext,
            hash=hash_secret(plaintext),
            expires_at=self.clock() + self.config.verification_token_lifetime,
        )

    def generate_otp(self) -> EphemeralSecret:
        """Uniform 6-digit code, zero-padded, valid for the OTP lifetime."""
        plaintext = f"{secrets.randbelow(10 ** OTP_DIGITS):0{OTP_DIGITS}d}"
        return EphemeralSecret(
            plaintext=plaintext,
            hash=hash_secret(plaintext),
            expires_at=self.clock() + self.config.otp_lifetime,
        )

    def matches(
        self,
        plaintext: Optional[str],
        stored_hash: Optional[str],
        expires_at: Optional[datetime],
    ) -> bool:
        """
        Check a presented secret against a stored digest and expiry.

        Both must hold: the digest matches and the expiry has not passed.
        """
        if not plaintext or not stored_hash or expires_at is None:
            return False
        if not hmac.compare_digest(hash_secret(plaintext), stored_hash):
            return False
        if expires_at.tzinfo is None:
            # SQLite hands back naive datetimes; they were written as UTC
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        return self.clock() <= expires_at
