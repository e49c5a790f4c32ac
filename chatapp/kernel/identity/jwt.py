"""
JWT token management for authentication.
"""

import json
import uuid
from datetime import datetime, timezone
from typing import Callable, Optional

from jose import jws, jwt
from jose.exceptions import JWSError
from jose.utils import base64url_decode, base64url_encode
from pydantic import BaseModel, ValidationError, field_validator

from chatapp.kernel.identity.config import IdentityConfig
from chatapp.kernel.identity.errors import InvalidSignature, MalformedToken, TokenExpired
from chatapp.kernel.identity.record import IdentityRecord

ACCESS = "access"
REFRESH = "refresh"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _is_canonical(segment: str) -> bool:
    """True when the segment re-encodes to itself (no stray trailing bits)."""
    try:
        raw = segment.encode("ascii")
        return base64url_encode(base64url_decode(raw)) == raw
    except (ValueError, TypeError):
        return False


class _SubjectClaims(BaseModel):
    sub: str  # User ID

    @field_validator("sub")
    @classmethod
    def _subject_is_uuid(cls, v: str) -> str:
        uuid.UUID(v)
        return v

    @property
    def user_id(self) -> uuid.UUID:
        return uuid.UUID(self.sub)


class AccessTokenClaims(_SubjectClaims):
    """JWT access token payload."""

    username: str
    email: str
    phone_number: str
    role: str
    exp: datetime
    iat: datetime
    jti: str
    type: str = ACCESS


class RefreshTokenClaims(_SubjectClaims):
    """JWT refresh token payload."""

    exp: datetime
    iat: datetime
    jti: str
    type: str = REFRESH


class TokenPair(BaseModel):
    """Access and refresh token pair."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int  # Seconds until access token expires
    refresh_expires_in: int


class JWTManager:
    """
    JWT token creation and verification.

    Access tokens (short-lived) and refresh tokens (long-lived) are signed
    with separate secrets, so one kind never parses as the other. Parsing
    only checks signature, structure and expiry; revocation is the caller's
    concern.
    """

    def __init__(
        self,
        config: IdentityConfig,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.config = config
        self.algorithm = config.algorithm
        self.clock = clock or utcnow

    def _now(self) -> datetime:
        # exp/iat are whole seconds on the wire
        return self.clock().replace(microsecond=0)

    def _secret(self, kind: str) -> str:
        if kind == ACCESS:
            return self.config.access_token_secret
        return self.config.refresh_token_secret

    def create_access_token(self, record: IdentityRecord) -> tuple[str, datetime]:
        """
        Create a new access token.

        Args:
            record: Identity whose id, username, email, phone number and
                role become claims

        Returns:
            Tuple of (token, expiration_datetime)
        """
        now = self._now()
        expire = now + self.config.access_token_lifetime
        payload = {
            "sub": str(record.id),
            "username": record.username,
            "email": record.email,
            "phone_number": record.phone_number,
            "role": record.role.value,
            "exp": expire,
            "iat": now,
            "jti": str(uuid.uuid4()),
            "type": ACCESS,
        }

        token = jwt.encode(payload, self._secret(ACCESS), algorithm=self.algorithm)
        return token, expire

    def create_refresh_token(self, record: IdentityRecord) -> tuple[str, datetime]:
        """
        Create a new refresh token carrying only the identity id.

        Returns:
            Tuple of (token, expiration_datetime)
        """
        now = self._now()
        expire = now + self.config.refresh_token_lifetime

        payload = {
            "sub": str(record.id),
            "exp": expire,
            "iat": now,
            "jti": str(uuid.uuid4()),
            "type": REFRESH,
        }

        token = jwt.encode(payload, self._secret(REFRESH), algorithm=self.algorithm)
        return token, expire

    def create_token_pair(self, record: IdentityRecord) -> TokenPair:
        """Create both access and refresh tokens."""
        access_token, access_exp = self.create_access_token(record)
        refresh_token, refresh_exp = self.create_refresh_token(record)

        now = self._now()
        return TokenPair(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_in=int((access_exp - now).total_seconds()),
            refresh_expires_in=int((refresh_exp - now).total_seconds()),
        )

    def _decode(self, token: str, kind: str) -> dict:
        if not isinstance(token, str) or token.count(".") != 2:
            raise MalformedToken("Token must have three segments")
        if not all(_is_canonical(segment) for segment in token.split(".")):
            raise InvalidSignature()

        try:
            payload = jws.verify(token, self._secret(kind), algorithms=[self.algorithm])
        except JWSError as exc:
            raise InvalidSignature() from exc

        try:
            claims = json.loads(payload.decode("utf-8"))
        except (UnicodeDecodeError, ValueError) as exc:
            raise MalformedToken("Token claims are not valid JSON") from exc
        if not isinstance(claims, dict):
            raise MalformedToken("Token claims must be a JSON object")
        if claims.get("type") != kind:
            raise MalformedToken(f"Expected a {kind} token")
        return claims

    def _check_expiry(self, exp: datetime) -> None:
        if self.clock() > exp:
            raise TokenExpired()

    def parse_access_token(self, token: str) -> AccessTokenClaims:
        """
        Verify and decode an access token.

        Raises:
            InvalidSignature: Signature does not match
            TokenExpired: Current time is past the exp claim
            MalformedToken: Claims cannot be decoded
        """
        claims = self._decode(token, ACCESS)
        try:
            parsed = AccessTokenClaims.model_validate(claims)
        except ValidationError as exc:
            raise MalformedToken("Access token claims are incomplete") from exc
        self._check_expiry(parsed.exp)
        return parsed

    def parse_refresh_token(self, token: str) -> RefreshTokenClaims:
        """
        Verify and decode a refresh token.

        Raises:
            InvalidSignature: Signature does not match
            TokenExpired: Current time is past the exp claim
            MalformedToken: Claims cannot be decoded
        """
        claims = self._decode(token, REFRESH)
        try:
            parsed = RefreshTokenClaims.model_validate(claims)
        except ValidationError as exc:
            raise MalformedToken("Refresh token claims are incomplete") from exc
        self._check_expiry(parsed.exp)
        return parsed
